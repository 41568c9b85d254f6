from __future__ import annotations

from collections.abc import Sequence

from step_kernel.app import run


def main(argv: Sequence[str] | None = None) -> int:
    # Single-line entrypoint delegating to the CLI shell.
    return run(list(argv) if argv is not None else None)


if __name__ == "__main__":
    raise SystemExit(main())
