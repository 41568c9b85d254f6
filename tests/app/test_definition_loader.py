from __future__ import annotations

from pathlib import Path

import pytest

from step_kernel.app.loader import DefinitionLoadError, load_definitions
from step_kernel.kernel.registry import DefinitionRegistry, DuplicatePatternError

# Definition modules are plain Python modules exposing register_definitions(registry).


def _module(tmp_path: Path, name: str, body: str) -> None:
    (tmp_path / f"{name}.py").write_text(body, encoding="utf-8")


def test_modules_register_in_order_and_once(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.syspath_prepend(str(tmp_path))
    _module(
        tmp_path,
        "loader_defs_ok",
        "def register_definitions(registry):\n"
        "    registry.given(r'^a step$')(lambda ctx: None)\n",
    )
    registry = DefinitionRegistry()
    modules = load_definitions(["loader_defs_ok", "loader_defs_ok"], registry)
    assert [m.__name__ for m in modules] == ["loader_defs_ok"]
    assert [d.pattern for d in registry.steps()] == ["^a step$"]


def test_missing_module_is_a_load_error() -> None:
    with pytest.raises(DefinitionLoadError) as exc:
        load_definitions(["no_such_definitions_module"], DefinitionRegistry())
    assert exc.value.module_name == "no_such_definitions_module"


def test_module_without_entrypoint(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.syspath_prepend(str(tmp_path))
    _module(tmp_path, "loader_defs_empty", "VALUE = 1\n")
    with pytest.raises(DefinitionLoadError):
        load_definitions(["loader_defs_empty"], DefinitionRegistry())


def test_duplicate_pattern_across_modules_propagates(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.syspath_prepend(str(tmp_path))
    body = "def register_definitions(registry):\n    registry.when(r'^same$')(lambda ctx: None)\n"
    _module(tmp_path, "loader_defs_dup_a", body)
    _module(tmp_path, "loader_defs_dup_b", body)
    with pytest.raises(DuplicatePatternError):
        load_definitions(["loader_defs_dup_a", "loader_defs_dup_b"], DefinitionRegistry())
