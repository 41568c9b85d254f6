from __future__ import annotations

import importlib
from collections.abc import Iterable
from types import ModuleType

from step_kernel.kernel.registry import DefinitionRegistry

# Definition modules expose this function; it is the only registration entrypoint.
REGISTER_FUNCTION = "register_definitions"


class DefinitionLoadError(RuntimeError):
    # Raised when a definition module cannot be imported or has no entrypoint.
    def __init__(self, module_name: str, reason: str) -> None:
        super().__init__(f"Cannot load definitions from {module_name}: {reason}")
        self.module_name = module_name
        self.reason = reason


def load_definitions(module_names: Iterable[str], registry: DefinitionRegistry) -> list[ModuleType]:
    # Imports each module once, in order, and hands it the registry.
    loaded: list[ModuleType] = []
    seen: set[str] = set()
    for name in module_names:
        if name in seen:
            continue
        seen.add(name)
        module = _import(name)
        register = getattr(module, REGISTER_FUNCTION, None)
        if not callable(register):
            raise DefinitionLoadError(name, f"module has no callable {REGISTER_FUNCTION}(registry)")
        register(registry)
        loaded.append(module)
    return loaded


def _import(name: str) -> ModuleType:
    try:
        return importlib.import_module(name)
    except ImportError as exc:
        raise DefinitionLoadError(name, str(exc)) from exc
