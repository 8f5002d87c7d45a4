"""
Convenience functions working against the default registry.

    >>> from graphdump import dumps, loads
    >>> data = {"name": "a"}
    >>> data["self"] = data
    >>> copy = loads(dumps(data))
    >>> copy["self"] is copy
    True
"""

from typing import Any, Callable, List, Optional

from .config import DumpConfig
from .core import static
from .core.encoder import Dumper
from .core.program import loads as _loads
from .core.registry import Recipe, Registry, default_registry

_last_warnings: List[str] = []


def dumps(value: Any, registry: Optional[Registry] = None,
          config: Optional[DumpConfig] = None) -> str:
    """
    Serialize a value graph into a Python program.

    Args:
        value: Root of the graph
        registry: Overrides to consult, the default registry if None
        config: Dump settings, defaults if None

    Returns:
        Program text; executing it binds the rebuilt value to ``result``

    Raises:
        DumpError: Any subclass, when the graph cannot be dumped
    """
    global _last_warnings

    _last_warnings = []
    result = Dumper(registry, config).run(value)
    _last_warnings = result.warnings
    return result.program


def loads(program: str) -> Any:
    """Execute a program produced by ``dumps`` and return its value."""
    return _loads(program)


def get_warnings() -> List[str]:
    """Warnings produced by the last ``dumps`` call."""
    return list(_last_warnings)


def register(value: Any, recipe: Recipe) -> Any:
    """Register an override in the default registry; returns ``value``."""
    default_registry.register(value, recipe)
    return value


def mark(value: Any, module_path: str, config: Optional[DumpConfig] = None) -> Any:
    """Mark a module graph as static in the default registry; returns ``value``."""
    return static.mark(value, module_path, default_registry, config)


def ignore_capture_size(function: Callable) -> Callable:
    """Decorator silencing oversized-capture warnings for ``function``."""
    return default_registry.ignore_capture_size(function)


def allow_reference_keys(module_path: str) -> None:
    """Exempt a module path from the static-key check."""
    default_registry.allow_reference_keys(module_path)
