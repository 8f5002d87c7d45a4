"""
Load-time support for dumped programs.

Programs produced by graphdump import this module as ``_rt``. It resolves
static references (an importable module path followed by attribute, item
and capture steps) and keeps exempt functions exempt after reloading.
"""

import importlib
from typing import Any, Callable, Iterable


class Attr:
    """Step reading an attribute."""

    def __init__(self, name: str):
        self.name = name

    def follow(self, target: Any) -> Any:
        return getattr(target, self.name)

    def __graphdump__(self):
        return f"_rt.Attr({self.name!r})"

    def __str__(self) -> str:
        return f".{self.name}"

    def __repr__(self) -> str:
        return f"Attr({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Attr) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("attr", self.name))


class Item:
    """Step indexing a dict, list or tuple."""

    def __init__(self, key: Any):
        self.key = key

    def follow(self, target: Any) -> Any:
        return target[self.key]

    def __graphdump__(self):
        # Other keys fall back to structural encoding of the instance
        if self.key is None or type(self.key) in (str, int, bool):
            return f"_rt.Item({self.key!r})"
        return None

    def __str__(self) -> str:
        return f"[{self.key!r}]"

    def __repr__(self) -> str:
        return f"Item({self.key!r})"

    def __eq__(self, other: object) -> bool:
        return (isinstance(other, Item) and type(other.key) is type(self.key)
                and other.key == self.key)

    def __hash__(self) -> int:
        try:
            return hash(("item", self.key))
        except TypeError:
            return hash(("item", id(self.key)))


class Capture:
    """Step reading a variable captured by a function."""

    def __init__(self, name: str):
        self.name = name

    def follow(self, target: Any) -> Any:
        names = target.__code__.co_freevars
        if self.name not in names:
            raise LookupError(f"{target!r} does not capture {self.name!r}")
        return target.__closure__[names.index(self.name)].cell_contents

    def __graphdump__(self):
        return f"_rt.Capture({self.name!r})"

    def __str__(self) -> str:
        return f".<capture {self.name}>"

    def __repr__(self) -> str:
        return f"Capture({self.name!r})"

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Capture) and other.name == self.name

    def __hash__(self) -> int:
        return hash(("capture", self.name))


def render_path(steps: Iterable[Any]) -> str:
    """Render a step path for messages, e.g. ``.table['a'].<capture x>``."""
    return "".join(str(step) for step in steps)


def resolve_module_path(module_path: str) -> Any:
    """
    Resolve ``package.module`` or ``package.module:attr.sub``.

    Args:
        module_path: Importable module name, optionally followed by a colon
            and a dotted attribute path

    Returns:
        The module or the attribute the path points to
    """
    module_name, _, attr_path = module_path.partition(":")
    result = importlib.import_module(module_name)
    if attr_path:
        for name in attr_path.split("."):
            result = getattr(result, name)
    return result


def resolve_static(module_path: str, key_path: Iterable[Any]) -> Any:
    """Resolve a statically marked value from its module path and step path."""
    result = resolve_module_path(module_path)
    for step in key_path:
        result = step.follow(result)
    return result


def ignore_capture_size(function: Callable) -> Callable:
    """Re-register a reconstructed function as exempt from capture-size warnings."""
    from .core.registry import default_registry

    return default_registry.ignore_capture_size(function)
