"""Classification of values into the kinds the encoder knows."""

import enum
import math
import reprlib
import sys
import types
from typing import Any, Optional, Tuple

SCALAR_TYPES = (type(None), bool, int, float, complex, str, bytes)

_MISSING = object()
_short_repr = reprlib.Repr()
_short_repr.maxstring = 40
_short_repr.maxother = 40


def is_scalar(value: Any) -> bool:
    """Scalars are emitted as literals and never take a slot."""
    return type(value) in SCALAR_TYPES or value is Ellipsis


def float_literal(value: float) -> str:
    if math.isnan(value):
        return "float('nan')"
    if math.isinf(value):
        return "float('inf')" if value > 0 else "float('-inf')"
    # repr() is the shortest string that round-trips exactly
    return repr(value)


def scalar_literal(value: Any) -> str:
    """Exact source literal for a scalar."""
    kind = type(value)
    if kind is float:
        return float_literal(value)
    if kind is complex:
        return f"complex({float_literal(value.real)}, {float_literal(value.imag)})"
    if value is Ellipsis:
        return "..."
    return repr(value)


def key_label(key: Any) -> str:
    """Path step for a dict key or sequence index."""
    if is_scalar(key):
        return f"[{_short_repr.repr(key)}]"
    return f"[<{type(key).__qualname__}>]"


def module_namespace_name(value: Any) -> Optional[str]:
    """Name of the imported module whose ``__dict__`` is ``value``, if any."""
    if type(value) is not dict:
        return None
    name = value.get("__name__")
    if not isinstance(name, str):
        return None
    module = sys.modules.get(name)
    if module is not None and getattr(module, "__dict__", None) is value:
        return name
    return None


def qualified_name(value: Any) -> Optional[Tuple[str, str]]:
    """
    Find where an object lives in an imported module.

    Args:
        value: A class, function or builtin

    Returns:
        Tuple of (module name, qualified name) when looking the name up again
        yields the identical object, otherwise None
    """
    module_name = getattr(value, "__module__", None)
    qualname = getattr(value, "__qualname__", None)
    if not isinstance(module_name, str) or not isinstance(qualname, str):
        return None
    # <locals>, <lambda> and friends cannot be looked up
    if "<" in qualname:
        return None

    target = sys.modules.get(module_name, _MISSING)
    if target is _MISSING:
        return None
    for part in qualname.split("."):
        target = getattr(target, part, _MISSING)
        if target is _MISSING:
            return None

    if target is not value:
        return None
    return module_name, qualname


def named_reference(value: Any) -> Optional[str]:
    """
    Expression re-importing ``value``, for values rebuilt by reference.

    Covers modules, module namespaces, importable classes, importable
    builtins and members of importable enums.
    """
    if isinstance(value, types.ModuleType):
        name = value.__name__
        if sys.modules.get(name) is value:
            return f"_require({name!r})"
        return None

    if type(value) is dict:
        name = module_namespace_name(value)
        return f"vars(_require({name!r}))" if name is not None else None

    if isinstance(value, enum.Enum):
        cls_ref = named_reference(type(value))
        if cls_ref is None or type(value).__members__.get(value.name) is not value:
            return None
        return f"{cls_ref}[{value.name!r}]"

    if isinstance(value, type) or (
        isinstance(value, types.BuiltinFunctionType)
        and (value.__self__ is None or isinstance(value.__self__, types.ModuleType))
    ):
        found = qualified_name(value)
        if found is not None:
            return f"_require({found[0]!r}).{found[1]}"

    return None


def is_value_key(key: Any) -> bool:
    """Whether a dict key can be rebuilt by value, equal and with equal hash."""
    if is_scalar(key) or named_reference(key) is not None:
        return True
    if type(key) in (tuple, frozenset):
        return all(is_value_key(item) for item in key)
    return False


def is_plain_instance(value: Any) -> bool:
    """
    Instances rebuilt as ``cls.__new__(cls)`` plus their ``__dict__``.

    Classes that customise pickling usually keep state outside ``__dict__``
    and are left to overrides. So are subclasses of builtin types such as
    ``dict``, ``str`` or ``Exception``: their contents live in the builtin
    part of the object, which ``__dict__`` does not hold.
    """
    if isinstance(value, (type, types.ModuleType)):
        return False
    if not isinstance(getattr(value, "__dict__", None), dict):
        return False
    cls = type(value)
    if cls.__reduce_ex__ is not object.__reduce_ex__ or cls.__reduce__ is not object.__reduce__:
        return False
    if any(base.__module__ == "builtins" and base is not object for base in cls.__mro__):
        return False
    return not any("__slots__" in vars(base) for base in cls.__mro__)
