"""
Static marking.

Values that live in an importable module do not need to be dumped by value:
a loaded program can import the module again and walk to them. ``mark``
walks a module (or any value reachable from one) breadth-first and
registers, for every reference-type value it meets, a producer that
resolves the module path and follows the same attribute, item and capture
steps at load time.

Dict keys are never walked. A key that is itself a reference type cannot be
found again by a step path, so such keys are collected while marking and
validated once the whole graph is marked.
"""

import logging
import types
from collections import deque
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple

from ..config import DumpConfig
from ..runtime import Attr, Capture, Item, render_path, resolve_static
from .errors import UnresolvableStaticKeyError
from .kinds import is_scalar, is_value_key, named_reference
from .registry import Registry, default_registry

logger = logging.getLogger(__name__)

Step = Any


def static_recipe(module_path: str, key_path: Tuple[Step, ...]) -> Callable[[], Any]:
    """Producer re-resolving a marked value at load time."""

    def resolve():
        return resolve_static(module_path, key_path)

    return resolve


def _is_markable(value: Any) -> bool:
    return not is_scalar(value) and named_reference(value) is None


def children(value: Any) -> Iterator[Tuple[Step, Any]]:
    """
    Yield ``(step, child)`` for everything reachable from ``value`` in one step.

    Function globals are never followed; module attributes with dunder names
    are skipped.
    """
    kind = type(value)
    if kind is dict:
        for key, item in list(value.items()):
            yield Item(key), item
    elif kind in (list, tuple):
        for index, item in enumerate(list(value)):
            yield Item(index), item
    elif isinstance(value, types.ModuleType):
        for name, item in list(vars(value).items()):
            if not (name.startswith("__") and name.endswith("__")):
                yield Attr(name), item
    elif kind is types.FunctionType:
        names = value.__code__.co_freevars
        for name, cell in zip(names, value.__closure__ or ()):
            try:
                contents = cell.cell_contents
            except ValueError:
                continue
            yield Capture(name), contents
    elif isinstance(getattr(value, "__dict__", None), dict) and not isinstance(value, type):
        for name, item in list(vars(value).items()):
            if isinstance(name, str):
                yield Attr(name), item


def _reference_keys(value: Any) -> Iterator[Any]:
    if type(value) is dict:
        for key in list(value):
            if not is_value_key(key):
                yield key


def _traversable(value: Any, is_root: bool) -> bool:
    if is_scalar(value):
        return False
    # The root may be a module; any other module is a named reference
    return is_root or named_reference(value) is None


def mark(root: Any, module_path: str,
         registry: Optional[Registry] = None,
         config: Optional[DumpConfig] = None) -> Any:
    """
    Mark ``root`` and everything reachable from it as static.

    Args:
        root: The module or value found at ``module_path``
        module_path: ``package.module`` or ``package.module:attr.sub``
        registry: Registry receiving the producers, default registry if None
        config: Supplies ``key_report_limit``

    Returns:
        ``root``, unchanged

    Raises:
        UnresolvableStaticKeyError: When a reference-type dict key has no
            override, no hook and the module is not exempt. Nothing stays
            marked in that case.
    """
    registry = registry if registry is not None else default_registry
    config = config or DumpConfig()

    if not _traversable(root, is_root=True):
        return root

    installed: List[Tuple[Any, Any]] = []
    candidate_keys: Dict[int, Any] = {}
    seen: Set[int] = {id(root)}
    queue = deque([(root, ())])

    while queue:
        current, key_path = queue.popleft()

        if _is_markable(current):
            previous = registry.register(current, static_recipe(module_path, key_path))
            installed.append((current, previous))

        for key in _reference_keys(current):
            candidate_keys[id(key)] = key

        for step, child in children(current):
            if id(child) in seen or not _traversable(child, is_root=False):
                continue
            seen.add(id(child))
            queue.append((child, key_path + (step,)))

    logger.debug(
        f"Marked {len(installed)} values of {module_path} as static, "
        f"{len(candidate_keys)} reference-type keys"
    )

    try:
        _validate_keys(root, module_path, candidate_keys, registry, config)
    except UnresolvableStaticKeyError:
        _roll_back(registry, installed)
        raise

    return root


def _roll_back(registry: Registry, installed: List[Tuple[Any, Any]]) -> None:
    for value, previous in reversed(installed):
        if previous is None:
            registry.unregister(value)
        else:
            registry.register(value, previous)
    logger.debug(f"Rolled back {len(installed)} static markings")


def _validate_keys(root: Any, module_path: str, candidate_keys: Dict[int, Any],
                   registry: Registry, config: DumpConfig) -> None:
    if not candidate_keys or registry.allows_reference_keys(module_path):
        return

    unresolved = {
        key_id: key for key_id, key in candidate_keys.items()
        if not registry.has_override(key) and not registry.has_hook(key)
    }
    if not unresolved:
        return

    key_paths = [module_path + path for path in find_key_paths(root, unresolved)]
    rendered = ", ".join(key_paths)
    if len(rendered) > config.key_report_limit:
        rendered = rendered[:config.key_report_limit] + "..."

    raise UnresolvableStaticKeyError(
        f"Encountered reference-type keys ({len(unresolved)}) in module {module_path}. "
        f"Reference-type keys cannot be found again by importing the module. "
        f"Store each key as a value somewhere in the module, register an override "
        f"for it, or call allow_reference_keys({module_path!r}) to disable the "
        f"check.\n\nKeys in: {rendered}",
        module_path=module_path,
        key_paths=key_paths,
    )


def find_key_paths(root: Any, keys: Dict[int, Any]) -> List[str]:
    """
    Find the access paths of every dict holding one of ``keys``.

    Args:
        root: Value to search from
        keys: Keys to look for, indexed by ``id()``

    Returns:
        Rendered step paths relative to ``root``, in depth-first order; each
        value is visited once
    """
    result = []
    seen: Set[int] = set()
    stack: List[Tuple[Any, Tuple[Step, ...]]] = [(root, ())]
    is_root = True

    while stack:
        current, key_path = stack.pop()
        if id(current) in seen or not _traversable(current, is_root):
            is_root = False
            continue
        is_root = False
        seen.add(id(current))

        if type(current) is dict and any(id(key) in keys for key in current):
            result.append(render_path(key_path))

        pending = [(child, key_path + (step,)) for step, child in children(current)]
        stack.extend(reversed(pending))

    return result
