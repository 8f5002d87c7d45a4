"""Override registry: user-supplied reconstruction recipes."""

import logging
from typing import Any, Callable, Dict, Optional, Set, Tuple, Union

logger = logging.getLogger(__name__)

# A recipe is a Python expression or a zero-argument producer.
Recipe = Union[str, Callable[[], Any]]

HOOK_NAME = "__graphdump__"


class Registry:
    """
    Holds every override consulted while dumping.

    Handlers are keyed by identity, so unhashable values (dicts, lists) can
    carry an override too. A registry is shared state: register everything
    before dumping, never while a dump is running.
    """

    def __init__(self) -> None:
        self._handlers: Dict[int, Tuple[Any, Recipe]] = {}
        self._capture_size_exempt: Dict[int, Any] = {}
        self._reference_key_modules: Set[str] = set()

    def register(self, value: Any, recipe: Recipe) -> Optional[Recipe]:
        """
        Register a recipe for exactly this value.

        Args:
            value: The value to override
            recipe: Python expression or zero-argument producer

        Returns:
            The recipe previously registered for the value, if any
        """
        previous = self._handlers.get(id(value))
        if previous is not None:
            logger.debug(f"Replacing recipe for {type(value).__qualname__} value")
        self._handlers[id(value)] = (value, recipe)
        return previous[1] if previous is not None else None

    def unregister(self, value: Any) -> None:
        """Drop the exact-value recipe of ``value`` if there is one."""
        self._handlers.pop(id(value), None)

    def has_override(self, value: Any) -> bool:
        """Check for an exact-value recipe."""
        return id(value) in self._handlers

    def has_hook(self, value: Any) -> bool:
        """Check whether the value's type declares a ``__graphdump__`` hook."""
        return callable(getattr(type(value), HOOK_NAME, None))

    def resolve(self, value: Any) -> Optional[Tuple[Recipe, str]]:
        """
        Find the recipe for a value.

        The exact-value table is consulted first, then the ``__graphdump__``
        hook of the value's type. The hook may return None to fall back to
        structural encoding.

        Returns:
            Tuple of (recipe, source description) or None
        """
        entry = self._handlers.get(id(value))
        if entry is not None:
            return entry[1], "Registry.register()"

        hook = getattr(type(value), HOOK_NAME, None)
        if callable(hook):
            recipe = hook(value)
            if recipe is not None:
                return recipe, f"{type(value).__qualname__}.{HOOK_NAME}()"

        return None

    def ignore_capture_size(self, function: Callable) -> Callable:
        """Silence oversized-capture warnings for ``function``; returns it."""
        self._capture_size_exempt[id(function)] = function
        return function

    def is_capture_size_exempt(self, function: Any) -> bool:
        return id(function) in self._capture_size_exempt

    def allow_reference_keys(self, module_path: str) -> None:
        """Disable the static-key check for values marked under ``module_path``."""
        self._reference_key_modules.add(module_path)

    def allows_reference_keys(self, module_path: str) -> bool:
        return module_path in self._reference_key_modules

    def clear(self) -> None:
        """Remove every registration."""
        self._handlers.clear()
        self._capture_size_exempt.clear()
        self._reference_key_modules.clear()

    def __len__(self) -> int:
        return len(self._handlers)


# Process-wide registry used by the convenience API and by loaded programs.
default_registry = Registry()
