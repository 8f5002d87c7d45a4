"""
Structural encoder and program assembly.

A ``Dumper`` turns a value graph into Python statements. Every reference-type
value gets a slot in the program's ``_cache`` table the first time it is
reached, so shared values and cycles become back-references. Functions are
delegated to ``closures``; overrides come from a ``Registry``.
"""

import logging
import types
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from ..config import DumpConfig
from . import closures
from .cache import IdentityCache
from .errors import (
    OverrideContractError,
    UnencodableCallableError,
    UnsupportedTypeError,
)
from .kinds import (
    is_plain_instance,
    is_scalar,
    key_label,
    named_reference,
    scalar_literal,
)
from .program import DumpResult, ProgramBuilder, slot_ref
from .registry import HOOK_NAME, Recipe, Registry, default_registry

logger = logging.getLogger(__name__)

ROOT_NAME = "value"


class Dumper:
    """
    Encodes one value graph at a time.

    The identity cache, path stack, warnings and capture-join table are reset
    by every ``run`` and belong to this instance only; use one ``Dumper`` per
    thread.
    """

    def __init__(self, registry: Optional[Registry] = None,
                 config: Optional[DumpConfig] = None):
        self.registry = registry if registry is not None else default_registry
        self.config = config or DumpConfig()
        self._reset()

    def _reset(self) -> None:
        self.cache = IdentityCache()
        self.program = ProgramBuilder()
        self.warnings: List[str] = []
        self.path: List[str] = []
        # id(cell) -> (cell, owning function slot, index in its closure)
        self.capture_owners: Dict[int, tuple] = {}
        self._exempt: Dict[int, Any] = {}
        self._overriding: Set[int] = set()
        # ids of instances whose __dict__ is still being written, outermost first
        self._building: List[int] = []
        # id(instance) -> insertions that hash it, run once it is complete
        self._deferred: Dict[int, List[str]] = {}

    def run(self, root: Any) -> DumpResult:
        """
        Dump ``root`` into a program.

        Returns:
            DumpResult with the program text and the collected warnings
        """
        self._reset()
        logger.debug(f"Dumping {type(root).__qualname__} value")

        result_expr = self.encode(root)
        program = self.program.render(result_expr)

        logger.debug(
            f"Dumped {len(self.cache)} slots in {len(self.program)} statements "
            f"with {len(self.warnings)} warnings"
        )
        return DumpResult(program=program, warnings=list(self.warnings))

    # -- paths and diagnostics --

    @contextmanager
    def step(self, label: str) -> Iterator[None]:
        """Push an access path step while encoding a child value."""
        self.path.append(label)
        try:
            yield
        finally:
            self.path.pop()

    def current_path(self) -> str:
        return ROOT_NAME + "".join(self.path)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.debug(f"Dump warning: {message}")

    def is_capture_size_exempt(self, function: Any) -> bool:
        return id(function) in self._exempt or self.registry.is_capture_size_exempt(function)

    # -- encoding --

    def encode(self, value: Any) -> str:
        """
        Encode a value, emitting the statements it needs.

        Returns:
            A Python expression evaluating to the rebuilt value
        """
        scalar = is_scalar(value)
        if not scalar:
            slot = self.cache.lookup(value)
            if slot is not None:
                return slot_ref(slot)

        override = self.registry.resolve(value)
        if override is not None:
            return self._encode_override(value, *override)

        if scalar:
            return scalar_literal(value)
        return self._encode_reference(value)

    def assign(self, value: Any, expr: str) -> str:
        """Give ``value`` a slot holding ``expr``."""
        slot, _ = self.cache.get_or_assign(value)
        ref = slot_ref(slot)
        self.program.emit(f"{ref} = {expr}")
        return ref

    def _encode_override(self, value: Any, recipe: Recipe, source: str) -> str:
        if id(value) in self._overriding:
            raise OverrideContractError(
                f"{source} for {self.current_path()} produced a recipe that refers "
                f"back to the value itself",
                source=source, path=self.current_path(),
            )

        if isinstance(recipe, str):
            expr = recipe
        elif callable(recipe):
            # Producers are often large on purpose
            self._exempt[id(recipe)] = recipe
            self._overriding.add(id(value))
            try:
                with self.step(".<override>"):
                    producer = self.encode(recipe)
            finally:
                self._overriding.discard(id(value))
            expr = f"{producer}()"
        else:
            raise OverrideContractError(
                f"{source} returned type {type(recipe).__qualname__!r} for "
                f"{self.current_path()}; it should return a string or a callable",
                source=source, path=self.current_path(),
            )

        if is_scalar(value):
            return f"({expr})"
        return self.assign(value, expr)

    def _encode_reference(self, value: Any) -> str:
        named = named_reference(value)
        if named is not None:
            return self.assign(value, named)

        kind = type(value)
        if kind is dict:
            ref = self.begin_dict(value)
            self.fill_dict(value, ref)
            return ref
        if kind is list:
            return self._encode_list(value)
        if kind is set:
            return self._encode_set(value)
        if kind is tuple:
            return self._encode_immutable(value, _tuple_literal)
        if kind is frozenset:
            return self._encode_immutable(
                value, lambda items: f"frozenset({_list_literal(items)})"
            )
        if kind is types.FunctionType:
            return closures.encode_function(self, value)
        if kind is types.MethodType:
            return closures.encode_method(self, value)
        if kind is types.BuiltinFunctionType:
            return closures.encode_builtin_method(self, value)

        if is_plain_instance(value) and self._class_resolvable(kind):
            return self._encode_instance(value)

        if callable(value) and not isinstance(value, type):
            raise UnencodableCallableError(
                f"Callable {self.current_path()} of type {kind.__qualname__!r} has no "
                f"code object to dump; register an override that recreates it",
                path=self.current_path(),
            )

        return self._unsupported(value)

    def _unsupported(self, value: Any) -> str:
        type_name = type(value).__qualname__
        message = (
            f"graphdump does not support serializing type {type_name!r} of "
            f"{self.current_path()}; define {HOOK_NAME} on the type or register an "
            f"override to define serialization"
        )
        if self.config.strict_mode:
            raise UnsupportedTypeError(message, type_name=type_name, path=self.current_path())

        self.warn(message)
        return "None"

    def _class_resolvable(self, cls: type) -> bool:
        return (
            cls in self.cache
            or named_reference(cls) is not None
            or self.registry.resolve(cls) is not None
        )

    # -- aggregates --

    def begin_dict(self, value: Dict) -> str:
        """Emit an empty dict for ``value`` and return its slot reference."""
        slot, _ = self.cache.get_or_assign(value)
        ref = slot_ref(slot)
        self.program.emit(f"{ref} = {{}}")
        return ref

    def fill_dict(self, value: Dict, ref: str) -> None:
        for key, item in list(value.items()):
            with self.step(key_label(key)):
                key_expr = self.encode(key)
                item_expr = self.encode(item)
            self._emit_keyed(key, f"{ref}[{key_expr}] = {item_expr}")

    def _encode_list(self, value: List) -> str:
        ref = self.assign(value, "[]")
        for index, item in enumerate(list(value)):
            with self.step(f"[{index}]"):
                item_expr = self.encode(item)
            self.program.emit(f"{ref}.append({item_expr})")
        return ref

    def _encode_set(self, value: Set) -> str:
        ref = self.assign(value, "set()")
        for item in list(value):
            with self.step(key_label(item)):
                item_expr = self.encode(item)
            self._emit_keyed(item, f"{ref}.add({item_expr})")
        return ref

    def _encode_immutable(self, value: Any, build: Callable[[List[str]], str]) -> str:
        """
        Tuples and frozensets are built after their items.

        A cycle back to the value must pass through a mutable container,
        which then already holds the value's slot; reuse it.
        """
        items = []
        for index, item in enumerate(value):
            label = f"[{index}]" if type(value) is tuple else key_label(item)
            with self.step(label):
                items.append(self.encode(item))

        slot = self.cache.lookup(value)
        if slot is not None:
            return slot_ref(slot)
        return self.assign(value, build(items))

    def _emit_keyed(self, key: Any, statement: str) -> None:
        """
        Emit a statement that hashes ``key``.

        A key reached through a cycle may be an instance whose attributes are
        not written yet; its ``__hash__`` would fail or use the wrong state.
        Such statements wait until the outermost incomplete instance the key
        depends on has been filled.
        """
        owner = self._incomplete_owner(key)
        if owner is None:
            self.program.emit(statement)
        else:
            self._deferred.setdefault(owner, []).append(statement)

    def _incomplete_owner(self, key: Any) -> Optional[int]:
        if not self._building:
            return None
        involved = set()
        pending = [key]
        while pending:
            item = pending.pop()
            if id(item) in self._building:
                involved.add(id(item))
            elif type(item) is tuple:
                pending.extend(item)
        for owner in self._building:
            if owner in involved:
                return owner
        return None

    def _encode_instance(self, value: Any) -> str:
        with self.step(".__class__"):
            cls_expr = self.encode(type(value))

        ref = self.assign(value, f"{cls_expr}.__new__({cls_expr})")
        self._building.append(id(value))
        try:
            for name, attr in list(vars(value).items()):
                label = f".{name}" if isinstance(name, str) else key_label(name)
                with self.step(label):
                    name_expr = self.encode(name)
                    attr_expr = self.encode(attr)
                # Written to __dict__ directly: no __setattr__ runs before the object is complete
                self.program.emit(f"{ref}.__dict__[{name_expr}] = {attr_expr}")
        finally:
            self._building.remove(id(value))
        for statement in self._deferred.pop(id(value), []):
            self.program.emit(statement)
        return ref


def _tuple_literal(items: List[str]) -> str:
    if len(items) == 1:
        return f"({items[0]},)"
    return f"({', '.join(items)})"


def _list_literal(items: List[str]) -> str:
    return f"[{', '.join(items)}]"