"""
Closure encoder.

A function is rebuilt from its marshalled code object, its globals and a
fresh tuple of cells. Cells shared with a function emitted earlier in the
same run are not rebuilt: the new function receives the earlier function's
cell, so closures that shared a variable keep sharing it.
"""

import logging
import marshal
import types
from typing import Any, List

from .errors import UnencodableCallableError
from .kinds import module_namespace_name, qualified_name
from .program import slot_ref

logger = logging.getLogger(__name__)


def encode_function(dumper: Any, function: types.FunctionType) -> str:
    """
    Emit a Python function with its captures.

    Args:
        dumper: The running ``Dumper``
        function: Function to encode

    Returns:
        Slot reference of the rebuilt function
    """
    if dumper.config.deterministic_resolution:
        found = qualified_name(function)
        if found is not None:
            return dumper.assign(function, f"_require({found[0]!r}).{found[1]}")

    try:
        code = marshal.dumps(function.__code__)
    except ValueError as e:
        raise UnencodableCallableError(
            f"Function {dumper.current_path()} cannot be marshalled ({e}); if it "
            f"holds runtime state, register an override that recreates it",
            path=dumper.current_path(),
        )

    env = function.__globals__
    pending_env = None
    if (env not in dumper.cache and module_namespace_name(env) is None
            and dumper.registry.resolve(env) is None):
        # Non-module globals usually hold the function itself; fill them later
        env_expr = dumper.begin_dict(env)
        pending_env = env
    else:
        with dumper.step(".<globals>"):
            env_expr = dumper.encode(env)

    slot, _ = dumper.cache.get_or_assign(function)
    ref = slot_ref(slot)

    cells = function.__closure__ or ()
    cell_exprs: List[str] = []
    owned: List[int] = []
    for index, cell in enumerate(cells):
        owner = dumper.capture_owners.get(id(cell))
        if owner is not None:
            _, owner_slot, owner_index = owner
            logger.debug(
                f"Capture {function.__code__.co_freevars[index]!r} of "
                f"{function.__qualname__} joins {slot_ref(owner_slot)}"
            )
            cell_exprs.append(f"{slot_ref(owner_slot)}.__closure__[{owner_index}]")
        else:
            dumper.capture_owners[id(cell)] = (cell, slot, index)
            cell_exprs.append("types.CellType()")
            owned.append(index)

    if not cells:
        closure_expr = "None"
    elif len(cells) == 1:
        closure_expr = f"({cell_exprs[0]},)"
    else:
        closure_expr = f"({', '.join(cell_exprs)})"

    dumper.program.emit(
        f"{ref} = types.FunctionType(marshal.loads({code!r}), {env_expr}, "
        f"{function.__name__!r}, None, {closure_expr})"
    )

    if pending_env is not None:
        with dumper.step(".<globals>"):
            dumper.fill_dict(pending_env, env_expr)

    _encode_captures(dumper, function, ref, owned)
    _encode_attributes(dumper, function, ref)
    return ref


def _encode_captures(dumper: Any, function: types.FunctionType, ref: str,
                     owned: List[int]) -> None:
    names = function.__code__.co_freevars
    cells = function.__closure__
    exempt = dumper.is_capture_size_exempt(function)
    limit = dumper.config.capture_size_limit

    for index in owned:
        name = names[index]
        try:
            contents = cells[index].cell_contents
        except ValueError:
            # Never assigned in the defining scope
            continue

        with dumper.step(f".<capture {name}>"):
            before = dumper.program.size
            expr = dumper.encode(contents)
            size = dumper.program.size - before + len(expr)
            if not exempt and size > limit:
                dumper.warn(
                    f"Big capture {name!r} ({size} characters) in {dumper.current_path()}"
                )
        dumper.program.emit(f"{ref}.__closure__[{index}].cell_contents = {expr}")


def _encode_attributes(dumper: Any, function: types.FunctionType, ref: str) -> None:
    if function.__defaults__ is not None:
        with dumper.step(".<defaults>"):
            expr = dumper.encode(function.__defaults__)
        dumper.program.emit(f"{ref}.__defaults__ = {expr}")

    if function.__kwdefaults__:
        with dumper.step(".<kwdefaults>"):
            expr = dumper.encode(function.__kwdefaults__)
        dumper.program.emit(f"{ref}.__kwdefaults__ = {expr}")

    if function.__qualname__ != function.__name__:
        dumper.program.emit(f"{ref}.__qualname__ = {function.__qualname__!r}")
    if function.__module__ != function.__globals__.get("__name__"):
        dumper.program.emit(f"{ref}.__module__ = {function.__module__!r}")
    if isinstance(function.__doc__, str):
        dumper.program.emit(f"{ref}.__doc__ = {function.__doc__!r}")

    for name, attr in list(vars(function).items()):
        with dumper.step(f".{name}"):
            expr = dumper.encode(attr)
        dumper.program.emit(f"{ref}.__dict__[{name!r}] = {expr}")

    if dumper.registry.is_capture_size_exempt(function):
        dumper.program.emit(f"_rt.ignore_capture_size({ref})")


def encode_method(dumper: Any, method: types.MethodType) -> str:
    """Bound methods are immutable: build the parts, then the method."""
    with dumper.step(".__func__"):
        func_expr = dumper.encode(method.__func__)
    with dumper.step(".__self__"):
        self_expr = dumper.encode(method.__self__)

    slot = dumper.cache.lookup(method)
    if slot is not None:
        return slot_ref(slot)
    return dumper.assign(method, f"types.MethodType({func_expr}, {self_expr})")


def encode_builtin_method(dumper: Any, method: types.BuiltinMethodType) -> str:
    """Builtin methods bound to an object are looked up on the rebuilt object."""
    owner = method.__self__
    if owner is None or isinstance(owner, types.ModuleType):
        raise UnencodableCallableError(
            f"Builtin {dumper.current_path()} ({method.__name__}) cannot be found "
            f"again by its qualified name; register an override for it",
            path=dumper.current_path(),
        )

    with dumper.step(".__self__"):
        self_expr = dumper.encode(owner)

    slot = dumper.cache.lookup(method)
    if slot is not None:
        return slot_ref(slot)
    return dumper.assign(method, f"getattr({self_expr}, {method.__name__!r})")
