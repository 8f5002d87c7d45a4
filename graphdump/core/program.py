"""Program text assembly and loading."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .. import runtime

RESULT_NAME = "result"
PROGRAM_FILENAME = "<graphdump>"

PREAMBLE = (
    "import importlib\n"
    "import marshal\n"
    "import types\n"
    "\n"
    "_require = importlib.import_module\n"
    f"_rt = _require({runtime.__name__!r})\n"
    "_cache = {}\n"
)


def slot_ref(slot: int) -> str:
    """Expression reading a slot of the program's cache table."""
    return f"_cache[{slot}]"


@dataclass
class DumpResult:
    """Finished program text with the warnings collected while building it."""

    program: str
    warnings: List[str] = field(default_factory=list)


class ProgramBuilder:
    """
    Accumulates the statements of a program.

    Statements are emitted in dependency order: everything an expression
    refers to is emitted before the statement using it. ``size`` counts the
    characters emitted so far and is used to measure captures.
    """

    def __init__(self) -> None:
        self.statements: List[str] = []
        self.size = 0

    def emit(self, statement: str) -> None:
        self.statements.append(statement)
        self.size += len(statement) + 1

    def render(self, result_expr: str) -> str:
        """Wrap the statements in the preamble and bind the result."""
        body = "\n".join(self.statements)
        if body:
            body += "\n"
        return f"{PREAMBLE}\n{body}{RESULT_NAME} = {result_expr}\n"

    def __len__(self) -> int:
        return len(self.statements)


def loads(program: str) -> Any:
    """
    Execute a dumped program and return the value it rebuilds.

    Args:
        program: Text produced by ``dumps`` or ``Dumper.run``

    Returns:
        The reconstructed root value
    """
    namespace: Dict[str, Any] = {}
    exec(compile(program, PROGRAM_FILENAME, "exec"), namespace)
    return namespace[RESULT_NAME]
