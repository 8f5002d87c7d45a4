"""Shared fixtures for the graphdump test suite."""

import sys
from pathlib import Path

import pytest

# Resource modules are imported by loaded programs as ``resources.<name>``
TESTS_DIR = str(Path(__file__).parent)
if TESTS_DIR not in sys.path:
    sys.path.insert(0, TESTS_DIR)

from graphdump.config import DumpConfig  # noqa: E402
from graphdump.core.encoder import Dumper  # noqa: E402
from graphdump.core.program import loads  # noqa: E402
from graphdump.core.registry import Registry  # noqa: E402


@pytest.fixture
def registry():
    """Private registry so tests never touch the default one."""
    return Registry()


@pytest.fixture
def roundtrip(registry):
    """Dump with the private registry and load the program again."""

    def _roundtrip(value, **config):
        result = Dumper(registry, DumpConfig(**config)).run(value)
        return loads(result.program)

    return _roundtrip
