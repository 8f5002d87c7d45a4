"""Registries filled by resource modules at import time."""

from graphdump.core.registry import Registry

MARKED = Registry()
