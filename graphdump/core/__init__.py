"""Encoding engine: identity cache, overrides, encoders and static marking."""

from .cache import IdentityCache
from .encoder import Dumper
from .errors import (
    DumpError,
    OverrideContractError,
    UnencodableCallableError,
    UnresolvableStaticKeyError,
    UnsupportedTypeError,
)
from .program import DumpResult, loads
from .registry import Registry, default_registry
from .static import find_key_paths, mark

__all__ = [
    "IdentityCache",
    "Dumper",
    "DumpError",
    "OverrideContractError",
    "UnencodableCallableError",
    "UnresolvableStaticKeyError",
    "UnsupportedTypeError",
    "DumpResult",
    "loads",
    "Registry",
    "default_registry",
    "find_key_paths",
    "mark",
]
