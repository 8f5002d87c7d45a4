"""graphdump - Serialize Python value graphs into programs that rebuild them."""

__version__ = "0.1.0"

from .api import (
    allow_reference_keys,
    dumps,
    get_warnings,
    ignore_capture_size,
    loads,
    mark,
    register,
)
from .config import DumpConfig
from .core.errors import (
    DumpError,
    OverrideContractError,
    UnencodableCallableError,
    UnresolvableStaticKeyError,
    UnsupportedTypeError,
)
from .core.registry import Registry, default_registry

__all__ = [
    "allow_reference_keys",
    "dumps",
    "get_warnings",
    "ignore_capture_size",
    "loads",
    "mark",
    "register",
    "DumpConfig",
    "DumpError",
    "OverrideContractError",
    "UnencodableCallableError",
    "UnresolvableStaticKeyError",
    "UnsupportedTypeError",
    "Registry",
    "default_registry",
    "__version__",
]
