"""
Error types raised while dumping a value graph.

Every error aborts the current dump call and propagates to the caller
unchanged; warnings are collected separately and never raised.
"""

from typing import Optional, Any, Dict, List


class DumpError(Exception):
    """
    Base exception for all graphdump errors.

    Carries a structured ``details`` mapping alongside the message so that
    callers (and the CLI) can report the offending access path.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize dump error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UnsupportedTypeError(DumpError):
    """Raised in strict mode for a value with no structural rule and no override."""

    def __init__(self, message: str,
                 type_name: str,
                 path: str,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.type_name = type_name
        self.path = path

        self.details.update({
            'type_name': type_name,
            'path': path
        })


class OverrideContractError(DumpError):
    """
    Raised when an override returns something that is not a recipe.

    A recipe is either a string holding a Python expression or a callable
    producing the value at load time.
    """

    def __init__(self, message: str,
                 source: str,
                 path: str,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.source = source
        self.path = path

        self.details.update({
            'source': source,
            'path': path
        })


class UnencodableCallableError(DumpError):
    """Raised when a callable's code cannot be extracted."""

    def __init__(self, message: str,
                 path: str,
                 hint: str = "register an override for it",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.path = path
        self.hint = hint

        self.details.update({
            'path': path,
            'hint': hint
        })


class UnresolvableStaticKeyError(DumpError):
    """
    Raised by static marking when reference-type dict keys cannot be reached.

    A statically marked value is rebuilt by walking a path of attribute,
    item and capture steps from an importable module. A key that is itself
    a reference type cannot be rebuilt that way, so every path holding one
    is reported.
    """

    def __init__(self, message: str,
                 module_path: str,
                 key_paths: List[str],
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.module_path = module_path
        self.key_paths = key_paths

        self.details.update({
            'module_path': module_path,
            'key_paths': key_paths
        })


def is_path_error(error: Exception) -> bool:
    """Check if error carries a single access path."""
    return isinstance(error, (UnsupportedTypeError, OverrideContractError,
                              UnencodableCallableError))
