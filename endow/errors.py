"""
Endow error taxonomy.

Every error raised by the evaluator, the transform pipeline and the module
record compiler derives from EndowError and from the closest builtin
exception, so hosts can catch either ``UnboundNameError`` or ``NameError``.

Key classes:
- SourceSyntaxError: Malformed expression, program or data text
- RestrictedSyntaxError: Source reaches for host internals through attributes
- UnboundNameError: Reference to a name outside the capability set
- TypeMismatchError: Caller passed the wrong shape of argument
- UnsupportedExtensionError: No parser registered for a location's extension
- ConfigurationError: Registry or config construction failed (aggregated)
- TransformError: A transform hook broke the pipeline contract
- LinkError: A module asked for a specifier the linker did not resolve
"""

from __future__ import annotations

from typing import Any, Optional, Sequence, Tuple

DEFAULT_LOCATION = "<sandbox>"


class EndowError(Exception):
    """Base exception for all endow errors."""
    pass


class SourceSyntaxError(EndowError, SyntaxError):
    """Raised when source text is not a valid expression, program or data."""

    def __init__(self,
                 message: str,
                 location: str = DEFAULT_LOCATION,
                 lineno: Optional[int] = None,
                 offset: Optional[int] = None,
                 text: Optional[str] = None):
        super().__init__(message, (location, lineno, offset, text))
        self.location = location


class RestrictedSyntaxError(SourceSyntaxError):
    """Raised when source accesses private or introspection attributes."""

    def __init__(self,
                 attribute: str,
                 location: str = DEFAULT_LOCATION,
                 lineno: Optional[int] = None,
                 offset: Optional[int] = None):
        super().__init__(
            f"Access to attribute {attribute!r} is not permitted in sandboxed source",
            location,
            lineno,
            offset,
        )
        self.attribute = attribute


class UnboundNameError(EndowError, NameError):
    """Raised when sandboxed source references a name it was not granted."""

    def __init__(self, name: str, location: str = DEFAULT_LOCATION):
        super().__init__(f"name {name!r} is not defined in {location}")
        self.name = name
        self.location = location


class TypeMismatchError(EndowError, TypeError):
    """Raised before evaluation when an argument has the wrong shape."""

    def __init__(self, argument: str, value: Any, expected: str = "a string", context: str = ""):
        prefix = f"{context}, " if context else ""
        super().__init__(
            f"{prefix}{argument} must be {expected}, got {type(value).__name__} {value!r}"
        )
        self.argument = argument
        self.value = value


class UnsupportedExtensionError(EndowError, LookupError):
    """Raised when a location's extension has no registered parser."""

    def __init__(self, extension: str, location: str):
        super().__init__(
            f"Cannot parse module at {location}, no parser configured for extension {extension!r}"
        )
        self.extension = extension
        self.location = location


class ConfigurationError(EndowError, ValueError):
    """Raised when a registry or configuration cannot be built."""

    def __init__(self, message: str, invalid: Sequence[Tuple[str, str]] = ()):
        super().__init__(message)
        self.invalid = tuple(invalid)


class TransformError(EndowError, TypeError):
    """Raised when a transform hook returns something the pipeline cannot use."""

    def __init__(self, message: str, hook: Any = None):
        super().__init__(message)
        self.hook = hook


class LinkError(EndowError, LookupError):
    """Raised when a module requires a specifier outside its resolved imports."""

    def __init__(self, specifier: str, location: str):
        super().__init__(
            f"Cannot require {specifier!r} from {location}, "
            f"it was not declared as an import or was not resolved by the linker"
        )
        self.specifier = specifier
        self.location = location
