from __future__ import annotations


class ConfigError(RuntimeError):
    """Base error for the ConfigHub client.

    Raised directly when a required session parameter (token, account and
    repository name, or context) is blank or missing.
    """


class ContextMismatchError(ConfigError):
    """Decoded payload context differs from the requested context."""


class RemoteError(ConfigError):
    """Service returned an error message or a non-success status."""


class TransportError(RemoteError):
    """The HTTP call itself failed (connection, timeout, protocol)."""


class DecodeError(ConfigError):
    """Payload shape does not match the expected schema."""


class TypeMismatchError(ConfigError, TypeError):
    """Value kind cannot be represented as the requested kind."""


class FormatError(ConfigError, ValueError):
    """Text value cannot be parsed into the requested kind."""


class NotPulledError(ConfigError, LookupError):
    """File path was never present in a decoded file table."""


class UnsupportedValueTypeError(ConfigError, TypeError):
    """Push value has a shape the push payload cannot carry."""


__all__ = [
    "ConfigError",
    "ContextMismatchError",
    "RemoteError",
    "TransportError",
    "DecodeError",
    "TypeMismatchError",
    "FormatError",
    "NotPulledError",
    "UnsupportedValueTypeError",
]
