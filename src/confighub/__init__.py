"""
ConfigHub client.

Modules:
- client: `ConfigHub` session (pull, snapshot file, push wiring)
- values: typed values and their conversion rules
- properties / files: tables decoded from a pull
- push_queue: key changes accumulated for a push
- transport: httpx wrapper used for the HTTP calls
"""

from .client import ConfigHub
from .errors import (
    ConfigError,
    ContextMismatchError,
    DecodeError,
    FormatError,
    NotPulledError,
    RemoteError,
    TransportError,
    TypeMismatchError,
    UnsupportedValueTypeError,
)
from .files import Files
from .properties import Properties
from .push_queue import PushKey, PushQueue, PushResponse, ValueDataType
from .values import TypedValue, ValueKind

__all__ = [
    "ConfigHub",
    "Properties",
    "Files",
    "PushQueue",
    "PushKey",
    "PushResponse",
    "ValueDataType",
    "TypedValue",
    "ValueKind",
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
