"""
Typed property values.

A `TypedValue` is a tagged union: `kind` names the native representation and
`value` holds the payload in that representation (List and Map payloads are
tuples, so a value never changes after construction). Conversions to other kinds
live in one function per target kind (`as_text`, `as_integer`, ...), each
switching on the source kind, so the whole coercion matrix reads top to bottom:

    source \\ target   Text  Boolean  Integer/Long  Double/Float  List  Map
    Text               =     parse    parse         parse         X     X
    Boolean            str   =        X             X             X     X
    Integer/Long       str   X        convert       convert       X     X
    Double/Float       str   X        convert       convert       X     X
    List               dump  X        X             X             =     X
    Map                dump  X        X             X             X     =

`parse` failures raise `FormatError`; `X` raises `TypeMismatchError`;
`convert` never fails (it may lose precision).
"""

from __future__ import annotations

import json
import math
import re
import struct
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import DecodeError, FormatError, TypeMismatchError


INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1

_INT_RE = re.compile(r"[+-]?\d+")
_FLOAT_RE = re.compile(r"[+-]?(?:NaN|Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


class ValueKind(str, Enum):
    TEXT = "Text"
    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    LONG = "Long"
    DOUBLE = "Double"
    FLOAT = "Float"
    LIST = "List"
    MAP = "Map"


# Wire type tag -> native kind. "Code" is text the service renders as code.
TYPE_TAGS: Dict[str, ValueKind] = {
    "Text": ValueKind.TEXT,
    "Code": ValueKind.TEXT,
    "Boolean": ValueKind.BOOLEAN,
    "Integer": ValueKind.INTEGER,
    "Long": ValueKind.LONG,
    "Double": ValueKind.DOUBLE,
    "Float": ValueKind.FLOAT,
    "Map": ValueKind.MAP,
    "List": ValueKind.LIST,
}

DEFAULT_TYPE_TAG = "Text"


@dataclass(frozen=True)
class TypedValue:
    kind: ValueKind
    value: Any
    deprecated: bool = False
    encryption_group: Optional[str] = None

    def __post_init__(self) -> None:
        if self.value is None:
            raise ValueError("TypedValue payload cannot be None")
        # Containers are held as tuples so the value stays immutable and hashable
        if self.kind is ValueKind.LIST and not isinstance(self.value, tuple):
            object.__setattr__(self, "value", tuple(self.value))
        elif self.kind is ValueKind.MAP and not isinstance(self.value, tuple):
            object.__setattr__(self, "value", tuple(dict(self.value).items()))

    def is_text(self) -> bool:
        return self.kind is ValueKind.TEXT

    def is_boolean(self) -> bool:
        return self.kind is ValueKind.BOOLEAN

    def is_integer(self) -> bool:
        return self.kind is ValueKind.INTEGER

    def is_long(self) -> bool:
        return self.kind is ValueKind.LONG

    def is_double(self) -> bool:
        return self.kind is ValueKind.DOUBLE

    def is_float(self) -> bool:
        return self.kind is ValueKind.FLOAT

    def is_list(self) -> bool:
        return self.kind is ValueKind.LIST

    def is_map(self) -> bool:
        return self.kind is ValueKind.MAP

    def get(self) -> str:
        return as_text(self)

    def get_boolean(self) -> bool:
        return as_boolean(self)

    def get_integer(self) -> int:
        return as_integer(self)

    def get_long(self) -> int:
        return as_long(self)

    def get_double(self) -> float:
        return as_double(self)

    def get_float(self) -> float:
        return as_float(self)

    def get_list(self) -> List[str]:
        return as_list(self)

    def get_map(self) -> Dict[str, str]:
        return as_map(self)


# --------------- Numeric helpers ---------------
def to_float32(x: float) -> float:
    """Round a double to the nearest IEEE single-precision value."""
    try:
        return struct.unpack("<f", struct.pack("<f", x))[0]
    except OverflowError:
        return math.copysign(math.inf, x)


def _wrap_int32(n: int) -> int:
    return ((n - INT32_MIN) % 2**32) + INT32_MIN


def _float_to_int(x: float, lo: int, hi: int) -> int:
    # Truncate toward zero, saturate at the bounds, NaN -> 0
    if math.isnan(x):
        return 0
    if x <= lo:
        return lo
    if x >= hi:
        return hi
    return int(x)


def _nonfinite_text(x: float) -> str:
    if math.isnan(x):
        return "NaN"
    return "Infinity" if x > 0 else "-Infinity"


def _double_text(x: float) -> str:
    return repr(x) if math.isfinite(x) else _nonfinite_text(x)


def _float32_text(x: float) -> str:
    """Shortest decimal text that reads back to the same float32."""
    if not math.isfinite(x):
        return _nonfinite_text(x)
    for digits in range(1, 10):
        candidate = float(f"{x:.{digits}g}")
        if to_float32(candidate) == x:
            return repr(candidate)
    return repr(x)


# --------------- Text parsing ---------------
def _parse_boolean(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise FormatError(f"Cannot parse {text!r} as Boolean")


def _parse_int(text: str, lo: int, hi: int, kind: ValueKind) -> int:
    if not _INT_RE.fullmatch(text):
        raise FormatError(f"Cannot parse {text!r} as {kind.value}")
    n = int(text)
    if n < lo or n > hi:
        raise FormatError(f"{text!r} is out of range for {kind.value}")
    return n


def _parse_float(text: str, kind: ValueKind) -> float:
    stripped = text.strip()
    if not _FLOAT_RE.fullmatch(stripped):
        raise FormatError(f"Cannot parse {text!r} as {kind.value}")
    return float(stripped)


def _mismatch(v: TypedValue, target: ValueKind) -> TypeMismatchError:
    return TypeMismatchError(f"{v.kind.value} value cannot be read as {target.value}")


# --------------- Coercion (one function per target kind) ---------------
def as_text(v: TypedValue) -> str:
    k = v.kind
    if k is ValueKind.TEXT:
        return v.value
    if k is ValueKind.BOOLEAN:
        return "true" if v.value else "false"
    if k in (ValueKind.INTEGER, ValueKind.LONG):
        return str(v.value)
    if k is ValueKind.DOUBLE:
        return _double_text(v.value)
    if k is ValueKind.FLOAT:
        return _float32_text(v.value)
    if k is ValueKind.LIST:
        return repr(list(v.value))
    return repr(dict(v.value))


def as_boolean(v: TypedValue) -> bool:
    if v.kind is ValueKind.BOOLEAN:
        return v.value
    if v.kind is ValueKind.TEXT:
        return _parse_boolean(v.value)
    raise _mismatch(v, ValueKind.BOOLEAN)


def as_integer(v: TypedValue) -> int:
    k = v.kind
    if k is ValueKind.INTEGER:
        return v.value
    if k is ValueKind.LONG:
        return _wrap_int32(v.value)
    if k in (ValueKind.DOUBLE, ValueKind.FLOAT):
        return _float_to_int(v.value, INT32_MIN, INT32_MAX)
    if k is ValueKind.TEXT:
        return _parse_int(v.value, INT32_MIN, INT32_MAX, ValueKind.INTEGER)
    raise _mismatch(v, ValueKind.INTEGER)


def as_long(v: TypedValue) -> int:
    k = v.kind
    if k in (ValueKind.INTEGER, ValueKind.LONG):
        return v.value
    if k in (ValueKind.DOUBLE, ValueKind.FLOAT):
        return _float_to_int(v.value, INT64_MIN, INT64_MAX)
    if k is ValueKind.TEXT:
        return _parse_int(v.value, INT64_MIN, INT64_MAX, ValueKind.LONG)
    raise _mismatch(v, ValueKind.LONG)


def as_double(v: TypedValue) -> float:
    k = v.kind
    if k in (ValueKind.DOUBLE, ValueKind.FLOAT):
        return v.value
    if k in (ValueKind.INTEGER, ValueKind.LONG):
        return float(v.value)
    if k is ValueKind.TEXT:
        return _parse_float(v.value, ValueKind.DOUBLE)
    raise _mismatch(v, ValueKind.DOUBLE)


def as_float(v: TypedValue) -> float:
    k = v.kind
    if k is ValueKind.FLOAT:
        return v.value
    if k is ValueKind.DOUBLE:
        return to_float32(v.value)
    if k in (ValueKind.INTEGER, ValueKind.LONG):
        return to_float32(float(v.value))
    if k is ValueKind.TEXT:
        return to_float32(_parse_float(v.value, ValueKind.FLOAT))
    raise _mismatch(v, ValueKind.FLOAT)


def as_list(v: TypedValue) -> List[str]:
    if v.kind is ValueKind.LIST:
        return list(v.value)
    raise _mismatch(v, ValueKind.LIST)


def as_map(v: TypedValue) -> Dict[str, str]:
    if v.kind is ValueKind.MAP:
        return dict(v.value)
    raise _mismatch(v, ValueKind.MAP)


# --------------- Wire decoding ---------------
def _decode_text(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float)):
        return json.dumps(raw)
    raise DecodeError(f"Expected a scalar text value, got {type(raw).__name__}")


def _decode_boolean(raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        try:
            return _parse_boolean(raw)
        except FormatError as exc:
            raise DecodeError(str(exc)) from exc
    raise DecodeError(f"Expected a Boolean value, got {type(raw).__name__}")


def _decode_int(raw: Any, lo: int, hi: int, kind: ValueKind) -> int:
    if isinstance(raw, bool):
        raise DecodeError(f"Expected an {kind.value} value, got bool")
    if isinstance(raw, float):
        if not raw.is_integer():
            raise DecodeError(f"Expected an {kind.value} value, got {raw!r}")
        raw = int(raw)
    if isinstance(raw, int):
        if raw < lo or raw > hi:
            raise DecodeError(f"{raw} is out of range for {kind.value}")
        return raw
    if isinstance(raw, str):
        try:
            return _parse_int(raw, lo, hi, kind)
        except FormatError as exc:
            raise DecodeError(str(exc)) from exc
    raise DecodeError(f"Expected an {kind.value} value, got {type(raw).__name__}")


def _decode_float(raw: Any, kind: ValueKind) -> float:
    if isinstance(raw, bool):
        raise DecodeError(f"Expected a {kind.value} value, got bool")
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return _parse_float(raw, kind)
        except FormatError as exc:
            raise DecodeError(str(exc)) from exc
    raise DecodeError(f"Expected a {kind.value} value, got {type(raw).__name__}")


def _decode_list(raw: Any) -> Tuple[str, ...]:
    if not isinstance(raw, list):
        raise DecodeError(f"Expected a List value, got {type(raw).__name__}")
    return tuple(_decode_text(item) for item in raw)


def _decode_map(raw: Any) -> Tuple[Tuple[str, str], ...]:
    if not isinstance(raw, dict):
        raise DecodeError(f"Expected a Map value, got {type(raw).__name__}")
    return tuple((str(k), _decode_text(v)) for k, v in raw.items())


def decode_value(
    type_tag: Optional[str],
    raw: Any,
    *,
    deprecated: bool = False,
    encryption_group: Optional[str] = None,
) -> TypedValue:
    """
    Build a `TypedValue` from a wire `val` and its declared type tag.

    - A missing tag means Text.
    - A value in an encryption group is ciphertext and always decodes as Text,
      whatever the declared tag.
    - Raises `DecodeError` for unknown tags, null values, or a payload whose
      shape does not fit the declared kind.
    """
    if raw is None:
        raise DecodeError("Property value is missing")

    if encryption_group is not None:
        kind = ValueKind.TEXT
    else:
        tag = type_tag or DEFAULT_TYPE_TAG
        if tag not in TYPE_TAGS:
            raise DecodeError(f"Unknown value type {tag!r}")
        kind = TYPE_TAGS[tag]

    if kind is ValueKind.TEXT:
        value: Any = _decode_text(raw)
    elif kind is ValueKind.BOOLEAN:
        value = _decode_boolean(raw)
    elif kind is ValueKind.INTEGER:
        value = _decode_int(raw, INT32_MIN, INT32_MAX, kind)
    elif kind is ValueKind.LONG:
        value = _decode_int(raw, INT64_MIN, INT64_MAX, kind)
    elif kind is ValueKind.DOUBLE:
        value = _decode_float(raw, kind)
    elif kind is ValueKind.FLOAT:
        value = to_float32(_decode_float(raw, kind))
    elif kind is ValueKind.LIST:
        value = _decode_list(raw)
    else:
        value = _decode_map(raw)

    return TypedValue(
        kind=kind,
        value=value,
        deprecated=deprecated,
        encryption_group=encryption_group,
    )


__all__ = [
    "ValueKind",
    "TypedValue",
    "TYPE_TAGS",
    "decode_value",
    "as_text",
    "as_boolean",
    "as_integer",
    "as_long",
    "as_double",
    "as_float",
    "as_list",
    "as_map",
    "to_float32",
]
