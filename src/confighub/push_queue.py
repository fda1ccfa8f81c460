from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from .errors import ConfigError, UnsupportedValueTypeError

if TYPE_CHECKING:  # pragma: no cover
    from .client import ConfigHub


logger = logging.getLogger(__name__)

_SCALARS = (str, bool, int, float, Decimal)


class ValueDataType(str, Enum):
    """Value data type attribute of a property key."""

    TEXT = "Text"
    CODE = "Code"
    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    LONG = "Long"
    DOUBLE = "Double"
    FLOAT = "Float"
    MAP = "Map"
    LIST = "List"


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _checked_value(value: Any) -> Any:
    """Validate a push value and take a private copy of containers."""
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, Mapping):
        if all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
            return dict(value)
        raise UnsupportedValueTypeError("Map values must map str keys to str values")
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        if all(isinstance(item, str) for item in value):
            return list(value)
        raise UnsupportedValueTypeError("List values must contain only str items")
    raise UnsupportedValueTypeError(
        f"Unsupported push value type: {type(value).__name__}"
    )


def _encode_value(value: Any) -> Any:
    # Containers are the only values sent as structured JSON
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return _scalar_text(value)


@dataclass(frozen=True)
class PendingValue:
    value: Any
    context: str
    active: bool = True

    def encode(self) -> Dict[str, Any]:
        return {
            "context": self.context,
            "active": self.active,
            "value": _encode_value(self.value),
        }


class PushKey:
    """
    All pending changes for one property key: key attributes and values per context.

    Setters return the key so calls can be chained:

        queue.key("db.port").enable_push().set_value_data_type("Integer").set_value(3306, "*;MyApp")

    Attributes that are never set are left out of the payload, which tells the
    service to leave them unchanged.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._attributes: Dict[str, Any] = {}
        self._values: Dict[str, PendingValue] = {}

    def set_value(self, value: Any, context: str, active: bool = True) -> "PushKey":
        """Create or replace the value for `context`."""
        self._values[context] = PendingValue(_checked_value(value), context, active)
        return self

    def set_readme(self, readme: str) -> "PushKey":
        self._attributes["readme"] = readme
        return self

    def enable_push(self) -> "PushKey":
        self._attributes["push"] = True
        return self

    def disable_push(self) -> "PushKey":
        self._attributes["push"] = False
        return self

    def set_value_data_type(self, vdt: Union[ValueDataType, str]) -> "PushKey":
        self._attributes["vdt"] = ValueDataType(vdt).value
        return self

    def deprecate(self) -> "PushKey":
        self._attributes["deprecated"] = True
        return self

    def not_deprecated(self) -> "PushKey":
        self._attributes["deprecated"] = False
        return self

    def set_security_group(self, security_group: str, password: str) -> "PushKey":
        """Assign the key to a security group; also required when editing a key already in one."""
        self._attributes["securityGroup"] = security_group
        self._attributes["password"] = password
        return self

    @property
    def values(self) -> List[PendingValue]:
        return list(self._values.values())

    def encode(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"key": self.name}
        for attr, value in self._attributes.items():
            out[attr] = _scalar_text(value)
        if self._values:
            out["values"] = [v.encode() for v in self._values.values()]
        return out


@dataclass(frozen=True)
class PushResponse:
    """Outcome of a flush: HTTP status (0 when the call never completed) and message."""

    status_code: int
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class PushQueue:
    """
    Accumulates key changes and pushes them in one request.

    Usage
        hub = ConfigHub(account="Acme", repository_name="Main", application_name="MyApp")
        hub.push_queue.enable_key_creation()
        hub.push_queue.key("access.port").enable_push().set_value(1002, "*;MyApp")
        resp = hub.push_queue.flush()

    Notes
    - Key creation is disabled by default; pushes naming unknown keys are then
      rejected by the service.
    - `flush()` always empties the queue, whatever the outcome. Failures to
      reach the service are reported as `PushResponse(status_code=0, ...)`
      instead of being raised.
    """

    def __init__(self, session: "ConfigHub") -> None:
        self._session = session
        self._keys: Dict[str, PushKey] = {}
        self._enable_key_creation = False
        self._change_comment: Optional[str] = None
        self._lock = threading.Lock()

    def key(self, name: str) -> PushKey:
        with self._lock:
            key = self._keys.get(name)
            if key is None:
                key = PushKey(name)
                self._keys[name] = key
            return key

    def enable_key_creation(self) -> None:
        self._enable_key_creation = True

    def disable_key_creation(self) -> None:
        self._enable_key_creation = False

    def set_change_comment(self, change_comment: Optional[str]) -> None:
        """Revision comment shown in the repository history."""
        self._change_comment = change_comment

    def pending_keys(self) -> List[str]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def clear(self) -> None:
        self._keys.clear()

    def encode(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        if self._change_comment is not None:
            out["changeComment"] = self._change_comment
        if self._enable_key_creation:
            out["enableKeyCreation"] = True
        out["data"] = [key.encode() for key in self._keys.values()]
        return out

    def flush(self) -> PushResponse:
        with self._lock:
            try:
                body = json.dumps(self.encode())
                resp = self._session.send_push(body)
            except ConfigError as exc:
                logger.error("Push to ConfigHub failed: %s", exc)
                return PushResponse(status_code=0, message=str(exc))
            finally:
                self._keys.clear()

        message = resp.headers.get("etag") or resp.text or None
        if not 200 <= resp.status_code < 300:
            logger.error("Push rejected by ConfigHub: HTTP %s %s", resp.status_code, resp.text[:200])
        return PushResponse(status_code=resp.status_code, message=message)


__all__ = ["PushQueue", "PushKey", "PushResponse", "PendingValue", "ValueDataType"]
