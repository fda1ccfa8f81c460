from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Set

from pydantic import ValidationError

from .errors import DecodeError
from .models import PropertyEntry
from .values import TYPE_TAGS, TypedValue, decode_value


logger = logging.getLogger(__name__)


class Properties:
    """
    Property table: key -> `TypedValue`, rebuilt from every pull.

    Usage
        hub = ConfigHub(token=token, context="Production;MyApp")
        hub.pull()
        port = hub.properties.get_integer("db.port")      # 3306
        port_s = hub.properties.get("db.port")            # "3306"
        hosts = hub.properties.get_list("db.hosts", [])

    Notes
    - Every getter returns its `default` (None unless given) for absent keys.
      For present keys the value is converted per `confighub.values`, and
      conversion errors propagate (`TypeMismatchError`, `FormatError`).
    - Reading a deprecated key logs a warning; it is never an error.
    - A decode that fails leaves the previous table in place.
    """

    def __init__(self) -> None:
        self._data: Dict[str, TypedValue] = {}

    # --------------- Decoding ---------------
    def decode(self, payload: Optional[Mapping[str, Any]]) -> None:
        """Replace the table with the entries of a `properties` JSON object."""
        self.replace(self.parse(payload))

    def replace(self, entries: Mapping[str, TypedValue]) -> None:
        self._data = dict(entries)

    @staticmethod
    def parse(payload: Optional[Mapping[str, Any]]) -> Dict[str, TypedValue]:
        """Decode a `properties` JSON object without touching any table."""
        if payload is None:
            return {}
        if not isinstance(payload, Mapping):
            raise DecodeError("'properties' must be a JSON object")

        out: Dict[str, TypedValue] = {}
        for key, raw in payload.items():
            try:
                entry = PropertyEntry.model_validate(raw)
            except ValidationError as ve:
                raise DecodeError(f"Invalid property '{key}': {ve}") from ve

            # Newer services may add types; skip them instead of failing the pull
            if entry.encryption is None and entry.type is not None and entry.type not in TYPE_TAGS:
                logger.warning("Skipping property '%s' with unknown type '%s'", key, entry.type)
                continue

            try:
                out[key] = decode_value(
                    entry.type,
                    entry.val,
                    deprecated=entry.deprecated,
                    encryption_group=entry.encryption,
                )
            except DecodeError as exc:
                raise DecodeError(f"Invalid property '{key}': {exc}") from exc
        return out

    # --------------- Lookup ---------------
    def lookup(self, key: str) -> Optional[TypedValue]:
        v = self._data.get(key)
        if v is None:
            return None
        if v.deprecated:
            logger.warning("Deprecated property '%s' used.", key)
        return v

    def keys(self) -> Set[str]:
        return set(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __len__(self) -> int:
        return len(self._data)

    def get_encryption_group(self, key: str) -> Optional[str]:
        """Security group of an encrypted value, or None. Values are never decrypted here."""
        v = self.lookup(key)
        return v.encryption_group if v is not None else None

    def is_deprecated(self, key: str) -> bool:
        v = self._data.get(key)
        return v is not None and v.deprecated

    # --------------- Kind predicates ---------------
    def is_text(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_text()

    def is_boolean(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_boolean()

    def is_integer(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_integer()

    def is_long(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_long()

    def is_double(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_double()

    def is_float(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_float()

    def is_list(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_list()

    def is_map(self, key: str) -> bool:
        v = self.lookup(key)
        return v is not None and v.is_map()

    # --------------- Typed accessors ---------------
    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        v = self.lookup(key)
        return default if v is None else v.get()

    def get_boolean(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        v = self.lookup(key)
        return default if v is None else v.get_boolean()

    def get_integer(self, key: str, default: Optional[int] = None) -> Optional[int]:
        v = self.lookup(key)
        return default if v is None else v.get_integer()

    def get_long(self, key: str, default: Optional[int] = None) -> Optional[int]:
        v = self.lookup(key)
        return default if v is None else v.get_long()

    def get_double(self, key: str, default: Optional[float] = None) -> Optional[float]:
        v = self.lookup(key)
        return default if v is None else v.get_double()

    def get_float(self, key: str, default: Optional[float] = None) -> Optional[float]:
        v = self.lookup(key)
        return default if v is None else v.get_float()

    def get_list(self, key: str, default: Optional[List[str]] = None) -> Optional[List[str]]:
        v = self.lookup(key)
        return default if v is None else v.get_list()

    def get_map(
        self, key: str, default: Optional[Dict[str, str]] = None
    ) -> Optional[Dict[str, str]]:
        v = self.lookup(key)
        return default if v is None else v.get_map()


__all__ = ["Properties"]
