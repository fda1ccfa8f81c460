from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class PropertyEntry(BaseModel):
    """
    One entry of the `properties` object in a pull response.

    Fields
    - type: declared value type tag ("Text", "Integer", "Map", ...); None means Text.
    - deprecated: key is flagged deprecated in the repository.
    - encryption: security group name when the value is encrypted.
    - val: the value itself; its JSON shape depends on `type`.

    Extra fields (e.g. comments when `Include-Comments` is requested) are kept.
    """

    model_config = ConfigDict(extra="allow")

    type: Optional[str] = None
    deprecated: bool = False
    encryption: Optional[str] = None
    val: Any = None


class PullPayload(BaseModel):
    """
    Envelope of a pull response and of a snapshot file.

    `properties` and `files` are kept as raw JSON objects so a snapshot can be
    written back verbatim; the property and file tables validate their entries.
    """

    context: Optional[str] = None
    account: Optional[str] = None
    repo: Optional[str] = None
    error: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None
    files: Optional[Dict[str, Any]] = None


class Snapshot(BaseModel):
    """Local snapshot file: the last pulled configuration for one context."""

    context: Optional[str] = None
    account: Optional[str] = None
    repo: Optional[str] = None
    properties: Dict[str, Any] = Field(default_factory=dict)
    files: Dict[str, Any] = Field(default_factory=dict)


__all__ = ["PropertyEntry", "PullPayload", "Snapshot"]
