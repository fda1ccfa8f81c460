from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Set

from .errors import DecodeError, NotPulledError


class Files:
    """
    Resolved files pulled alongside the properties: repository path -> text.

    - Text is stored exactly as the service resolved it; no type inference.
    - `write_to_local()` exports one file, creating parent directories.
    - A decode that fails leaves the previous table in place.
    """

    def __init__(self) -> None:
        self._files: Dict[str, str] = {}

    def decode(self, payload: Optional[Mapping[str, Any]]) -> None:
        self.replace(self.parse(payload))

    def replace(self, entries: Mapping[str, str]) -> None:
        self._files = dict(entries)

    @staticmethod
    def parse(payload: Optional[Mapping[str, Any]]) -> Dict[str, str]:
        if payload is None:
            return {}
        if not isinstance(payload, Mapping):
            raise DecodeError("'files' must be a JSON object")
        out: Dict[str, str] = {}
        for path, text in payload.items():
            if not isinstance(text, str):
                raise DecodeError(f"Invalid file '{path}': expected text, got {type(text).__name__}")
            out[path] = text
        return out

    def names(self) -> Set[str]:
        return set(self._files)

    def get(self, path: str) -> Optional[str]:
        return self._files.get(path.strip())

    def has_file(self, path: str) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    def write_to_local(self, path: str, destination: os.PathLike[str] | str) -> Path:
        """Write a pulled file to `destination`; returns the written path.

        Raises:
        - NotPulledError if `path` was not part of the last decoded files.
        - OSError if the directory or file cannot be written.
        """
        if path not in self._files:
            raise NotPulledError(f"Requested file '{path}' not pulled.")

        out = Path(destination)
        out.parent.mkdir(parents=True, exist_ok=True)
        with out.open("w", encoding="utf-8", newline="") as f:
            f.write(self._files[path])
        return out


__all__ = ["Files"]
