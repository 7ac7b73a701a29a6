"""The catalog record and its wire/document encoding."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

UNASSIGNED_ID = -1

# Key variants seen in stored rows/documents: relational drivers may upper-case
# column names and the document backend keeps the identity under "_id".
_ID_KEYS = ("id", "_id", "ID")
_NAME_KEYS = ("name", "NAME")
_ORIGIN_KEYS = ("origin", "ORIGIN")


def _first(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class Whisky:
    id: int = UNASSIGNED_ID
    name: Optional[str] = None
    origin: Optional[str] = None

    @property
    def assigned(self) -> bool:
        return self.id >= 0

    def with_id(self, whisky_id: int) -> Whisky:
        return replace(self, id=whisky_id)

    def patched(self, patch: Mapping[str, Optional[str]]) -> Whisky:
        """Apply the ``name``/``origin`` keys present in ``patch``; others stay."""
        changes = {k: patch[k] for k in ("name", "origin") if k in patch}
        return replace(self, **changes)

    def to_json(self) -> dict:
        """Wire form: ``id`` always, ``name``/``origin`` only when set."""
        data: dict[str, Any] = {"id": self.id}
        if self.name is not None:
            data["name"] = self.name
        if self.origin is not None:
            data["origin"] = self.origin
        return data

    def to_document(self) -> dict:
        doc: dict[str, Any] = {"_id": self.id}
        if self.name is not None:
            doc["name"] = self.name
        if self.origin is not None:
            doc["origin"] = self.origin
        return doc

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Whisky:
        raw_id = _first(data, _ID_KEYS)
        whisky_id = UNASSIGNED_ID if raw_id is None else int(raw_id)
        return cls(
            id=whisky_id,
            name=_first(data, _NAME_KEYS),
            origin=_first(data, _ORIGIN_KEYS),
        )

    def __str__(self) -> str:
        return f"id={self.id}, name={self.name!r}, origin={self.origin!r}"
