"""
Pydantic schema for whisky request bodies.

``POST`` and ``PUT`` share one shape: optional string-or-null ``name`` and
``origin``. A client-supplied ``id`` is accepted and ignored, identity is
always assigned by the store. Unknown keys are ignored.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr

from whisky_store.domain.whisky import Whisky


class WhiskyPayload(BaseModel):
    """Body of ``POST``/``PUT`` requests on ``/api/whiskies``."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = Field(None, description="Ignored; ids are assigned by the store")
    name: Optional[StrictStr] = Field(None, description="Display name of the whisky")
    origin: Optional[StrictStr] = Field(None, description="Region or country of origin")

    def to_candidate(self) -> Whisky:
        return Whisky(name=self.name, origin=self.origin)

    def to_patch(self) -> dict[str, Optional[str]]:
        """Only the fields the client actually sent, explicit nulls included."""
        return self.model_dump(include={"name", "origin"}, exclude_unset=True)
