"""Serialized layout of the JSON item store."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from clipdeck.models import CapturedItem, Tag


class StoreSnapshot(BaseModel):
    """Everything persisted by `JsonItemStore`."""

    model_config = ConfigDict(ser_json_bytes="base64")

    version: int = 1
    items: List[CapturedItem] = Field(default_factory=list)
    tags: List[Tag] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["StoreSnapshot"]
