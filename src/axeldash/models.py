"""Read-only projections of the files the dashboard serves."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel


class ActivityRecord(BaseModel):
    """One ``timestamp|tool|result`` line; short lines leave fields unset."""

    timestamp: str | None = None
    tool: str | None = None
    result: str | None = None


class ConversationFile(BaseModel):
    date: str
    file: str


class KnowledgeEntry(BaseModel):
    name: str
    path: str
    modified: datetime


class AdvisorEntry(BaseModel):
    name: str
    path: str


class LiveMessage(BaseModel):
    type: Literal["activity", "conversation"]
    data: Any
