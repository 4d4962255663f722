"""Record models for scripts, summaries and evaluations.

Persisted records mirror table rows. The ``*Create`` and ``ScriptUpdate``
models validate caller input before anything reaches the store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScriptCreate(BaseModel):
    """Input for saving a new script."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(..., min_length=1)
    file_path: str = Field(..., min_length=1)
    content_hash: str = Field(..., min_length=1)
    word_count: int = Field(default=0, ge=0)


class ScriptUpdate(BaseModel):
    """Partial update of a script; only these fields may change."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1)
    file_path: str | None = Field(default=None, min_length=1)
    content_hash: str | None = Field(default=None, min_length=1)
    word_count: int | None = Field(default=None, ge=0)


class Script(BaseModel):
    """A persisted script."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    file_path: str
    content_hash: str
    word_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SummaryCreate(BaseModel):
    """Input for appending a generated summary to a script."""

    model_config = ConfigDict(extra="ignore")

    script_id: int
    plot_overview: str | None = None
    characters: Any = None
    themes: Any = None
    production_notes: Any = None
    genre: str | None = None
    model_used: str | None = None


class Summary(BaseModel):
    """A persisted summary; structured fields are decoded from JSON."""

    id: int
    script_id: int
    plot_overview: str | None = None
    characters: Any = None
    themes: Any = None
    production_notes: Any = None
    genre: str | None = None
    model_used: str | None = None
    created_at: datetime | None = None


class EvaluationCreate(BaseModel):
    """Input for rating a script; saving again replaces the previous values."""

    model_config = ConfigDict(extra="ignore")

    script_id: int
    rating: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def default_tags(cls, v: Any) -> Any:
        """Treat a missing tag list as empty."""
        return [] if v is None else v


class Evaluation(BaseModel):
    """A persisted evaluation; at most one exists per script."""

    id: int
    script_id: int
    rating: int | None = None
    notes: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
