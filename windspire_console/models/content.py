# windspire_console/models/content.py
"""
Pydantic models for catalog content as it travels over the wire.

The backend speaks camelCase with Mongo-style "_id" keys; models accept
both that shape and plain snake_case field names.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SUMMARY_LENGTH = 150

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+", re.MULTILINE)


class ContentStatus(str, Enum):
    """Moderation status of a content item."""

    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


class ContentType(str, Enum):
    """Kind of content a category produces."""

    HACK = "hack"
    TIP = "tip"
    HACK2 = "hack2"
    TIP2 = "tip2"
    QUOTE = "quote"


class Difficulty(str, Enum):
    """Audience level requested from the generator."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


def derive_summary(body: str, limit: int = SUMMARY_LENGTH) -> str:
    """
    Build a one-line summary from a (possibly bulleted) body.

    Bullet markers are dropped, whitespace collapsed, and the result
    truncated to `limit` characters with a trailing ellipsis.
    """
    flat = " ".join(_BULLET_RE.sub("", body).split())
    if len(flat) <= limit:
        return flat
    return flat[: limit - 3].rstrip() + "..."


def _reference_id(value: Any) -> Any:
    """Reduce an embedded {"_id": ...} object to its id."""
    if isinstance(value, dict):
        return value.get("_id") or value.get("id")
    return value


class Category(BaseModel):
    """Category metadata used to label generation batches."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    name: str
    content_type: ContentType | None = Field(default=None, alias="contentType")
    default_num_to_generate: int | None = Field(
        default=None, alias="defaultNumToGenerate"
    )


class ContentItem(BaseModel):
    """
    A single catalog entry.

    `id` is None for drafts that the store has not created yet. Counters are
    flattened from the backend's nested "ratings" object.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, alias="_id")
    title: str = Field(min_length=1)
    body: str = ""
    summary: str = ""
    category: str | None = None
    content_type: ContentType = Field(default=ContentType.HACK, alias="contentType")
    status: ContentStatus = ContentStatus.DRAFT
    difficulty: Difficulty = Difficulty.BEGINNER
    is_duplicate: bool = Field(default=False, alias="isDuplicate")
    tags: set[str] = Field(default_factory=set)
    views: int = 0
    likes: int = 0
    dislikes: int = 0
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    deleted_at: datetime | None = Field(default=None, alias="deletedAt")

    @model_validator(mode="before")
    @classmethod
    def _flatten_ratings(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("ratings"), dict):
            data = dict(data)
            ratings = data.pop("ratings")
            data.setdefault("likes", ratings.get("likes", 0))
            data.setdefault("dislikes", ratings.get("dislikes", 0))
        return data

    @field_validator("category", mode="before")
    @classmethod
    def _category_ref(cls, value: Any) -> Any:
        return _reference_id(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_set(cls, value: Any) -> Any:
        if value is None:
            return set()
        return value

    @model_validator(mode="after")
    def _fill_summary(self) -> "ContentItem":
        if not self.summary and self.body:
            self.summary = derive_summary(self.body)
        return self

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the backend's camelCase shape."""
        data = self.model_dump(by_alias=True, mode="json", exclude_none=True)
        data["tags"] = sorted(self.tags)
        data["ratings"] = {"likes": data.pop("likes"), "dislikes": data.pop("dislikes")}
        return data
