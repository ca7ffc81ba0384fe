# windspire_console/config/schema.py
"""
Pydantic configuration models for windspire-console.

All models use extra="ignore" to allow unknown YAML keys without crashing.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from windspire_console.models.content import Difficulty
from windspire_console.models.jobs import MAX_ITEMS_PER_CATEGORY


class ServiceConfig(BaseModel):
    """Catalog backend connection."""

    model_config = ConfigDict(extra="ignore")

    base_url: str = Field(
        default="http://localhost:3000/api", description="Backend API root URL"
    )
    api_token: str | None = Field(
        default=None, description="Bearer token for admin endpoints (None = unauthenticated)"
    )
    timeout: float = Field(
        default=120.0, gt=0, description="Request timeout in seconds (generation is slow)"
    )
    default_model: str | None = Field(
        default=None, description="Generation model (None = service default)"
    )


class GenerationConfig(BaseModel):
    """Batch generation defaults and pacing."""

    model_config = ConfigDict(extra="ignore")

    default_count: int = Field(
        default=5,
        ge=1,
        le=MAX_ITEMS_PER_CATEGORY,
        description="Items per category when --count is omitted",
    )
    difficulty: Difficulty = Field(
        default=Difficulty.BEGINNER, description="Default audience level"
    )
    base_delay: float = Field(
        default=1.0, gt=0, description="Backoff base in seconds (waits 2x, 4x, 8x base)"
    )
    max_attempts: int = Field(
        default=3, ge=1, le=5, description="Calls per item before giving up on rate limits"
    )
    pacing_floor: float = Field(
        default=2.0, ge=0, description="Minimum pause between item calls in seconds"
    )
    pacing_per_item: float = Field(
        default=0.5, ge=0, description="Extra pause per requested item in seconds"
    )


class DuplicateConfig(BaseModel):
    """Similarity scoring and resolution settings."""

    model_config = ConfigDict(extra="ignore")

    title_threshold: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Minimum title similarity for a candidate to be scored",
    )
    title_weight: float = Field(
        default=0.4,
        ge=0.0,
        le=1.0,
        description="Weight of title similarity in the overall score (body gets the rest)",
    )
    high_confidence: float = Field(default=0.85, ge=0.0, le=1.0)
    medium_confidence: float = Field(default=0.6, ge=0.0, le=1.0)
    rewrite_model: str | None = Field(
        default=None, description="Model used for rewrites (None = service default)"
    )
    category_scoped: bool = Field(
        default=False, description="Only compare items within the same category"
    )


class StorageConfig(BaseModel):
    """Local state (in-progress marker and job history)."""

    model_config = ConfigDict(extra="ignore")

    db_path: str | None = Field(
        default=None, description="SQLite file (None = console.db in the config directory)"
    )


class OutputConfig(BaseModel):
    """Output configuration."""

    model_config = ConfigDict(extra="ignore")

    verbosity: Literal["quiet", "normal", "verbose"] = Field(
        default="normal", description="Logging verbosity level"
    )


class WindspireConfig(BaseModel):
    """Root configuration for windspire-console."""

    model_config = ConfigDict(extra="ignore")

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    duplicates: DuplicateConfig = Field(default_factory=DuplicateConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
