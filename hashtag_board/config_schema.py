from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

PositiveInt = Annotated[int, Field(ge=1)]


class LimitsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    hashtag_max_length: PositiveInt = 50
    hashtag_max_count: PositiveInt = 10
    post_max_chars: PositiveInt = 500
    nickname_max_chars: PositiveInt = 20


class StatsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    popular_limit: PositiveInt = 10
    suggestion_limit: PositiveInt = 5
    recent_window: PositiveInt = 100


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    db_path: str = "board.sqlite"

    @field_validator("db_path")
    @classmethod
    def _db_path_must_be_set(cls, v: str) -> str:
        path = (v or "").strip()
        if not path:
            raise ValueError("must be a non-empty path")
        return path


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    stats: StatsConfig = Field(default_factory=StatsConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
