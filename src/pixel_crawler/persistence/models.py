from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

STATISTICS_VERSION = 1


class SaveRecord(BaseModel):
    """Envelope stored under the save key: ``{formatVersion, timestamp, gameState}``."""

    model_config = ConfigDict(populate_by_name=True)

    format_version: int = Field(..., alias="formatVersion", description="All-or-nothing compatibility tag")
    timestamp: int = Field(..., ge=0, description="Milliseconds since the epoch when the record was written")
    game_state: Dict[str, Any] = Field(..., alias="gameState", description="Serialized GameState")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class SaveHeader(BaseModel):
    """Just enough of a record to compare timestamps without decoding the state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    format_version: Optional[int] = Field(default=None, alias="formatVersion")
    timestamp: int = 0


class StatisticsRecord(BaseModel):
    """Lifetime counters kept apart from the game save.

    Older records missing newer fields are filled from the defaults below.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total_coins_collected: int = Field(0, alias="totalCoinsCollected", ge=0)
    total_potions_collected: int = Field(0, alias="totalPotionsCollected", ge=0)
    total_stamina_potions_collected: int = Field(0, alias="totalStaminaPotionsCollected", ge=0)
    total_rare_items_collected: int = Field(0, alias="totalRareItemsCollected", ge=0)
    current_level: int = Field(1, alias="currentLevel", ge=1)
    max_level: int = Field(1, alias="maxLevel", ge=1)
    max_floor: int = Field(1, alias="maxFloor", ge=1)
    total_experience: int = Field(0, alias="totalExperience", ge=0)
    total_play_time: int = Field(0, alias="totalPlayTime", ge=0, description="Milliseconds")
    last_played: int = Field(0, alias="lastPlayed", ge=0)
    sessions_count: int = Field(0, alias="sessionsCount", ge=0)
    treasures_opened: int = Field(0, alias="treasuresOpened", ge=0)
    items_sold: int = Field(0, alias="itemsSold", ge=0)
    version: int = STATISTICS_VERSION

    @field_validator("version")
    @classmethod
    def upgrade_version(cls, v: int) -> int:
        # Missing fields were already defaulted; the record is now current.
        return max(v, STATISTICS_VERSION)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
