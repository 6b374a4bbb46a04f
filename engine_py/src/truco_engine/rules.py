"""
Game rule configuration and validation.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from .constants import MODE_1V1, MODE_2V2, SEATS_PER_MODE, WIN_SCORE


class RuleConfig(BaseModel):
    """Configuration for game rules and settings."""

    model_config = ConfigDict(frozen=True)

    win_score: int = Field(
        default=WIN_SCORE,
        ge=1,
        le=99,
        description="Score a team must reach (or pass) to win the match"
    )
    abandon_timeout: float = Field(
        default=60.0,
        gt=0,
        le=3600,
        description="Seconds a fully disconnected match is kept before removal"
    )
    block_play_during_truco: bool = Field(
        default=True,
        description="Reject card plays while a truco request awaits an answer"
    )
    auto_start_when_ready: bool = Field(
        default=True,
        description="Deal automatically once every seat is filled and ready"
    )
    game_log_tail: int = Field(
        default=10,
        ge=0,
        le=200,
        description="Number of game log entries included in state snapshots"
    )

    def seats_for_mode(self, mode: str) -> int:
        """Get the exact number of seats a match of this mode needs."""
        try:
            return SEATS_PER_MODE[mode]
        except KeyError:
            raise ValueError(f"Unsupported game mode: {mode}")

    def supported_modes(self) -> list[str]:
        return [MODE_1V1, MODE_2V2]


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)


ENV_OVERRIDES = {
    "TRUCO_WIN_SCORE": "win_score",
    "TRUCO_ABANDON_TIMEOUT": "abandon_timeout",
    "TRUCO_BLOCK_PLAY_DURING_TRUCO": "block_play_during_truco",
    "TRUCO_AUTO_START": "auto_start_when_ready",
    "TRUCO_GAME_LOG_TAIL": "game_log_tail",
}


def rules_from_env(environ: Optional[Mapping[str, str]] = None) -> RuleConfig:
    """Build a RuleConfig from TRUCO_* environment variables; pydantic coerces the strings."""
    environ = os.environ if environ is None else environ
    overrides = {
        field: environ[name]
        for name, field in ENV_OVERRIDES.items()
        if environ.get(name)
    }
    return create_rules(**overrides)
