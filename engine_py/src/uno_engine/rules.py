"""
Game rule configuration and validation.
"""

import os

from pydantic import BaseModel, Field, field_validator


class RuleConfig(BaseModel):
    """Configuration for game rules, table limits and host timing."""

    hand_size: int = Field(
        default=7,
        ge=1,
        le=15,
        description="Cards dealt to each seat at the start of a game"
    )
    mercy_limit: int = Field(
        default=25,
        ge=1,
        description="No-mercy elimination triggers when a hand exceeds this many cards"
    )
    min_players: int = Field(
        default=2,
        ge=2,
        le=4,
        description="Minimum number of players required to start"
    )
    max_players: int = Field(
        default=4,
        ge=2,
        le=4,
        description="Maximum number of seats in a room"
    )
    room_code_length: int = Field(
        default=6,
        ge=4,
        le=10,
        description="Length of generated room codes"
    )
    seven_zero: bool = Field(
        default=True,
        description="Number 7 swaps hands, number 0 rotates all hands"
    )
    auto_fill_bots: bool = Field(
        default=True,
        description="Automatically fill empty seats with bots when starting a room"
    )
    bot_think_delay: float = Field(
        default=1.2,
        ge=0,
        le=10,
        description="Seconds a bot 'thinks' before acting"
    )
    bot_safety_delay: float = Field(
        default=3.5,
        ge=0,
        le=30,
        description="Seconds before a stalled bot turn is retried"
    )
    auto_hit_delay: float = Field(
        default=1.0,
        ge=0,
        le=10,
        description="Seconds before an uncounterable stack is drawn automatically"
    )
    error_clear_delay: float = Field(
        default=2.0,
        ge=0,
        le=30,
        description="Seconds an invalid-move message stays visible"
    )

    @field_validator('max_players')
    @classmethod
    def validate_max_players(cls, v, info):
        """Validate maximum players doesn't fall below minimum."""
        min_players = info.data.get('min_players', 2)
        if v < min_players:
            raise ValueError(f'max_players ({v}) must be >= min_players ({min_players})')
        return v

    @field_validator('bot_safety_delay')
    @classmethod
    def validate_safety_delay(cls, v, info):
        think = info.data.get('bot_think_delay', 1.2)
        if v < think:
            raise ValueError(f'bot_safety_delay ({v}) must be >= bot_think_delay ({think})')
        return v

    def validate_player_count(self, player_count: int) -> bool:
        """Check if a player count is valid for this configuration."""
        return self.min_players <= player_count <= self.max_players

    @classmethod
    def from_env(cls, prefix: str = "UNO_") -> "RuleConfig":
        """Build a config from ``UNO_<FIELD>`` environment variables."""
        overrides = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                overrides[name] = raw
        return cls(**overrides)


# Default configuration instance
default_rules = RuleConfig()


def create_rules(**overrides) -> RuleConfig:
    """Create a RuleConfig with optional overrides."""
    config_dict = default_rules.model_dump()
    config_dict.update(overrides)
    return RuleConfig(**config_dict)
