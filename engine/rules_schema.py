"""Validation schema for Stacked rules configuration."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

DIFFICULTY_NAMES = ("beginner", "intermediate", "legendary")


def _validate_difficulty(value: str) -> str:
    normalized = value.lower()
    if normalized not in DIFFICULTY_NAMES:
        raise ValueError(f"Unknown difficulty: {value!r}")
    return normalized


class RuleSet(BaseModel):
    target_score: int = Field(500, gt=0, description="Score that ends the game once reached.")
    players: int = Field(3, description="Number of seats at the table.")
    hand_size: int = Field(4, ge=1, description="Cards dealt to each player per deal.")
    opening_board_size: int = Field(4, ge=0, description="Cards turned face up at the start of a round.")
    ai_delay: float = Field(1.0, ge=0, description="Seconds between an automated decision and its effect.")
    strict: bool = Field(False, description="Raise on recoverable inconsistencies instead of logging them.")
    human_seats: list[int] = Field(default_factory=lambda: [0])
    difficulties: dict[int, str] = Field(
        default_factory=lambda: {1: "intermediate", 2: "intermediate"},
        description="Difficulty profile name per automated seat.",
    )

    @field_validator("players")
    @classmethod
    def validate_players(cls, value: int) -> int:
        if value != 3:
            raise ValueError("Stacked is played by exactly three players.")
        return value

    @field_validator("human_seats")
    @classmethod
    def validate_human_seats(cls, value: list[int]) -> list[int]:
        for seat in value:
            if seat not in (0, 1, 2):
                raise ValueError(f"Seat {seat} does not exist.")
        return sorted(set(value))

    @field_validator("difficulties")
    @classmethod
    def validate_difficulties(cls, value: dict[int, str]) -> dict[int, str]:
        checked = {}
        for seat, name in value.items():
            if seat not in (0, 1, 2):
                raise ValueError(f"Seat {seat} does not exist.")
            checked[seat] = _validate_difficulty(name)
        return checked

    @property
    def deal_size(self) -> int:
        """Cards needed for a full re-deal."""
        return self.players * self.hand_size

    def difficulty_for(self, seat: int) -> str:
        return self.difficulties.get(seat, "intermediate")


def load_ruleset(payload: Optional[Mapping[str, Any]] = None) -> RuleSet:
    """Build a validated ruleset from a plain mapping (e.g. parsed JSON)."""
    return RuleSet.model_validate(dict(payload or {}))
