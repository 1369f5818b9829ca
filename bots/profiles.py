"""Difficulty profiles for the heuristic bot."""

from __future__ import annotations

from pydantic import BaseModel, Field


class DifficultyProfile(BaseModel):
    name: str
    capture_threshold: float = Field(15, ge=0, description="Capture score that ends the search for placements.")
    risk_tolerance: float = Field(0.5, ge=0, description="Multiplier on the placement risk penalty.")
    randomness: float = Field(0.1, ge=0, le=1, description="Chance to replace the best move with a random one.")

    model_config = {"frozen": True}


PROFILES: dict[str, DifficultyProfile] = {
    "beginner": DifficultyProfile(name="beginner", capture_threshold=10, risk_tolerance=0.3, randomness=0.3),
    "intermediate": DifficultyProfile(name="intermediate", capture_threshold=15, risk_tolerance=0.5, randomness=0.1),
    "legendary": DifficultyProfile(name="legendary", capture_threshold=20, risk_tolerance=0.7, randomness=0.05),
}


def get_profile(name: str) -> DifficultyProfile:
    """Return the named profile, falling back to ``intermediate``."""
    return PROFILES.get(name.lower(), PROFILES["intermediate"])
