"""Scoring weight configuration.

Each weight is the maximum number of points a component can contribute.
Weights are externalized so they can be tuned without code changes, but they
must always add up to 100.
"""

import json
import yaml
from pathlib import Path
from typing import Optional
from pydantic import BaseModel, field_validator


class ScoringWeights(BaseModel):
    """Maximum points per scoring component.

    All weights must sum to 100 so the total score stays on a 0-100 scale.
    """

    entity_match: int = 20
    industry_match: int = 25
    geography_match: int = 15
    size_match: int = 10
    purpose_match: int = 15
    preferences_match: int = 10
    quality_bonus: int = 5
    version: str = "1.0"

    model_config = {"frozen": True}

    @field_validator('entity_match', 'industry_match', 'geography_match', 'size_match',
                     'purpose_match', 'preferences_match', 'quality_bonus')
    @classmethod
    def weight_range(cls, v: int) -> int:
        """Ensure weights are between 0 and 100."""
        if not 0 <= v <= 100:
            raise ValueError(f"Weight must be between 0 and 100, got {v}")
        return v

    def model_post_init(self, __context) -> None:
        """Validate that weights sum to 100."""
        total = (
            self.entity_match +
            self.industry_match +
            self.geography_match +
            self.size_match +
            self.purpose_match +
            self.preferences_match +
            self.quality_bonus
        )

        if total != 100:
            raise ValueError(
                f"Weights must sum to 100, got {total}. "
                f"(E:{self.entity_match}, I:{self.industry_match}, "
                f"G:{self.geography_match}, S:{self.size_match}, "
                f"P:{self.purpose_match}, PR:{self.preferences_match}, Q:{self.quality_bonus})"
            )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return self.model_dump()


DEFAULT_WEIGHTS = ScoringWeights()


def load_weights(filepath: Optional[str] = None) -> ScoringWeights:
    """Load scoring weights from file or return defaults.

    Supports JSON and YAML formats.

    Args:
        filepath: Optional path to weights configuration file

    Returns:
        ScoringWeights instance

    Raises:
        FileNotFoundError: If filepath provided but doesn't exist
        ValueError: If weights are invalid or the format is unsupported
    """

    if not filepath:
        return DEFAULT_WEIGHTS

    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Weights file not found: {filepath}")

    if path.suffix == '.json':
        with open(path, 'r') as f:
            data = json.load(f)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}. Use .json, .yaml, or .yml")

    return ScoringWeights(**(data or {}))


def save_weights(weights: ScoringWeights, filepath: str) -> None:
    """Save scoring weights to file.

    Args:
        weights: ScoringWeights instance to save
        filepath: Path to save to (extension determines format)
    """

    path = Path(filepath)
    data = weights.to_dict()

    if path.suffix == '.json':
        with open(path, 'w') as f:
            json.dump(data, f, indent=2)
    elif path.suffix in ['.yaml', '.yml']:
        with open(path, 'w') as f:
            yaml.dump(data, f, default_flow_style=False)
    else:
        raise ValueError(f"Unsupported file format: {path.suffix}")


# Alternative weight configurations for experimentation

INDUSTRY_FOCUSED = ScoringWeights(
    entity_match=15,
    industry_match=35,  # Prioritize focus-area fit
    geography_match=15,
    size_match=10,
    purpose_match=10,
    preferences_match=10,
    quality_bonus=5,
    version="industry_focused_1.0"
)

LOCAL_FOCUSED = ScoringWeights(
    entity_match=20,
    industry_match=20,
    geography_match=25,  # Prioritize state-specific programs
    size_match=10,
    purpose_match=10,
    preferences_match=10,
    quality_bonus=5,
    version="local_focused_1.0"
)
