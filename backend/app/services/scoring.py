"""Deterministic contributor scoring.

A user's score is a weighted linear combination of their engagement
counters::

    score = total_ideas * w_ideas + total_likes * w_likes + total_ratings * w_rating

Weights are configured as whole-number percentages and divided by 100.
They are not normalized, so they may sum to any value.

The result is rounded to one decimal place with ROUND_HALF_UP on
:class:`~decimal.Decimal` values, so ``2.25`` becomes ``2.3`` regardless
of how the float would be represented in binary.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

_ONE_PLACE = Decimal("0.1")
_HUNDRED = Decimal(100)


def _to_decimal(value: float | int | Decimal) -> Decimal:
    # str() keeps 0.3 as Decimal("0.3") instead of its binary expansion
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ScoreWeights:
    """Per-counter weights expressed as fractions (0.5 == 50%)."""

    ideas: Decimal
    likes: Decimal
    rating: Decimal

    def __post_init__(self) -> None:
        for name in ("ideas", "likes", "rating"):
            value = _to_decimal(getattr(self, name))
            if value < 0:
                raise ValueError(f"Score weight '{name}' must be non-negative, got {value}")
            object.__setattr__(self, name, value)

    @classmethod
    def from_percentages(
        cls,
        *,
        ideas: float | int,
        likes: float | int,
        rating: float | int,
    ) -> ScoreWeights:
        """Build weights from whole-number percentages (``50`` -> ``0.5``)."""
        return cls(
            ideas=_to_decimal(ideas) / _HUNDRED,
            likes=_to_decimal(likes) / _HUNDRED,
            rating=_to_decimal(rating) / _HUNDRED,
        )


# ---------------------------------------------------------------------------
# Scoring function
# ---------------------------------------------------------------------------

def round_score(value: Decimal) -> Decimal:
    """Round to one decimal place, half away from zero."""
    return value.quantize(_ONE_PLACE, rounding=ROUND_HALF_UP)


def compute_score(
    *,
    total_ideas: int,
    total_likes: int,
    total_ratings: int,
    weights: ScoreWeights,
) -> float:
    """Compute a contributor score from raw counters.

    Pure: identical counters and weights always yield the identical value.
    Negative counters are treated as zero.
    """
    weighted = (
        Decimal(max(total_ideas, 0)) * weights.ideas
        + Decimal(max(total_likes, 0)) * weights.likes
        + Decimal(max(total_ratings, 0)) * weights.rating
    )
    return float(round_score(weighted))
