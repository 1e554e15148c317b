# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Probability resolution with an audit trail.

Every random decision in the engine has the same shape: a probability is
clamped to [0, 1], scaled to an integer threshold over a fixed roll range
(truncating, never rounding), a roll is drawn in ``[1, range]`` and the
decision is ``roll <= threshold``. :class:`TraceRecorder` performs that draw
and records a :class:`~models.TraceStep` for it.
"""

from __future__ import annotations

from typing import Protocol

from models import TraceStep

ROLL_RANGE = 10_000
FINE_ROLL_RANGE = 100_000  # rare events (wild pitch / passed ball)


class RandomSource(Protocol):
    def next_int(self, upper_bound: int) -> int: ...

    def next_double(self) -> float: ...


def clamp(v: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, v))


def probability_threshold(probability: float, roll_range: int = ROLL_RANGE) -> int:
    return int(clamp(probability) * roll_range)


class TraceRecorder:
    """Draws rolls from ``rng`` and keeps the ordered trace for one pitch."""

    def __init__(self, rng: RandomSource):
        self.rng = rng
        self.steps: list[TraceStep] = []

    def _roll(self, roll_range: int) -> int:
        return self.rng.next_int(roll_range) + 1

    def decide(self, title: str, probability: float, yes: str, no: str, *,
               roll_range: int = ROLL_RANGE,
               inputs: dict[str, float] | None = None,
               context: dict[str, str] | None = None) -> bool:
        """Bernoulli decision; returns True when the roll lands under threshold."""
        threshold = probability_threshold(probability, roll_range)
        roll = self._roll(roll_range)
        hit = roll <= threshold
        self.steps.append(TraceStep(
            title=title,
            inputs=inputs or {},
            context=context or {},
            roll=roll,
            range=roll_range,
            threshold=threshold,
            picked=yes if hit else no,
        ))
        return hit

    def choose(self, title: str, shares: list[tuple[str, float]], remainder: str, *,
               roll_range: int = ROLL_RANGE,
               inputs: dict[str, float] | None = None,
               context: dict[str, str] | None = None) -> str:
        """Categorical draw over cumulative thresholds.

        Each share is truncated to its own integer slice; anything past the
        last slice goes to ``remainder`` (recorded with threshold = range).
        """
        roll = self._roll(roll_range)
        picked, threshold = remainder, roll_range
        cumulative = 0
        for label, share in shares:
            cumulative += int(share * roll_range)
            if roll <= cumulative:
                picked, threshold = label, cumulative
                break
        self.steps.append(TraceStep(
            title=title,
            inputs=inputs or {},
            context=context or {},
            roll=roll,
            range=roll_range,
            threshold=threshold,
            picked=picked,
        ))
        return picked

    def policy(self, title: str, chosen: bool, yes: str, no: str, *,
               inputs: dict[str, float] | None = None,
               context: dict[str, str] | None = None) -> bool:
        """Record a rule-driven decision that consumes no randomness."""
        self.steps.append(TraceStep(
            title=title,
            inputs=inputs or {},
            context=context or {},
            roll=1 if chosen else 0,
            range=1,
            threshold=1,
            picked=yes if chosen else no,
        ))
        return chosen


def score_snapshot(away_score: int, home_score: int) -> TraceStep:
    return TraceStep(
        title="Score Snapshot",
        inputs={"awayScore": float(away_score), "homeScore": float(home_score)},
        picked=f"{away_score}-{home_score}",
    )
