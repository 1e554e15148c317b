# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Persisted game record.

A :class:`GameRecord` holds everything the engine needs between calls: the
two team ids, the rule set, the 64-bit seed, the status, and the encoded
game state. The state is stored as a versioned JSON document with sorted
keys and validated against :class:`StateRecord` on the way back in. A
document that fails to parse or validate decodes to a fresh
:class:`~state.GameState` instead of raising.
"""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

from models import GameStatus, Half, RuleConfig
from rng import MASK_64, draw_seed
from state import GameState

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


# ---------------------------------------------------------------------------
# State schema
# ---------------------------------------------------------------------------

class StateRecord(BaseModel):
    """On-disk shape of :class:`~state.GameState`."""
    schema_version: Literal[1] = SCHEMA_VERSION
    inning: int = Field(default=1, ge=1)
    half: Half = Half.TOP
    outs: int = Field(default=0, ge=0, le=3)
    balls: int = Field(default=0, ge=0, le=4)
    strikes: int = Field(default=0, ge=0, le=3)
    bases: int = Field(default=0, ge=0, le=7)
    away_score: int = Field(default=0, ge=0)
    home_score: int = Field(default=0, ge=0)
    away_lineup_index: int = Field(default=0, ge=0, le=8)
    home_lineup_index: int = Field(default=0, ge=0, le=8)
    last_message: Optional[str] = None

    @classmethod
    def from_state(cls, state: GameState) -> StateRecord:
        return cls(
            inning=state.inning,
            half=state.half,
            outs=state.outs,
            balls=state.balls,
            strikes=state.strikes,
            bases=state.bases,
            away_score=state.away_score,
            home_score=state.home_score,
            away_lineup_index=state.away_lineup_index % 9,
            home_lineup_index=state.home_lineup_index % 9,
            last_message=state.last_message,
        )

    def to_state(self) -> GameState:
        return GameState(**self.model_dump(exclude={"schema_version"}))


def encode_state(state: GameState) -> str:
    """Serialize a state to a versioned JSON document with sorted keys."""
    record = StateRecord.from_state(state)
    return json.dumps(record.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))


def decode_state(text: str) -> GameState:
    """Parse a stored state, falling back to a fresh state if it is malformed."""
    try:
        return StateRecord.model_validate_json(text).to_state()
    except ValidationError as exc:
        logger.warning("Stored game state is invalid (%d error(s)); starting from a fresh state",
                       exc.error_count())
        return GameState()


# ---------------------------------------------------------------------------
# Game record
# ---------------------------------------------------------------------------

def _new_game_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GameRecord(BaseModel):
    game_id: str = Field(default_factory=_new_game_id)
    created_at: datetime = Field(default_factory=_utcnow)
    status: GameStatus = GameStatus.IN_PROGRESS
    away_team_id: Optional[str] = None
    home_team_id: Optional[str] = None
    rules: Optional[RuleConfig] = None
    seed: int = Field(default_factory=draw_seed, ge=0, le=MASK_64)
    state_json: str = Field(default_factory=lambda: encode_state(GameState()))

    def get_state(self) -> GameState:
        return decode_state(self.state_json)

    def set_state(self, state: GameState) -> None:
        self.state_json = encode_state(state)


def new_game(away_team_id: str | None, home_team_id: str | None,
             rules: RuleConfig | None, seed: int | None = None) -> GameRecord:
    record = GameRecord(away_team_id=away_team_id, home_team_id=home_team_id, rules=rules)
    if seed is not None:
        record.seed = seed & MASK_64
    return record


def reset_game(game: GameRecord) -> None:
    """Start the game over with a new seed; teams and rules are kept."""
    game.status = GameStatus.IN_PROGRESS
    game.seed = draw_seed()
    game.set_state(GameState())
    logger.info("Game %s reset", game.game_id)


# ---------------------------------------------------------------------------
# File persistence
# ---------------------------------------------------------------------------

def save_game_record(game: GameRecord, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(game.model_dump_json(indent=2), encoding="utf-8")
    return p


def load_game_record(path: str | Path) -> GameRecord:
    """Load a game record written by :func:`save_game_record`.

    Raises:
        FileNotFoundError: If the file does not exist.
        pydantic.ValidationError: If the record itself is malformed. (A
            malformed ``state_json`` is tolerated; see :func:`decode_state`.)
    """
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Game record not found: {path}")
    return GameRecord.model_validate_json(p.read_text(encoding="utf-8"))
