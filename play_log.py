# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Per-plate-appearance play log.

The engine emits one immutable :class:`PlayLogRecord` per completed plate
appearance to whatever sink the caller provides. Two sinks ship here: an
in-memory list and an append-only JSON-lines file (one record per line).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Protocol

from pydantic import BaseModel, ConfigDict, Field

from models import Half, Outcome, PlateAppearanceResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlayLogRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    timestamp: datetime = Field(default_factory=_utcnow)
    game_id: str
    inning: int = Field(ge=1)
    half: Half
    offense_team: str
    defense_team: str
    batter_name: str
    pitcher_name: str
    outcome: Outcome
    pitch_count: int = Field(ge=0)
    detail_json: str  # PlateAppearanceResult, pitch-by-pitch with trace

    def detail(self) -> PlateAppearanceResult:
        return PlateAppearanceResult.model_validate_json(self.detail_json)


class LogSink(Protocol):
    def record(self, entry: PlayLogRecord) -> None: ...


class MemoryLogSink:
    """Keeps records in insertion order."""

    def __init__(self) -> None:
        self.records: list[PlayLogRecord] = []

    def record(self, entry: PlayLogRecord) -> None:
        self.records.append(entry)

    def for_game(self, game_id: str) -> list[PlayLogRecord]:
        return [r for r in self.records if r.game_id == game_id]

    def clear_game(self, game_id: str) -> int:
        """Drop a game's records (e.g. after a reset); returns how many."""
        before = len(self.records)
        self.records = [r for r in self.records if r.game_id != game_id]
        return before - len(self.records)

    def __len__(self) -> int:
        return len(self.records)


class JsonlLogSink:
    """Appends each record as one JSON line to ``path``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def record(self, entry: PlayLogRecord) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(entry.model_dump_json() + "\n")


def read_play_log(path: str | Path) -> Iterator[PlayLogRecord]:
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                yield PlayLogRecord.model_validate_json(line)
