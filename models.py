# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Data models for the baseball outcome engine.

Players and teams live in a :class:`Registry` keyed by identifier; lineup
slots only hold player ids, which the engine resolves at simulation time.
Rule configuration and the per-pitch audit records (trace steps, pitch
events, plate-appearance results) are pydantic models so they validate on
load and serialize losslessly to JSON.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class BatHand(str, Enum):
    R = "R"
    L = "L"
    S = "S"  # switch-hitter


class ThrowHand(str, Enum):
    R = "R"
    L = "L"


class Position(str, Enum):
    P = "P"
    C = "C"
    FIRST_BASE = "1B"
    SECOND_BASE = "2B"
    THIRD_BASE = "3B"
    SS = "SS"
    LF = "LF"
    CF = "CF"
    RF = "RF"
    DH = "DH"


class Half(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"


class InfieldAlignment(str, Enum):
    NORMAL = "normal"
    SHIFT_LEFT = "shiftLeft"
    SHIFT_RIGHT = "shiftRight"
    INFIELD_IN = "infieldIn"


class ThrowHomePolicy(str, Enum):
    NEVER = "never"
    ALWAYS = "always"
    SITUATIONAL = "situational"  # based on outs/score


class GameStatus(str, Enum):
    IN_PROGRESS = "inProgress"
    FINISHED = "finished"


class Outcome(str, Enum):
    """Plate-appearance outcome code."""
    STRIKEOUT = "K"
    WALK = "BB"
    SINGLE = "1B"
    DOUBLE = "2B"
    TRIPLE = "3B"
    HOME_RUN = "HR"
    ERROR = "E"
    GROUND_OUT = "GO"
    FIELDERS_CHOICE = "FC"
    DOUBLE_PLAY = "DP"
    FLY_OUT = "FO"
    LINE_OUT = "LO"
    UNKNOWN = "UNKNOWN"

    @property
    def is_hit(self) -> bool:
        return self in _HITS


_HITS = frozenset({Outcome.SINGLE, Outcome.DOUBLE, Outcome.TRIPLE, Outcome.HOME_RUN})


class BattedBallType(str, Enum):
    GROUND_BALL = "GB"
    FLY_BALL = "FB"
    LINE_DRIVE = "LD"
    POP_UP = "PU"


class PitchKind(str, Enum):
    """What a single pitch resolved to."""
    BALL = "ball"
    CALLED_STRIKE = "called_strike"
    SWINGING_STRIKE = "swinging_strike"
    FOUL = "foul"
    WILD_PITCH = "wild_pitch"
    PASSED_BALL = "passed_ball"
    IN_PLAY = "in_play"


# ---------------------------------------------------------------------------
# Players, teams, registry
# ---------------------------------------------------------------------------

_RATING = dict(ge=0.0, le=1.0)


class Player(BaseModel):
    """A player and every rating the engine reads (all on a 0-1 scale)."""
    player_id: str = Field(min_length=1)
    name: str
    bats: BatHand = BatHand.R
    throws: ThrowHand = ThrowHand.R

    # Batting
    z_swing: float = Field(default=0.65, **_RATING)
    o_swing: float = Field(default=0.25, **_RATING)
    z_contact: float = Field(default=0.80, **_RATING)
    o_contact: float = Field(default=0.60, **_RATING)

    # Batted-ball distribution (normalized at use, need not sum to 1.0)
    gb_rate: float = Field(default=0.45, **_RATING)
    fb_rate: float = Field(default=0.30, **_RATING)
    ld_rate: float = Field(default=0.20, **_RATING)
    pu_rate: float = Field(default=0.05, **_RATING)

    # Hit quality; shares only apply to air balls (FB/LD)
    hit_rate: float = Field(default=0.30, **_RATING)
    hr_share: float = Field(default=0.10, **_RATING)
    double_share: float = Field(default=0.22, **_RATING)
    triple_share: float = Field(default=0.03, **_RATING)

    speed: float = Field(default=0.50, **_RATING)

    # Pitching
    zone_rate: float = Field(default=0.52, **_RATING)
    whiff_induce: float = Field(default=0.50, **_RATING)

    # Defense
    fielding: float = Field(default=0.60, **_RATING)
    throwing: float = Field(default=0.60, **_RATING)
    catching: float = Field(default=0.50, **_RATING)


class LineupSlot(BaseModel):
    order: int = Field(ge=0, le=8)
    position: Position = Position.DH
    player_id: Optional[str] = None


class Team(BaseModel):
    team_id: str = Field(min_length=1)
    name: str
    player_ids: list[str] = Field(default_factory=list)
    lineup: list[LineupSlot] = Field(default_factory=list)

    def sorted_lineup(self) -> list[LineupSlot]:
        return sorted(self.lineup, key=lambda s: s.order)

    def ensure_nine_lineup_slots(self) -> None:
        """Pad the lineup with empty DH slots up to nine."""
        taken = {s.order for s in self.lineup}
        for order in range(9):
            if order not in taken:
                self.lineup.append(LineupSlot(order=order))
        self.lineup.sort(key=lambda s: s.order)


class Registry(BaseModel):
    """Owning collections of players and teams, keyed by id."""
    players: dict[str, Player] = Field(default_factory=dict)
    teams: dict[str, Team] = Field(default_factory=dict)

    def add_player(self, player: Player) -> Player:
        self.players[player.player_id] = player
        return player

    def add_team(self, team: Team) -> Team:
        self.teams[team.team_id] = team
        return team

    def get_player(self, player_id: str | None) -> Player | None:
        if player_id is None:
            return None
        return self.players.get(player_id)

    def get_team(self, team_id: str | None) -> Team | None:
        if team_id is None:
            return None
        return self.teams.get(team_id)

    @classmethod
    def from_json_file(cls, path: str | Path) -> Registry:
        """Load a registry from a ``{"players": [...], "teams": [...]}`` file."""
        with open(path) as f:
            raw = json.load(f)
        registry = cls()
        for p in raw.get("players", []):
            registry.add_player(Player.model_validate(p))
        for t in raw.get("teams", []):
            registry.add_team(Team.model_validate(t))
        return registry


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

class RuleConfig(BaseModel):
    """Rule set governing count behavior, defense and strategy policies."""
    name: str = "Default"

    # Count rules
    two_strike_foul_keeps_two_strikes: bool = True

    # Contact -> foul vs in-play
    foul_rate_on_contact: float = Field(default=0.60, ge=0.0, le=1.0)

    # Wild pitch / passed ball (only with runners on and the pitch out of zone)
    wild_pitch_chance_on_take: float = Field(default=1.0 / 72.0, ge=0.0, le=1.0)
    wild_pitch_chance_on_swing: float = Field(default=1.0 / 144.0, ge=0.0, le=1.0)
    passed_ball_share: float = Field(default=0.10, ge=0.0, le=1.0)

    # Defense & alignment
    default_alignment: InfieldAlignment = InfieldAlignment.NORMAL
    shift_gb_hit_multiplier: float = Field(default=0.90, ge=0.0)
    infield_in_gb_hit_multiplier: float = Field(default=1.15, ge=0.0)

    # Strategy policies
    throw_home_policy: ThrowHomePolicy = ThrowHomePolicy.SITUATIONAL
    runner_aggressiveness: float = Field(default=0.50, ge=0.0, le=1.0)
    try_double_play: bool = True

    # Game length
    innings: int = Field(default=9, ge=1)


# ---------------------------------------------------------------------------
# Audit records
# ---------------------------------------------------------------------------

class TraceStep(BaseModel):
    """One recorded decision: its inputs, the draw, and what was picked."""
    title: str
    inputs: dict[str, float] = Field(default_factory=dict)
    context: dict[str, str] = Field(default_factory=dict)
    roll: int = 0
    range: int = 0
    threshold: int = 0
    picked: str


class PitchEvent(BaseModel):
    pitch_number: int = Field(ge=1)
    kind: PitchKind
    label: str
    outcome: Optional[Outcome] = None
    ended_pa: bool = False
    trace: list[TraceStep] = Field(default_factory=list)


class PlateAppearanceResult(BaseModel):
    outcome: Outcome
    pitches: list[PitchEvent] = Field(default_factory=list)

    @property
    def pitch_count(self) -> int:
        return len(self.pitches)
