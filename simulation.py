# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Baseball game simulation engine.

Resolves play outcomes at the pitch level from player ratings and the rule
configuration, drives plate appearances, half-innings and whole games, and
records every random decision as a trace step.

Entry points:

- :func:`simulate_single_pitch` -- one pitch against an explicit state.
- :class:`SimulationEngine` -- pitch / plate appearance / half-inning /
  game calls against a persisted :class:`~game_record.GameRecord`.

Each call runs to completion before returning. A game record must not be
handed to two in-flight calls at once; independent games need no locking.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from baserunning import (
    advance_all_runners,
    apply_hit,
    apply_reach_on_error,
    apply_walk,
    resolve_ground_out,
)
from game_record import GameRecord, reset_game
from models import (
    BattedBallType,
    GameStatus,
    Half,
    InfieldAlignment,
    Outcome,
    PitchEvent,
    PitchKind,
    PlateAppearanceResult,
    Player,
    Position,
    Registry,
    RuleConfig,
    Team,
)
from play_log import LogSink, PlayLogRecord
from rng import MASK_64, SplitMix64, derive_seed, state_key
from state import GameState
from tracing import FINE_ROLL_RANGE, RandomSource, TraceRecorder, clamp, score_snapshot

logger = logging.getLogger(__name__)

MAX_PITCHES_PER_PA = 40
TWO_STRIKE_SWING_BOOST = 1.10
WHIFF_CONTACT_PENALTY = 0.20
DEFAULT_AVG_FIELDING = 0.60
DEFAULT_CATCHING = 0.50


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class EngineError(Exception):
    """Raised when a simulation call's preconditions are not met.

    Always raised before the game record is touched.
    """
    error_code = "ENGINE_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidLineupError(EngineError):
    error_code = "INVALID_LINEUP"

    def __init__(self, message: str = "Teams or lineups are not ready. Ensure both teams exist "
                                      "and have 9 lineup slots with assigned players.",
                 team_id: str | None = None):
        self.team_id = team_id
        super().__init__(message)


class MissingRuleSetError(EngineError):
    error_code = "MISSING_RULE_SET"

    def __init__(self, message: str = "Rule set missing. Create or assign a rule set first."):
        super().__init__(message)


class GameAlreadyFinishedError(EngineError):
    error_code = "GAME_ALREADY_FINISHED"

    def __init__(self, message: str = "Game has finished."):
        super().__init__(message)


# ---------------------------------------------------------------------------
# Load roster data
# ---------------------------------------------------------------------------

_ROSTER_PATH = Path(__file__).resolve().parent / "data" / "sample_rosters.json"


def load_rosters(path: str | Path | None = None) -> Registry:
    """Load players and teams from JSON into a registry."""
    return Registry.from_json_file(path or _ROSTER_PATH)


# ---------------------------------------------------------------------------
# Resolved team for one game call
# ---------------------------------------------------------------------------

@dataclass
class TeamSide:
    """A team with its nine lineup slots resolved to players."""
    team: Team
    players: list[Player]  # batting order
    positions: list[Position]  # defensive position for each lineup slot

    @property
    def name(self) -> str:
        return self.team.name

    def batter_at(self, lineup_index: int) -> Player:
        return self.players[lineup_index % 9]

    def pitcher(self) -> Player:
        """The player slotted at P, else whoever bats first."""
        for player, pos in zip(self.players, self.positions):
            if pos == Position.P:
                return player
        return self.players[0]

    def catcher_rating(self) -> float:
        for player, pos in zip(self.players, self.positions):
            if pos == Position.C:
                return clamp(player.catching)
        return DEFAULT_CATCHING

    def avg_fielding(self) -> float:
        if not self.players:
            return DEFAULT_AVG_FIELDING
        return clamp(sum(p.fielding for p in self.players) / len(self.players))


def resolve_side(registry: Registry, team_id: str | None) -> TeamSide:
    """Look up a team and its lineup; every one of the 9 slots must be filled."""
    team = registry.get_team(team_id)
    if team is None:
        raise InvalidLineupError(f"Team {team_id!r} not found.", team_id=team_id)
    slots = team.sorted_lineup()
    if len(slots) < 9:
        raise InvalidLineupError(
            f"Team {team.name!r} has {len(slots)} lineup slots; 9 are required.",
            team_id=team.team_id,
        )
    players: list[Player] = []
    positions: list[Position] = []
    for slot in slots[:9]:
        player = registry.get_player(slot.player_id)
        if player is None:
            raise InvalidLineupError(
                f"Team {team.name!r} lineup slot {slot.order + 1} has no assigned player.",
                team_id=team.team_id,
            )
        players.append(player)
        positions.append(slot.position)
    return TeamSide(team=team, players=players, positions=positions)


# ---------------------------------------------------------------------------
# Pitch resolution
# ---------------------------------------------------------------------------

def _pitch(pitch_number: int, kind: PitchKind, label: str, recorder: TraceRecorder,
           outcome: Outcome | None = None) -> PitchEvent:
    return PitchEvent(
        pitch_number=pitch_number,
        kind=kind,
        label=label,
        outcome=outcome,
        ended_pa=outcome is not None,
        trace=recorder.steps,
    )


def simulate_single_pitch(state: GameState, batter: Player, pitcher: Player,
                          defense: TeamSide, rules: RuleConfig, rng: RandomSource,
                          pitch_number: int = 1) -> PitchEvent:
    """Resolve one pitch and mutate ``state`` (count, bases, outs, score).

    Sequence: zone check, swing decision, wild pitch / passed ball (out of
    zone with runners on), then either the take (ball / called strike) or the
    swing (contact, foul, ball in play). Only a strikeout on a whiff or a ball
    in play end the plate appearance here; four balls and a called or foul
    third strike are left for the plate-appearance driver.
    """
    recorder = TraceRecorder(rng)

    # 1) Zone
    zone_rate = clamp(pitcher.zone_rate)
    in_zone = recorder.decide(
        "Zone Check", zone_rate, "IN_ZONE", "OUT_OF_ZONE",
        inputs={"pitcher.zoneRate": pitcher.zone_rate},
    )

    # 2) Swing; two strikes makes the batter more aggressive
    base_swing = batter.z_swing if in_zone else batter.o_swing
    count_adj = TWO_STRIKE_SWING_BOOST if state.strikes >= 2 else 1.0
    swing_prob = clamp(base_swing * count_adj)
    swung = recorder.decide(
        "Swing Decision", swing_prob, "SWING", "TAKE",
        inputs={"baseSwing": base_swing, "countAdj": count_adj, "swingProb": swing_prob},
    )

    # 3) Wild pitch / passed ball
    if not in_zone and state.bases != 0:
        chance = rules.wild_pitch_chance_on_swing if swung else rules.wild_pitch_chance_on_take
        got_away = recorder.decide(
            "WP/PB Check", chance, "TRIGGERED", "NO",
            roll_range=FINE_ROLL_RANGE,
            inputs={"bases": float(state.bases), "chance": chance},
            context={"policy": "SWING" if swung else "TAKE"},
        )
        if got_away:
            passed_ball = recorder.decide(
                "WP vs PB", rules.passed_ball_share, "PASSED BALL", "WILD PITCH",
                inputs={"passedBallShare": rules.passed_ball_share,
                        "catcher.catching": defense.catcher_rating()},
            )
            advance_all_runners(state)
            if passed_ball:
                return _pitch(pitch_number, PitchKind.PASSED_BALL, "Passed Ball", recorder)
            return _pitch(pitch_number, PitchKind.WILD_PITCH, "Wild Pitch", recorder)

    # 4) Take
    if not swung:
        if in_zone:
            state.strikes += 1
            return _pitch(pitch_number, PitchKind.CALLED_STRIKE, "Called Strike", recorder)
        state.balls += 1
        return _pitch(pitch_number, PitchKind.BALL, "Ball", recorder)

    # 5) Contact
    base_contact = batter.z_contact if in_zone else batter.o_contact
    contact_prob = clamp(base_contact * (1.0 - WHIFF_CONTACT_PENALTY * clamp(pitcher.whiff_induce)))
    contact = recorder.decide(
        "Contact Check", contact_prob, "CONTACT", "WHIFF",
        inputs={"baseContact": base_contact, "pitcher.whiffInduce": pitcher.whiff_induce,
                "contactProb": contact_prob},
    )
    if not contact:
        state.strikes += 1
        if state.strikes >= 3:
            return _pitch(pitch_number, PitchKind.SWINGING_STRIKE, "Swinging Strike (K)",
                          recorder, outcome=Outcome.STRIKEOUT)
        return _pitch(pitch_number, PitchKind.SWINGING_STRIKE, "Swinging Strike", recorder)

    # 6) Foul vs in play
    foul_prob = clamp(rules.foul_rate_on_contact)
    foul = recorder.decide(
        "Foul vs In-Play", foul_prob, "FOUL", "IN PLAY",
        inputs={"foulRateOnContact": foul_prob},
    )
    if foul:
        if state.strikes < 2 or not rules.two_strike_foul_keeps_two_strikes:
            state.strikes += 1
        return _pitch(pitch_number, PitchKind.FOUL, "Foul Ball", recorder)

    # 7) Ball in play always ends the plate appearance
    outcome = resolve_ball_in_play(state, batter, defense, rules, recorder)
    return _pitch(pitch_number, PitchKind.IN_PLAY, f"In Play: {outcome.value}", recorder,
                  outcome=outcome)


# ---------------------------------------------------------------------------
# Ball-in-play resolution
# ---------------------------------------------------------------------------

def resolve_ball_in_play(state: GameState, batter: Player, defense: TeamSide,
                         rules: RuleConfig, recorder: TraceRecorder) -> Outcome:
    """Resolve contact into a hit, an error or an out and apply it to ``state``."""
    total = max(0.0001, batter.gb_rate + batter.fb_rate + batter.ld_rate + batter.pu_rate)
    gb = batter.gb_rate / total
    fb = batter.fb_rate / total
    ld = batter.ld_rate / total
    pu = batter.pu_rate / total
    bb_type = BattedBallType(recorder.choose(
        "Batted Ball Type",
        [("GB", gb), ("FB", fb), ("LD", ld)],
        "PU",
        inputs={"GB": gb, "FB": fb, "LD": ld, "PU": pu},
    ))

    # Alignment only matters on the ground
    hit_chance = clamp(batter.hit_rate)
    alignment = rules.default_alignment
    if bb_type == BattedBallType.GROUND_BALL:
        if alignment in (InfieldAlignment.SHIFT_LEFT, InfieldAlignment.SHIFT_RIGHT):
            hit_chance *= clamp(rules.shift_gb_hit_multiplier, 0.50, 1.20)
        elif alignment == InfieldAlignment.INFIELD_IN:
            hit_chance *= clamp(rules.infield_in_gb_hit_multiplier, 0.80, 1.60)

    avg_fielding = defense.avg_fielding()
    defense_factor = clamp(0.85 + 0.30 * (1.0 - avg_fielding), 0.70, 1.10)
    hit_chance = clamp(hit_chance * defense_factor)

    is_hit = recorder.decide(
        "Hit Check", hit_chance, "HIT", "NO HIT",
        inputs={"batter.hitRate": batter.hit_rate, "defFactor": defense_factor,
                "hitChanceFinal": hit_chance},
        context={"alignment": alignment.value, "battedBall": bb_type.value},
    )

    if is_hit:
        if bb_type in (BattedBallType.FLY_BALL, BattedBallType.LINE_DRIVE):
            hr_share = clamp(batter.hr_share, 0.0, 0.60)
            double_share = clamp(batter.double_share, 0.0, 0.80)
            triple_share = clamp(batter.triple_share, 0.0, 0.20)
            outcome = Outcome(recorder.choose(
                "Hit Type",
                [("HR", hr_share), ("2B", double_share), ("3B", triple_share)],
                "1B",
                inputs={"hrShare": hr_share, "doubleShare": double_share,
                        "tripleShare": triple_share},
            ))
        else:
            outcome = Outcome.SINGLE
        apply_hit(state, outcome, rules.runner_aggressiveness, recorder)
        return outcome

    error_chance = 0.02 + 0.06 * (1.0 - avg_fielding)
    is_error = recorder.decide(
        "Error Check", error_chance, "ERROR", "NO ERROR",
        inputs={"avgDefenseFielding": avg_fielding, "errorChance": error_chance},
    )
    if is_error:
        apply_reach_on_error(state)
        return Outcome.ERROR

    if bb_type == BattedBallType.GROUND_BALL:
        return resolve_ground_out(state, rules, recorder)
    state.outs += 1
    if bb_type == BattedBallType.LINE_DRIVE:
        return Outcome.LINE_OUT
    return Outcome.FLY_OUT


# ---------------------------------------------------------------------------
# Plate appearance
# ---------------------------------------------------------------------------

def end_by_count(state: GameState, event: PitchEvent) -> Outcome | None:
    """Return how the plate appearance ended after ``event``, if it did.

    Four balls and a third strike that the pitch itself did not conclude
    (called, or a foul with the two-strike rule off) are stamped onto the
    event here.
    """
    if event.ended_pa:
        return event.outcome
    if state.balls >= 4:
        event.outcome = Outcome.WALK
        event.label = "Ball (BB)"
    elif state.strikes >= 3:
        event.outcome = Outcome.STRIKEOUT
        event.label = "Strikeout"
    else:
        return None
    event.ended_pa = True
    return event.outcome


def apply_count_outcome(state: GameState, outcome: Outcome) -> None:
    if outcome == Outcome.WALK:
        apply_walk(state)
    elif outcome == Outcome.STRIKEOUT:
        state.outs += 1


def play_plate_appearance(state: GameState, batter: Player, pitcher: Player,
                          defense: TeamSide, rules: RuleConfig,
                          rng: RandomSource) -> PlateAppearanceResult:
    """Throw pitches until the plate appearance ends.

    Walks and strikeouts are applied here, exactly once. Inning and lineup
    bookkeeping is left to :func:`complete_plate_appearance`.
    """
    pitches: list[PitchEvent] = []
    outcome: Outcome | None = None

    while outcome is None:
        event = simulate_single_pitch(state, batter, pitcher, defense, rules, rng,
                                      pitch_number=len(pitches) + 1)
        outcome = end_by_count(state, event)
        pitches.append(event)

        if outcome is None and len(pitches) >= MAX_PITCHES_PER_PA:
            logger.warning(
                "Plate appearance for %s unresolved after %d pitches; ending as UNKNOWN",
                batter.name, len(pitches),
            )
            outcome = Outcome.UNKNOWN

    apply_count_outcome(state, outcome)
    return PlateAppearanceResult(outcome=outcome, pitches=pitches)


def complete_plate_appearance(state: GameState, rules: RuleConfig) -> bool:
    """Advance the lineup and handle half-inning / game transitions.

    Returns True if the game is over.
    """
    final_inning = rules.innings

    walk_off = (state.half == Half.BOTTOM and state.inning >= final_inning
                and state.home_score > state.away_score)
    state.advance_lineup()
    if walk_off:
        state.reset_count()
        return True

    if state.outs < 3:
        state.reset_count()
        return False

    state.outs = 0
    state.reset_count()
    state.bases = 0
    if state.half == Half.TOP:
        # Home already ahead: bottom half is not played
        if state.inning >= final_inning and state.home_score > state.away_score:
            return True
        state.half = Half.BOTTOM
    else:
        if state.inning >= final_inning and state.home_score != state.away_score:
            return True
        state.half = Half.TOP
        state.inning += 1
    return False


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class SimulationEngine:
    """Runs simulation calls against persisted game records.

    Args:
        registry: Players and teams the game records refer to by id.
        clock: Source of the per-PA nonce mixed into the stored seed. Fix it
            to make whole games replayable from the seed.
    """

    def __init__(self, registry: Registry, clock: Callable[[], int] | None = None):
        self.registry = registry
        self.clock = clock or time.time_ns

    # -------------------------------------------------------------------
    # Preconditions
    # -------------------------------------------------------------------

    def _prepare(self, game: GameRecord) -> tuple[TeamSide, TeamSide, RuleConfig]:
        if game.status == GameStatus.FINISHED:
            raise GameAlreadyFinishedError()
        if game.rules is None:
            raise MissingRuleSetError()
        away = resolve_side(self.registry, game.away_team_id)
        home = resolve_side(self.registry, game.home_team_id)
        return away, home, game.rules

    @staticmethod
    def _matchup(state: GameState, away: TeamSide, home: TeamSide
                 ) -> tuple[TeamSide, TeamSide, Player, Player]:
        offense, defense = (away, home) if state.is_top else (home, away)
        return offense, defense, offense.batter_at(state.batting_lineup_index()), defense.pitcher()

    def _conclude(self, game: GameRecord, state: GameState, rules: RuleConfig,
                  batter: Player, outcome: Outcome, last_pitch: PitchEvent) -> None:
        """Lineup / inning bookkeeping once a plate appearance has ended."""
        inning, half = state.inning, state.half
        finished = complete_plate_appearance(state, rules)
        last_pitch.trace.append(score_snapshot(state.away_score, state.home_score))

        half_str = "Top" if half == Half.TOP else "Bot"
        state.last_message = (f"{half_str} {inning}: {batter.name} {outcome.value} "
                              f"[{state.score_display()}]")
        if finished:
            game.status = GameStatus.FINISHED
            state.last_message += " -- Final"
            logger.info("Game %s final: %s (%d innings)",
                        game.game_id, state.score_display(), state.inning)
        logger.debug("%s", state.last_message)

    # -------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------

    def next_pitch(self, game: GameRecord) -> PitchEvent:
        """Simulate one pitch on the record's current state.

        The working seed is derived from the stored seed and the inning /
        outs / count, so the same (seed, state) always gives the same pitch.
        If the pitch ends the plate appearance, the walk or strikeout and the
        lineup / inning transition are applied too. Nothing is logged; the
        play log is kept per plate appearance.
        """
        away, home, rules = self._prepare(game)
        state = game.get_state()
        _, defense, batter, pitcher = self._matchup(state, away, home)

        rng = SplitMix64(derive_seed(
            game.seed, state_key(state.inning, state.outs, state.balls, state.strikes)))
        event = simulate_single_pitch(state, batter, pitcher, defense, rules, rng)
        outcome = end_by_count(state, event)
        if outcome is not None:
            apply_count_outcome(state, outcome)
            self._conclude(game, state, rules, batter, outcome, event)

        game.seed = rng.next_uint64()
        game.set_state(state)
        return event

    def simulate_plate_appearance(self, game: GameRecord,
                                  log_sink: LogSink) -> PlateAppearanceResult:
        """Simulate one full plate appearance, persist the state and log it."""
        away, home, rules = self._prepare(game)
        state = game.get_state()
        offense, defense, batter, pitcher = self._matchup(state, away, home)
        inning, half = state.inning, state.half

        rng = SplitMix64(derive_seed(game.seed, self.clock() & MASK_64))
        result = play_plate_appearance(state, batter, pitcher, defense, rules, rng)
        self._conclude(game, state, rules, batter, result.outcome, result.pitches[-1])

        game.seed = rng.next_uint64()
        game.set_state(state)

        log_sink.record(PlayLogRecord(
            game_id=game.game_id,
            inning=inning,
            half=half,
            offense_team=offense.name,
            defense_team=defense.name,
            batter_name=batter.name,
            pitcher_name=pitcher.name,
            outcome=result.outcome,
            pitch_count=result.pitch_count,
            detail_json=result.model_dump_json(),
        ))
        return result

    def simulate_half_inning(self, game: GameRecord, log_sink: LogSink) -> None:
        """Simulate plate appearances until the half-inning changes or the game ends."""
        self._prepare(game)
        start = game.get_state()
        start_key = (start.inning, start.half)
        while game.status != GameStatus.FINISHED:
            self.simulate_plate_appearance(game, log_sink)
            now = game.get_state()
            if (now.inning, now.half) != start_key:
                break

    def simulate_game(self, game: GameRecord, log_sink: LogSink) -> None:
        """Simulate to the end of the game, extra innings included.

        There is no cancellation hook; callers needing one should drive
        :meth:`simulate_plate_appearance` themselves.
        """
        self._prepare(game)
        plate_appearances = 0
        while game.status != GameStatus.FINISHED:
            self.simulate_plate_appearance(game, log_sink)
            plate_appearances += 1
        logger.info("Game %s simulated %d plate appearances", game.game_id, plate_appearances)

    def reset_game(self, game: GameRecord) -> None:
        reset_game(game)
