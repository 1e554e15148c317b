# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""Base occupancy and scoring.

Runners are tracked as a bitmask on :class:`~state.GameState` (1=1B, 2=2B,
4=3B). Each function mutates the state in place, credits runs to the
batting side and returns the number of runs that scored. Any
aggressiveness-dependent advancement is drawn through the
:class:`~tracing.TraceRecorder` so it shows up in the pitch trace.
"""

from __future__ import annotations

from models import Outcome, RuleConfig, ThrowHomePolicy
from state import BASES_LOADED, FIRST, SECOND, THIRD, GameState
from tracing import TraceRecorder, clamp

DOUBLE_PLAY_PROBABILITY = 0.35
OUT_AT_HOME_PROBABILITY = 0.60


def _occupied(state: GameState) -> tuple[bool, bool, bool]:
    return (bool(state.bases & FIRST), bool(state.bases & SECOND),
            bool(state.bases & THIRD))


# ---------------------------------------------------------------------------
# Walks, errors, wild pitches
# ---------------------------------------------------------------------------

def apply_walk(state: GameState) -> int:
    """Batter to first; only forced runners move."""
    on1, on2, on3 = _occupied(state)
    if not on1:
        state.bases |= FIRST
        return 0
    if not on2:
        state.bases |= FIRST | SECOND
        return 0
    if not on3:
        state.bases = BASES_LOADED
        return 0
    state.add_runs(1)
    state.bases = BASES_LOADED
    return 1


def advance_all_runners(state: GameState) -> int:
    """Every runner moves up one base; the batter stays put."""
    on1, on2, on3 = _occupied(state)
    runs = 1 if on3 else 0
    new_bases = 0
    if on2:
        new_bases |= THIRD
    if on1:
        new_bases |= SECOND
    state.add_runs(runs)
    state.bases = new_bases
    return runs


def apply_reach_on_error(state: GameState) -> int:
    """Batter to first, existing runners advance one base."""
    runs = advance_all_runners(state)
    state.bases |= FIRST
    return runs


# ---------------------------------------------------------------------------
# Hits
# ---------------------------------------------------------------------------

def apply_hit(state: GameState, outcome: Outcome, aggressiveness: float,
              recorder: TraceRecorder) -> int:
    """Advance runners for a single, double, triple or home run."""
    on1, on2, on3 = _occupied(state)
    aggressiveness = clamp(aggressiveness)
    runs = 0

    if outcome == Outcome.HOME_RUN:
        runs = 1 + on1 + on2 + on3
        new_bases = 0

    elif outcome == Outcome.TRIPLE:
        runs = on1 + on2 + on3
        new_bases = THIRD

    elif outcome == Outcome.DOUBLE:
        runs = on2 + on3
        new_bases = SECOND
        if on1:
            if recorder.decide(
                "Runner From 1st On Double",
                0.15 + 0.60 * aggressiveness,
                "SCORES", "HOLDS AT 3RD",
                inputs={"runnerAggressiveness": aggressiveness},
            ):
                runs += 1
            else:
                new_bases |= THIRD

    elif outcome == Outcome.SINGLE:
        runs = int(on3)
        new_bases = FIRST
        if on2:
            if recorder.decide(
                "Runner From 2nd On Single",
                0.20 + 0.70 * aggressiveness,
                "SCORES", "HOLDS AT 3RD",
                inputs={"runnerAggressiveness": aggressiveness},
            ):
                runs += 1
            else:
                new_bases |= THIRD
        if on1:
            # Only one runner can end up on third.
            if not new_bases & THIRD and recorder.decide(
                "Runner From 1st On Single",
                0.05 + 0.35 * aggressiveness,
                "TO 3RD", "TO 2ND",
                inputs={"runnerAggressiveness": aggressiveness},
            ):
                new_bases |= THIRD
            else:
                new_bases |= SECOND

    else:
        raise ValueError(f"not a hit outcome: {outcome!r}")

    state.add_runs(runs)
    state.bases = new_bases
    return runs


# ---------------------------------------------------------------------------
# Ground outs
# ---------------------------------------------------------------------------

def score_context(state: GameState) -> str:
    """'TIE', or '<SIDE> BEHIND' / '<SIDE> AHEAD' from the batting side's view."""
    if state.away_score == state.home_score:
        return "TIE"
    if state.is_top:
        return "AWAY BEHIND" if state.away_score < state.home_score else "AWAY AHEAD"
    return "HOME BEHIND" if state.home_score < state.away_score else "HOME AHEAD"


def should_throw_home(state: GameState, rules: RuleConfig) -> bool:
    policy = rules.throw_home_policy
    if policy == ThrowHomePolicy.NEVER:
        return False
    if policy == ThrowHomePolicy.ALWAYS:
        return True
    if state.outs < 2:
        return True
    return not score_context(state).endswith("AHEAD")


def _force_runner_to_second(state: GameState) -> bool:
    if state.bases & FIRST and not state.bases & SECOND:
        state.bases = (state.bases & ~FIRST) | SECOND
        return True
    return False


def resolve_ground_out(state: GameState, rules: RuleConfig,
                       recorder: TraceRecorder) -> Outcome:
    """Resolve a ground ball that was neither a hit nor an error.

    Branches, first applicable wins: play at home with a runner on third
    (when the throw-home policy says so), double-play attempt, sure out at
    first.
    """
    on1, _, on3 = _occupied(state)

    if on3:
        throw_home = recorder.policy(
            "Throw Home Decision",
            should_throw_home(state, rules),
            "THROW HOME", "TAKE SURE OUT",
            inputs={"outs": float(state.outs)},
            context={
                "throwHomePolicy": rules.throw_home_policy.value,
                "scoreContext": score_context(state),
            },
        )
        if throw_home:
            out_at_home = recorder.decide(
                "Play at Home",
                OUT_AT_HOME_PROBABILITY,
                "OUT AT HOME", "SAFE (RUN SCORES)",
                inputs={"outProb": OUT_AT_HOME_PROBABILITY},
            )
            if not out_at_home:
                state.add_runs(1)
            state.outs += 1
            state.bases &= ~THIRD
            return Outcome.GROUND_OUT

    if on1 and state.outs < 2 and rules.try_double_play:
        turned = recorder.decide(
            "Double Play Attempt",
            DOUBLE_PLAY_PROBABILITY,
            "DP", "NO DP",
            inputs={"dpProb": DOUBLE_PLAY_PROBABILITY},
        )
        if turned:
            state.outs += 2
            state.bases &= ~FIRST
            return Outcome.DOUBLE_PLAY

    state.outs += 1
    if _force_runner_to_second(state):
        return Outcome.FIELDERS_CHOICE
    return Outcome.GROUND_OUT
