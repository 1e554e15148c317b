# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0", "pytest>=7.0"]
# ///
"""Tests for base occupancy and scoring.

Verifies:
1. Walks move only forced runners; a bases-loaded walk scores one
2. Wild pitches, passed balls and errors advance every runner one base
3. Home runs and triples clear the bases; doubles and singles score the
   lead runners and draw for the trailing ones
4. Only one runner can finish on third after a single
5. Throw-home policy and score context
6. Ground-out branches: play at home, double play, force at second, sure out
7. Runs are credited to the batting side
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from baserunning import (
    advance_all_runners,
    apply_hit,
    apply_reach_on_error,
    apply_walk,
    resolve_ground_out,
    score_context,
    should_throw_home,
)
from models import Half, Outcome, RuleConfig, ThrowHomePolicy
from state import BASES_LOADED, FIRST, SECOND, THIRD, GameState
from tracing import TraceRecorder


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class ScriptedRng:
    """Returns pre-set rolls (1-based); any extra draw fails the test."""

    def __init__(self, *rolls):
        self.rolls = list(rolls)

    def next_int(self, upper_bound):
        assert self.rolls, "unexpected random draw"
        return self.rolls.pop(0) - 1

    def next_double(self):
        raise AssertionError("engine decisions must go through next_int")


def recorder(*rolls):
    return TraceRecorder(ScriptedRng(*rolls))


def titles(rec):
    return [s.title for s in rec.steps]


# ===========================================================================
# Test: Walks
# ===========================================================================

@pytest.mark.parametrize("before, after", [
    (0, FIRST),
    (FIRST, FIRST | SECOND),
    (SECOND, FIRST | SECOND),
    (THIRD, FIRST | THIRD),
    (FIRST | SECOND, BASES_LOADED),
    (FIRST | THIRD, BASES_LOADED),
    (SECOND | THIRD, BASES_LOADED),
])
def test_walk_moves_only_forced_runners(before, after):
    state = GameState(bases=before)
    assert apply_walk(state) == 0
    assert state.bases == after
    assert state.away_score == 0


def test_bases_loaded_walk_scores_one():
    state = GameState(bases=BASES_LOADED)
    assert apply_walk(state) == 1
    assert state.bases == BASES_LOADED
    assert state.away_score == 1


def test_bases_loaded_walk_credits_home_in_bottom_half():
    state = GameState(half=Half.BOTTOM, bases=BASES_LOADED)
    apply_walk(state)
    assert state.home_score == 1
    assert state.away_score == 0


# ===========================================================================
# Test: Wild pitch / passed ball / error
# ===========================================================================

def test_advance_all_runners_from_loaded():
    state = GameState(bases=BASES_LOADED)
    assert advance_all_runners(state) == 1
    assert state.bases == SECOND | THIRD
    assert state.away_score == 1


def test_advance_all_runners_first_and_third():
    state = GameState(bases=FIRST | THIRD)
    advance_all_runners(state)
    assert state.bases == SECOND
    assert state.away_score == 1


def test_reach_on_error_puts_batter_on_first():
    state = GameState(bases=FIRST)
    assert apply_reach_on_error(state) == 0
    assert state.bases == FIRST | SECOND


def test_reach_on_error_bases_loaded_scores_one():
    state = GameState(bases=BASES_LOADED)
    assert apply_reach_on_error(state) == 1
    assert state.bases == BASES_LOADED


# ===========================================================================
# Test: Hits
# ===========================================================================

def test_grand_slam():
    state = GameState(bases=BASES_LOADED)
    assert apply_hit(state, Outcome.HOME_RUN, 0.5, recorder()) == 4
    assert state.bases == 0
    assert state.away_score == 4


def test_solo_home_run():
    state = GameState()
    assert apply_hit(state, Outcome.HOME_RUN, 0.5, recorder()) == 1
    assert state.bases == 0


def test_triple_clears_bases():
    state = GameState(bases=BASES_LOADED)
    assert apply_hit(state, Outcome.TRIPLE, 0.5, recorder()) == 3
    assert state.bases == THIRD


def test_double_scores_runners_on_second_and_third_without_a_draw():
    state = GameState(bases=SECOND | THIRD)
    rec = recorder()
    assert apply_hit(state, Outcome.DOUBLE, 0.5, rec) == 2
    assert state.bases == SECOND
    assert rec.steps == []


def test_double_runner_from_first_scores():
    state = GameState(bases=FIRST)
    rec = recorder(1)
    assert apply_hit(state, Outcome.DOUBLE, 0.5, rec) == 1
    assert state.bases == SECOND
    assert rec.steps[0].title == "Runner From 1st On Double"
    assert rec.steps[0].picked == "SCORES"


def test_double_runner_from_first_holds():
    state = GameState(bases=FIRST)
    rec = recorder(10_000)
    assert apply_hit(state, Outcome.DOUBLE, 0.5, rec) == 0
    assert state.bases == SECOND | THIRD
    assert rec.steps[0].picked == "HOLDS AT 3RD"


def test_single_scores_runner_from_third_without_a_draw():
    state = GameState(bases=THIRD)
    rec = recorder()
    assert apply_hit(state, Outcome.SINGLE, 0.5, rec) == 1
    assert state.bases == FIRST


def test_single_runner_from_second_scores():
    state = GameState(bases=SECOND)
    assert apply_hit(state, Outcome.SINGLE, 0.5, recorder(1)) == 1
    assert state.bases == FIRST


def test_single_runner_from_second_holds():
    state = GameState(bases=SECOND)
    assert apply_hit(state, Outcome.SINGLE, 0.5, recorder(10_000)) == 0
    assert state.bases == FIRST | THIRD


def test_single_runner_from_first_to_third():
    state = GameState(bases=FIRST)
    rec = recorder(1)
    apply_hit(state, Outcome.SINGLE, 0.5, rec)
    assert state.bases == FIRST | THIRD
    assert rec.steps[0].picked == "TO 3RD"


def test_single_runner_from_first_to_second():
    state = GameState(bases=FIRST)
    apply_hit(state, Outcome.SINGLE, 0.5, recorder(10_000))
    assert state.bases == FIRST | SECOND


def test_single_runner_from_first_cannot_join_runner_held_at_third():
    state = GameState(bases=FIRST | SECOND)
    rec = recorder(10_000)
    apply_hit(state, Outcome.SINGLE, 0.5, rec)
    assert state.bases == BASES_LOADED
    assert titles(rec) == ["Runner From 2nd On Single"]


def test_single_both_runners_take_extra_base():
    state = GameState(bases=FIRST | SECOND)
    rec = recorder(1, 1)
    assert apply_hit(state, Outcome.SINGLE, 0.5, rec) == 1
    assert state.bases == FIRST | THIRD
    assert titles(rec) == ["Runner From 2nd On Single", "Runner From 1st On Single"]


def test_zero_aggressiveness_threshold():
    # 0.20 + 0.70 * 0 -> 2000 of 10,000
    state = GameState(bases=SECOND)
    rec = recorder(2000)
    apply_hit(state, Outcome.SINGLE, 0.0, rec)
    assert rec.steps[0].threshold == 2000
    assert rec.steps[0].picked == "SCORES"

    state = GameState(bases=SECOND)
    rec = recorder(2001)
    apply_hit(state, Outcome.SINGLE, 0.0, rec)
    assert rec.steps[0].picked == "HOLDS AT 3RD"


def test_more_aggressive_runners_have_higher_threshold():
    low, high = recorder(1), recorder(1)
    apply_hit(GameState(bases=FIRST), Outcome.DOUBLE, 0.1, low)
    apply_hit(GameState(bases=FIRST), Outcome.DOUBLE, 0.9, high)
    assert high.steps[0].threshold > low.steps[0].threshold


def test_hit_credits_home_in_bottom_half():
    state = GameState(half=Half.BOTTOM, bases=THIRD)
    apply_hit(state, Outcome.SINGLE, 0.5, recorder())
    assert state.home_score == 1
    assert state.away_score == 0


def test_non_hit_outcome_rejected():
    with pytest.raises(ValueError):
        apply_hit(GameState(), Outcome.WALK, 0.5, recorder())


# ===========================================================================
# Test: Throw-home policy and score context
# ===========================================================================

def test_score_context():
    assert score_context(GameState()) == "TIE"
    assert score_context(GameState(away_score=1)) == "AWAY AHEAD"
    assert score_context(GameState(home_score=1)) == "AWAY BEHIND"
    assert score_context(GameState(half=Half.BOTTOM, home_score=2)) == "HOME AHEAD"
    assert score_context(GameState(half=Half.BOTTOM, away_score=2)) == "HOME BEHIND"


@pytest.mark.parametrize("policy, state, expected", [
    (ThrowHomePolicy.NEVER, GameState(outs=0), False),
    (ThrowHomePolicy.ALWAYS, GameState(outs=2, away_score=5), True),
    (ThrowHomePolicy.SITUATIONAL, GameState(outs=0, away_score=5), True),
    (ThrowHomePolicy.SITUATIONAL, GameState(outs=1, away_score=5), True),
    (ThrowHomePolicy.SITUATIONAL, GameState(outs=2), True),
    (ThrowHomePolicy.SITUATIONAL, GameState(outs=2, home_score=3), True),
    (ThrowHomePolicy.SITUATIONAL, GameState(outs=2, away_score=3), False),
])
def test_should_throw_home(policy, state, expected):
    assert should_throw_home(state, RuleConfig(throw_home_policy=policy)) is expected


# ===========================================================================
# Test: Ground outs
# ===========================================================================

def test_play_at_home_out():
    state = GameState(bases=THIRD)
    rec = recorder(1)
    rules = RuleConfig(throw_home_policy=ThrowHomePolicy.ALWAYS)
    assert resolve_ground_out(state, rules, rec) == Outcome.GROUND_OUT
    assert state.outs == 1
    assert state.bases == 0
    assert state.away_score == 0
    assert titles(rec) == ["Throw Home Decision", "Play at Home"]
    assert rec.steps[1].picked == "OUT AT HOME"


def test_play_at_home_safe_scores():
    state = GameState(bases=THIRD)
    rec = recorder(10_000)
    rules = RuleConfig(throw_home_policy=ThrowHomePolicy.ALWAYS)
    assert resolve_ground_out(state, rules, rec) == Outcome.GROUND_OUT
    assert state.outs == 1
    assert state.bases == 0
    assert state.away_score == 1
    assert rec.steps[1].picked == "SAFE (RUN SCORES)"


def test_no_throw_home_takes_sure_out():
    state = GameState(bases=THIRD)
    rec = recorder()
    rules = RuleConfig(throw_home_policy=ThrowHomePolicy.NEVER)
    assert resolve_ground_out(state, rules, rec) == Outcome.GROUND_OUT
    assert state.outs == 1
    assert state.bases == THIRD
    step = rec.steps[0]
    assert step.picked == "TAKE SURE OUT"
    assert step.context["throwHomePolicy"] == "never"
    assert (step.roll, step.range) == (0, 1)


def test_situational_two_outs_batting_team_ahead_takes_sure_out():
    state = GameState(bases=THIRD, outs=2, away_score=4)
    rec = recorder()
    resolve_ground_out(state, RuleConfig(), rec)
    assert rec.steps[0].picked == "TAKE SURE OUT"
    assert rec.steps[0].context["scoreContext"] == "AWAY AHEAD"
    assert state.outs == 3


def test_double_play_turned():
    state = GameState(bases=FIRST)
    rec = recorder(1)
    assert resolve_ground_out(state, RuleConfig(), rec) == Outcome.DOUBLE_PLAY
    assert state.outs == 2
    assert state.bases == 0
    assert titles(rec) == ["Double Play Attempt"]


def test_double_play_missed_forces_runner_to_second():
    state = GameState(bases=FIRST)
    rec = recorder(10_000)
    assert resolve_ground_out(state, RuleConfig(), rec) == Outcome.FIELDERS_CHOICE
    assert state.outs == 1
    assert state.bases == SECOND


def test_double_play_disabled_by_rule():
    state = GameState(bases=FIRST)
    rec = recorder()
    assert resolve_ground_out(state, RuleConfig(try_double_play=False), rec) == \
        Outcome.FIELDERS_CHOICE
    assert state.outs == 1
    assert rec.steps == []


def test_no_double_play_attempt_with_two_outs():
    state = GameState(bases=FIRST, outs=2)
    rec = recorder()
    resolve_ground_out(state, RuleConfig(), rec)
    assert state.outs == 3
    assert rec.steps == []


def test_sure_out_with_second_occupied_does_not_force():
    state = GameState(bases=FIRST | SECOND)
    rec = recorder(10_000)
    assert resolve_ground_out(state, RuleConfig(), rec) == Outcome.GROUND_OUT
    assert state.bases == FIRST | SECOND
    assert state.outs == 1


def test_bases_empty_ground_out():
    state = GameState()
    assert resolve_ground_out(state, RuleConfig(), recorder()) == Outcome.GROUND_OUT
    assert state.outs == 1
    assert state.bases == 0


def test_declined_throw_home_falls_through_to_double_play():
    state = GameState(bases=FIRST | THIRD)
    rec = recorder(1)
    rules = RuleConfig(throw_home_policy=ThrowHomePolicy.NEVER)
    assert resolve_ground_out(state, rules, rec) == Outcome.DOUBLE_PLAY
    assert titles(rec) == ["Throw Home Decision", "Double Play Attempt"]
    assert state.bases == THIRD
    assert state.outs == 2
