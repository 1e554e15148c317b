# /// script
# requires-python = ">=3.12"
# dependencies = [
#     "pydantic>=2.0",
# ]
# ///
"""Baseball outcome engine -- command-line entry point.

Run with:  uv run game.py                       # simulate a full game
           uv run game.py --mode pa             # one plate appearance
           uv run game.py --mode half --record data/games/g1.json
                                                # advance a saved game by a half-inning
           uv run game.py --seed 42 --replayable  # whole game reproducible from the seed
           uv run game.py --json                # structured JSON output
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from config import configure_logging, get_log_dir, load_rule_config
from game_record import GameRecord, load_game_record, new_game, reset_game, save_game_record
from models import PitchEvent, PlateAppearanceResult, Registry
from play_log import JsonlLogSink, LogSink, MemoryLogSink, PlayLogRecord
from responses import error_response, success_response
from simulation import EngineError, SimulationEngine, load_rosters

logger = logging.getLogger(__name__)

MODES = ("pitch", "pa", "half", "game")


class _TeeSink:
    """Forward every record to several sinks."""

    def __init__(self, *sinks: LogSink):
        self.sinks = sinks

    def record(self, entry: PlayLogRecord) -> None:
        for sink in self.sinks:
            sink.record(entry)


# ---------------------------------------------------------------------------
# Game setup
# ---------------------------------------------------------------------------

def build_game(registry: Registry, args: argparse.Namespace) -> GameRecord:
    """Load the saved record if there is one, else start a new game."""
    if args.record and Path(args.record).exists():
        game = load_game_record(args.record)
        logger.info("Loaded game %s from %s", game.game_id, args.record)
        return game

    team_ids = list(registry.teams)
    away = args.away or (team_ids[0] if team_ids else None)
    home = args.home or (team_ids[1] if len(team_ids) > 1 else None)
    rules = load_rule_config(args.rules)
    return new_game(away, home, rules, seed=args.seed)


def describe_pitch(event: PitchEvent, with_trace: bool = False) -> list[str]:
    lines = [f"  #{event.pitch_number} {event.label}"]
    if with_trace:
        for step in event.trace:
            if step.range:
                lines.append(f"      {step.title}: {step.roll}/{step.range} "
                             f"(<= {step.threshold}) -> {step.picked}")
            else:
                lines.append(f"      {step.title}: {step.picked}")
    return lines


def describe_record(entry: PlayLogRecord, with_trace: bool = False) -> list[str]:
    half = "Top" if entry.half.value == "top" else "Bot"
    lines = [f"{half} {entry.inning}: {entry.batter_name} vs {entry.pitcher_name} "
             f"-> {entry.outcome.value} ({entry.pitch_count} pitches)"]
    if with_trace:
        for event in entry.detail().pitches:
            lines.extend(describe_pitch(event, with_trace=True))
    return lines


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate baseball pitch by pitch with a full decision trace."
    )
    parser.add_argument("--mode", choices=MODES, default="game",
                        help="How far to simulate (default: game).")
    parser.add_argument("--rosters", type=Path, default=None,
                        help="Roster JSON (default: data/sample_rosters.json).")
    parser.add_argument("--rules", type=Path, default=None,
                        help="Rule set JSON (default: $BASEBALL_SIM_RULES or built-in defaults).")
    parser.add_argument("--away", default=None, help="Away team id.")
    parser.add_argument("--home", default=None, help="Home team id.")
    parser.add_argument("--seed", type=int, default=None, help="Seed for a new game.")
    parser.add_argument("--record", type=Path, default=None,
                        help="Game record to resume from and save to.")
    parser.add_argument("--reset", action="store_true",
                        help="Reset the game (new seed, fresh state) before simulating.")
    parser.add_argument("--replayable", action="store_true",
                        help="Use a fixed per-PA nonce so the game replays from its seed.")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Play log JSONL (default: $BASEBALL_SIM_LOG_DIR/game_<id>.jsonl).")
    parser.add_argument("--json", action="store_true", help="Print a JSON response.")
    parser.add_argument("--trace", action="store_true", help="Print every trace step.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    command = f"simulate_{args.mode}"

    def fail(code: str, message: str) -> int:
        if args.json:
            print(error_response(command, code, message))
        else:
            print(f"Error: {message}", file=sys.stderr)
        return 1

    try:
        registry = load_rosters(args.rosters)
        game = build_game(registry, args)
    except FileNotFoundError as e:
        return fail("FILE_NOT_FOUND", str(e))
    except ValidationError as e:
        return fail("INVALID_CONFIG", f"{e.error_count()} validation error(s): {e}")

    if args.reset:
        reset_game(game)

    memory = MemoryLogSink()
    log_file = args.log_file or get_log_dir() / f"game_{game.game_id}.jsonl"
    sink = _TeeSink(memory, JsonlLogSink(log_file))
    engine = SimulationEngine(registry, clock=(lambda: 0) if args.replayable else None)

    pitch: PitchEvent | None = None
    result: PlateAppearanceResult | None = None
    try:
        if args.mode == "pitch":
            pitch = engine.next_pitch(game)
        elif args.mode == "pa":
            result = engine.simulate_plate_appearance(game, sink)
        elif args.mode == "half":
            engine.simulate_half_inning(game, sink)
        else:
            engine.simulate_game(game, sink)
    except EngineError as e:
        return fail(e.error_code, e.message)

    if args.record:
        save_game_record(game, args.record)

    state = game.get_state()
    if args.json:
        data = {
            "game_id": game.game_id,
            "status": game.status.value,
            "seed": game.seed,
            "situation": state.situation_display(),
            "score": {"away": state.away_score, "home": state.home_score},
            "plate_appearances": [r.outcome.value for r in memory.records],
            "log_file": str(log_file) if memory.records else None,
        }
        if pitch is not None:
            data["pitch"] = pitch.model_dump(mode="json")
        if result is not None:
            data["result"] = result.model_dump(mode="json")
        print(success_response(command, data))
        return 0

    if pitch is not None:
        print("\n".join(describe_pitch(pitch, with_trace=args.trace)))
    for entry in memory.records:
        print("\n".join(describe_record(entry, with_trace=args.trace)))
    print()
    print(state.situation_display())
    if state.last_message:
        print(state.last_message)
    print(f"Status: {game.status.value}  Seed: {game.seed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
