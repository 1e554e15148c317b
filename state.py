# /// script
# requires-python = ">=3.12"
# dependencies = ["pydantic>=2.0"]
# ///
"""In-memory game state mutated by the simulation engine.

The engine never sees how this is stored; :mod:`game_record` handles the
encoding at the persistence boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

from models import Half

FIRST = 1
SECOND = 2
THIRD = 4
BASES_LOADED = FIRST | SECOND | THIRD


@dataclass
class GameState:
    """Authoritative situation of one game."""
    inning: int = 1
    half: Half = Half.TOP  # TOP = away bats, BOTTOM = home bats
    outs: int = 0
    balls: int = 0
    strikes: int = 0
    bases: int = 0  # bitmask: 1=1B, 2=2B, 4=3B
    away_score: int = 0
    home_score: int = 0
    away_lineup_index: int = 0
    home_lineup_index: int = 0
    last_message: str | None = None

    @property
    def is_top(self) -> bool:
        return self.half == Half.TOP

    def batting_lineup_index(self) -> int:
        return (self.away_lineup_index if self.is_top else self.home_lineup_index) % 9

    def advance_lineup(self) -> None:
        if self.is_top:
            self.away_lineup_index = (self.away_lineup_index + 1) % 9
        else:
            self.home_lineup_index = (self.home_lineup_index + 1) % 9

    def runner_on(self, base: int) -> bool:
        """``base`` is 1, 2 or 3."""
        return bool(self.bases & (1 << (base - 1)))

    def add_runs(self, runs: int) -> None:
        if runs <= 0:
            return
        if self.is_top:
            self.away_score += runs
        else:
            self.home_score += runs

    def reset_count(self) -> None:
        self.balls = 0
        self.strikes = 0

    def bases_string(self) -> str:
        """Return base state string like '110' for runners on 1st and 2nd."""
        return "".join("1" if self.runner_on(b) else "0" for b in (1, 2, 3))

    def score_display(self) -> str:
        return f"Away {self.away_score} - Home {self.home_score}"

    def situation_display(self) -> str:
        half_str = "Top" if self.is_top else "Bot"
        on_bases = [name for b, name in ((1, "1st"), (2, "2nd"), (3, "3rd")) if self.runner_on(b)]
        runners_str = "runners on " + ", ".join(on_bases) if on_bases else "bases empty"
        return (f"{half_str} {self.inning}, {self.outs} out, "
                f"{self.balls}-{self.strikes}, {runners_str}, {self.score_display()}")
