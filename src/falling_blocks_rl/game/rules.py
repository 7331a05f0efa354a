from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class ScoringRules:
    line_clear_scores: tuple[int, int, int, int] = (10, 25, 50, 85)
    rows_per_level: int = 10

    def __post_init__(self) -> None:
        if self.rows_per_level < 1:
            raise ValueError(f"rows_per_level must be at least 1, got {self.rows_per_level}")

    def score_for_lines(self, lines: int, combo: int = 1) -> int:
        # Clears of more than four rows cannot happen with tetrominoes and score nothing.
        if lines <= 0 or lines > len(self.line_clear_scores):
            return 0
        return self.line_clear_scores[lines - 1] * combo


@dataclass
class LevelProgress:
    """Level counter fed with cleared rows.

    Every `rows_per_level` rows bumps the level until `win_level` is reached;
    completing another batch at that level marks the game as won.
    """

    win_level: int = 60
    rows_per_level: int = 10
    level: int = 1
    progress: int = 0
    won: bool = False

    def add_rows(self, count: int) -> int:
        """Returns how many levels were gained."""
        gained = 0
        self.progress += count
        while self.progress >= self.rows_per_level:
            self.progress -= self.rows_per_level
            if self.level < self.win_level:
                self.level += 1
                gained += 1
            else:
                self.won = True
        return gained


def gravity_delay_ms(level: int, win_level: int = 60, base_delay_ms: int = 800) -> int:
    """Gravity interval in ms: `base_delay_ms` at level 0 down to 0 at `win_level`.

    Quarter-wave curve ``base - cos(pi/2 / win_level * level - pi/2) * base``,
    evaluated through the equivalent sine so the endpoints are exact.
    """
    return int(base_delay_ms - math.sin((math.pi / 2) / win_level * level) * base_delay_ms)
