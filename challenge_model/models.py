from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ChallengeState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    FEEDBACK = "feedback"
    TIP_INTERSTITIAL = "tip"
    RESTARTING = "restarting"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES


_TERMINAL_STATES = frozenset(
    {ChallengeState.COMPLETED, ChallengeState.CANCELLED, ChallengeState.FAILED}
)


@dataclass
class MathProblem:
    """
    A single multiple-choice math problem shown during a wake-up challenge.

    - `question`: the expression to show to the user (e.g. "3 + 4 = ?")
    - `options`: four distinct numerals, in display order
    - `correct_answer`: the numeral among `options` that solves `question`
    - `level`: difficulty level the problem was generated for
    - `variant`: name of the generation rule that produced it
    - `meta`: optional metadata (operands, distractor strategies) for logging/analytics
    """

    question: str
    options: list[str]
    correct_answer: str
    level: int
    variant: str
    meta: dict | None = None

    def is_correct(self, value: str | int) -> bool:
        return str(value).strip() == self.correct_answer


@dataclass
class SecurityTip:
    id: int
    tip: str
    category: str


@dataclass
class SessionSnapshot:
    """Point-in-time view of a challenge session, safe to hand to a UI."""

    state: ChallengeState
    level: int
    problem_count: int
    round_number: int
    current_index: int
    remaining_time: int
    time_budget: int
    correct_count: int
    question: str | None = None
    options: list[str] = field(default_factory=list)
    selected_answer: str | None = None
    is_correct: bool | None = None
    tip: SecurityTip | None = None
    passed: bool | None = None
