"""Timed multi-round challenge gating alarm dismissal."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from .config import Settings, settings as default_settings
from .generator import ProblemGenerator
from .models import ChallengeState, MathProblem, SecurityTip, SessionSnapshot
from .scheduling import AsyncioScheduler, Scheduler, TimerHandle
from .tips import TipCatalog


logger = logging.getLogger(__name__)


class ChallengeSession:
    """State machine for one wake-up challenge.

    presenting -> feedback -> [tip ->] presenting ... -> completed
    A failed round passes through restarting and starts over with fresh
    problems. cancel() ends the session from any non-terminal state.

    The session owns at most one pending timer (the per-second tick or a
    dwell) and cancels it before arming another one or leaving for a
    terminal state.
    """

    def __init__(
        self,
        level: int,
        problem_count: int,
        *,
        generator: Optional[ProblemGenerator] = None,
        scheduler: Optional[Scheduler] = None,
        tips: Optional[TipCatalog] = None,
        settings: Optional[Settings] = None,
        on_complete: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        on_fail: Optional[Callable[[], None]] = None,
        on_restart: Optional[Callable[[int], None]] = None,
        seed: Optional[int] = None,
    ):
        if problem_count < 1:
            raise ValueError(f"problem_count must be at least 1, got {problem_count}")

        cfg = settings or default_settings
        self.level = level
        self.problem_count = problem_count
        self.time_budget = cfg.time_budget(level)
        self.tick_seconds = cfg.TICK_SECONDS
        self.feedback_seconds = cfg.FEEDBACK_SECONDS
        self.tip_seconds = cfg.TIP_SECONDS
        self.tips_enabled = cfg.TIPS_ENABLED
        self.max_rounds = cfg.MAX_ROUNDS

        self._generator = generator or ProblemGenerator(
            seed=seed, max_distractor_attempts=cfg.DISTRACTOR_MAX_ATTEMPTS
        )
        self._scheduler = scheduler or AsyncioScheduler()
        self._tips = tips or TipCatalog(seed=None if seed is None else seed + 3)
        self._on_complete = on_complete
        self._on_cancel = on_cancel
        self._on_fail = on_fail
        self._on_restart = on_restart

        self.state = ChallengeState.IDLE
        self.problems: list[MathProblem] = []
        self.current_index = 0
        self.remaining_time = self.time_budget
        self.correct_count = 0
        self.round_number = 0
        self.selected_answer: Optional[str] = None
        self.is_correct: Optional[bool] = None
        self.current_tip: Optional[SecurityTip] = None
        self.passed: Optional[bool] = None
        self._timer: Optional[TimerHandle] = None

    @property
    def pass_threshold(self) -> int:
        """At least half the problems, rounded up."""
        return (self.problem_count + 1) // 2

    @property
    def current_problem(self) -> Optional[MathProblem]:
        if not self.problems:
            return None
        return self.problems[self.current_index]

    @property
    def is_last_problem(self) -> bool:
        return self.current_index >= len(self.problems) - 1

    # --- timer ownership ---

    def _release_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule(self, delay: float, callback: Callable[[], None]) -> None:
        self._release_timer()
        self._timer = self._scheduler.call_later(delay, callback)

    # --- transitions ---

    def start(self) -> None:
        if self.state != ChallengeState.IDLE:
            raise RuntimeError(f"session already started (state={self.state.value})")
        logger.info(
            "starting challenge: level=%d problems=%d budget=%ds",
            self.level,
            self.problem_count,
            self.time_budget,
        )
        self._start_round()

    def _start_round(self) -> None:
        self.problems = self._generator.generate_round(self.level, self.problem_count)
        self.round_number += 1
        self.current_index = 0
        self.correct_count = 0
        self.passed = None
        self._present()

    def _present(self) -> None:
        self.state = ChallengeState.PRESENTING
        self.remaining_time = self.time_budget
        self.selected_answer = None
        self.is_correct = None
        self.current_tip = None
        self._schedule(self.tick_seconds, self._tick)

    def _tick(self) -> None:
        if self.state != ChallengeState.PRESENTING or self.selected_answer is not None:
            return
        self.remaining_time -= 1
        if self.remaining_time <= 0:
            self.remaining_time = 0
            logger.info(
                "problem %d/%d timed out", self.current_index + 1, len(self.problems)
            )
            self._resolve(None)
            return
        self._schedule(self.tick_seconds, self._tick)

    def submit_answer(self, value: str | int) -> bool:
        """Answer the current problem. Returns False if no answer is accepted right now."""
        if (
            self.state != ChallengeState.PRESENTING
            or self.selected_answer is not None
            or self.remaining_time <= 0
        ):
            logger.debug("ignoring answer %r in state %s", value, self.state.value)
            return False
        self._resolve(str(value).strip())
        return True

    def _resolve(self, answer: Optional[str]) -> None:
        """Score the current problem; a timeout arrives here with answer=None."""
        problem = self.problems[self.current_index]
        correct = answer is not None and problem.is_correct(answer)
        self.selected_answer = answer
        self.is_correct = correct
        if correct:
            self.correct_count += 1
        self.state = ChallengeState.FEEDBACK
        self._schedule(self.feedback_seconds, self._after_feedback)

    def _after_feedback(self) -> None:
        if self.state != ChallengeState.FEEDBACK:
            return
        if not self.is_last_problem:
            if self.is_correct and self.tips_enabled:
                self.current_tip = self._tips.random_tip()
                if self.current_tip is not None:
                    self.state = ChallengeState.TIP_INTERSTITIAL
                    self._schedule(self.tip_seconds, self._advance)
                    return
            self._advance()
            return

        self.passed = self.correct_count >= self.pass_threshold
        if self.passed:
            self._finish(ChallengeState.COMPLETED)
        else:
            self._restart()

    def _advance(self) -> None:
        if self.state not in (ChallengeState.FEEDBACK, ChallengeState.TIP_INTERSTITIAL):
            return
        self.current_index += 1
        self._present()

    def _restart(self) -> None:
        logger.info(
            "round %d failed with %d/%d correct (needed %d)",
            self.round_number,
            self.correct_count,
            self.problem_count,
            self.pass_threshold,
        )
        if self.max_rounds is not None and self.round_number >= self.max_rounds:
            self._finish(ChallengeState.FAILED)
            return
        self._release_timer()
        self.state = ChallengeState.RESTARTING
        if self._on_restart:
            self._on_restart(self.round_number)
            # the callback may have cancelled the session
            if self.state != ChallengeState.RESTARTING:
                return
        self._start_round()

    def _finish(self, state: ChallengeState) -> None:
        self._release_timer()
        self.state = state
        logger.info("challenge %s after %d round(s)", state.value, self.round_number)
        callback = {
            ChallengeState.COMPLETED: self._on_complete,
            ChallengeState.CANCELLED: self._on_cancel,
            ChallengeState.FAILED: self._on_fail,
        }[state]
        if callback:
            callback()

    def cancel(self) -> bool:
        """Abandon the challenge (e.g. the user snoozed). Returns False if already over."""
        if self.state.is_terminal:
            return False
        self._finish(ChallengeState.CANCELLED)
        return True

    def snapshot(self) -> SessionSnapshot:
        problem = self.current_problem
        show_problem = problem is not None and not self.state.is_terminal
        return SessionSnapshot(
            state=self.state,
            level=self.level,
            problem_count=self.problem_count,
            round_number=self.round_number,
            current_index=self.current_index,
            remaining_time=self.remaining_time,
            time_budget=self.time_budget,
            correct_count=self.correct_count,
            question=problem.question if show_problem else None,
            options=list(problem.options) if show_problem else [],
            selected_answer=self.selected_answer,
            is_correct=self.is_correct,
            tip=self.current_tip,
            passed=self.passed,
        )


class SessionNotFound(KeyError):
    """Raised for a handle that does not name the active challenge."""


class ChallengeController:
    """Entry point for the alarm-dismissal flow; runs one challenge at a time."""

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[Settings] = None,
        tips: Optional[TipCatalog] = None,
    ):
        self._scheduler = scheduler or AsyncioScheduler()
        self._settings = settings or default_settings
        self._tips = tips
        self._handle: Optional[str] = None
        self._session: Optional[ChallengeSession] = None

    @property
    def active_handle(self) -> Optional[str]:
        return self._handle

    def start_challenge(
        self,
        level: int,
        problem_count: int,
        on_complete: Optional[Callable[[], None]] = None,
        on_cancel: Optional[Callable[[], None]] = None,
        seed: Optional[int] = None,
    ) -> str:
        if self._session is not None and not self._session.state.is_terminal:
            logger.info("replacing live challenge %s", self._handle)
            self._session.cancel()

        tips = self._tips
        if tips is None and seed is not None:
            tips = TipCatalog(seed=seed + 3)

        session = ChallengeSession(
            level,
            problem_count,
            scheduler=self._scheduler,
            tips=tips,
            settings=self._settings,
            on_complete=on_complete,
            on_cancel=on_cancel,
            seed=seed,
        )
        handle = uuid.uuid4().hex
        self._handle = handle
        self._session = session
        session.start()
        return handle

    def get(self, handle: str) -> ChallengeSession:
        if handle != self._handle or self._session is None:
            raise SessionNotFound(handle)
        return self._session

    def submit_answer(self, handle: str, value: str | int) -> bool:
        return self.get(handle).submit_answer(value)

    def cancel(self, handle: str) -> bool:
        return self.get(handle).cancel()
