import pytest

from challenge_model import (
    ChallengeController,
    ChallengeSession,
    ChallengeState,
    ManualScheduler,
    SessionNotFound,
    TipCatalog,
)
from challenge_model.config import Settings


class Recorder:
    def __init__(self):
        self.completed = 0
        self.cancelled = 0
        self.failed = 0
        self.restarts = []

    def on_complete(self):
        self.completed += 1

    def on_cancel(self):
        self.cancelled += 1

    def on_fail(self):
        self.failed += 1

    def on_restart(self, round_number):
        self.restarts.append(round_number)


def _settings(**overrides):
    cfg = Settings()
    cfg.TIPS_ENABLED = True
    cfg.MAX_ROUNDS = None
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def _session(level=2, problem_count=3, seed=5, **overrides):
    scheduler = ManualScheduler()
    rec = Recorder()
    session = ChallengeSession(
        level,
        problem_count,
        scheduler=scheduler,
        settings=_settings(**overrides),
        tips=TipCatalog(seed=seed),
        on_complete=rec.on_complete,
        on_cancel=rec.on_cancel,
        on_fail=rec.on_fail,
        on_restart=rec.on_restart,
        seed=seed,
    )
    session.start()
    return session, scheduler, rec


def _right(session):
    return session.current_problem.correct_answer


def _wrong(session):
    p = session.current_problem
    return next(o for o in p.options if o != p.correct_answer)


def test_start_presents_first_problem():
    session, scheduler, _ = _session()
    assert session.state == ChallengeState.PRESENTING
    assert len(session.problems) == 3
    assert session.current_index == 0
    assert session.correct_count == 0
    assert session.round_number == 1
    assert session.remaining_time == 20
    assert session.selected_answer is None and session.is_correct is None
    assert scheduler.pending() == 1


def test_level_one_budget_is_shorter():
    session, _, _ = _session(level=1)
    assert session.remaining_time == 15


def test_tick_counts_down():
    session, scheduler, _ = _session()
    scheduler.advance(3)
    assert session.remaining_time == 17
    assert session.state == ChallengeState.PRESENTING


def test_correct_answer_enters_feedback_then_tip():
    session, scheduler, _ = _session()
    assert session.submit_answer(_right(session))
    assert session.state == ChallengeState.FEEDBACK
    assert session.is_correct is True
    assert session.correct_count == 1

    remaining = session.remaining_time
    scheduler.advance(1)
    assert session.state == ChallengeState.TIP_INTERSTITIAL
    assert session.current_tip in TipCatalog().all()
    assert session.remaining_time == remaining

    scheduler.advance(4)
    assert session.state == ChallengeState.TIP_INTERSTITIAL
    scheduler.advance(1)
    assert session.state == ChallengeState.PRESENTING
    assert session.current_index == 1
    assert session.remaining_time == 20
    assert session.selected_answer is None
    assert session.current_tip is None


def test_wrong_answer_skips_tip():
    session, scheduler, _ = _session()
    assert session.submit_answer(_wrong(session))
    assert session.is_correct is False
    assert session.correct_count == 0
    scheduler.advance(1)
    assert session.state == ChallengeState.PRESENTING
    assert session.current_index == 1


def test_tips_can_be_disabled():
    session, scheduler, _ = _session(TIPS_ENABLED=False)
    session.submit_answer(_right(session))
    scheduler.advance(1)
    assert session.state == ChallengeState.PRESENTING
    assert session.current_index == 1


def test_only_one_answer_per_problem():
    session, _, _ = _session()
    assert session.submit_answer(_wrong(session))
    assert not session.submit_answer(_right(session))
    assert session.correct_count == 0


def test_two_of_three_passes():
    session, scheduler, rec = _session()
    session.submit_answer(_right(session))
    scheduler.advance(6)
    session.submit_answer(_right(session))
    scheduler.advance(6)
    session.submit_answer(_wrong(session))
    scheduler.advance(1)

    assert session.state == ChallengeState.COMPLETED
    assert session.passed is True
    assert rec.completed == 1
    assert rec.restarts == []
    assert scheduler.pending() == 0
    assert not session.submit_answer("1")


def test_one_of_three_restarts_with_same_settings():
    session, scheduler, rec = _session(level=3)
    first_round = list(session.problems)
    session.submit_answer(_right(session))
    scheduler.advance(6)
    session.submit_answer(_wrong(session))
    scheduler.advance(1)
    session.submit_answer(_wrong(session))
    scheduler.advance(1)

    assert rec.completed == 0
    assert rec.restarts == [1]
    assert session.state == ChallengeState.PRESENTING
    assert session.round_number == 2
    assert session.level == 3
    assert len(session.problems) == 3
    assert session.problems != first_round
    assert session.current_index == 0
    assert session.correct_count == 0
    assert session.passed is None
    assert session.remaining_time == 20
    assert scheduler.pending() == 1


def test_correct_count_never_exceeds_problem_count():
    session, scheduler, rec = _session(problem_count=4, TIPS_ENABLED=False)
    for _ in range(4):
        session.submit_answer(_right(session))
        assert session.correct_count <= len(session.problems)
        scheduler.advance(1)
    assert session.correct_count == 4
    assert rec.completed == 1


def test_timeout_matches_wrong_answer():
    timed_out, clock_a, _ = _session(seed=9)
    answered, clock_b, _ = _session(seed=9)

    clock_a.advance(20)
    answered.submit_answer(_wrong(answered))

    for s in (timed_out, answered):
        assert s.state == ChallengeState.FEEDBACK
        assert s.is_correct is False
        assert s.correct_count == 0
    assert timed_out.selected_answer is None
    assert timed_out.remaining_time == 0
    assert not timed_out.submit_answer(_right(timed_out))

    clock_a.advance(1)
    clock_b.advance(1)
    for attr in ("state", "current_index", "correct_count", "remaining_time", "round_number"):
        assert getattr(timed_out, attr) == getattr(answered, attr)


def test_timeouts_on_every_problem_restart_the_round():
    session, scheduler, rec = _session(level=1, TIPS_ENABLED=False)
    for _ in range(3):
        scheduler.advance(15)
        assert session.state == ChallengeState.FEEDBACK
        scheduler.advance(1)
    assert rec.restarts == [1]
    assert session.round_number == 2


def _enter_feedback(session, scheduler):
    session.submit_answer(_right(session))


def _enter_tip(session, scheduler):
    session.submit_answer(_right(session))
    scheduler.advance(1)


@pytest.mark.parametrize(
    "enter, state",
    [
        (lambda session, scheduler: None, ChallengeState.PRESENTING),
        (_enter_feedback, ChallengeState.FEEDBACK),
        (_enter_tip, ChallengeState.TIP_INTERSTITIAL),
    ],
)
def test_cancel_stops_timers(enter, state):
    session, scheduler, rec = _session()
    enter(session, scheduler)
    assert session.state == state

    assert session.cancel()
    assert session.state == ChallengeState.CANCELLED
    assert rec.cancelled == 1
    assert scheduler.pending() == 0

    fired = scheduler.fired
    scheduler.advance(100)
    assert scheduler.fired == fired
    assert not session.cancel()
    assert rec.cancelled == 1
    assert rec.completed == 0


def test_never_more_than_one_pending_timer():
    session, scheduler, _ = _session()
    for answer in (_right, _wrong, _right):
        assert scheduler.pending() <= 1
        session.submit_answer(answer(session))
        assert scheduler.pending() <= 1
        scheduler.advance(6)
    assert scheduler.pending() == 0


def test_cancel_from_restart_callback_stays_cancelled():
    scheduler = ManualScheduler()
    rec = Recorder()

    def cancel_on_restart(round_number):
        rec.on_restart(round_number)
        session.cancel()

    session = ChallengeSession(
        1,
        1,
        scheduler=scheduler,
        settings=_settings(),
        on_cancel=rec.on_cancel,
        on_restart=cancel_on_restart,
        seed=2,
    )
    session.start()
    session.submit_answer(_wrong(session))
    scheduler.advance(1)

    assert rec.restarts == [1]
    assert rec.cancelled == 1
    assert session.state == ChallengeState.CANCELLED
    assert session.round_number == 1
    assert scheduler.pending() == 0
    scheduler.advance(30)
    assert session.state == ChallengeState.CANCELLED


def test_max_rounds_ends_in_failure():
    session, scheduler, rec = _session(MAX_ROUNDS=1, TIPS_ENABLED=False)
    for _ in range(3):
        session.submit_answer(_wrong(session))
        scheduler.advance(1)
    assert session.state == ChallengeState.FAILED
    assert session.passed is False
    assert rec.failed == 1
    assert rec.restarts == []
    assert scheduler.pending() == 0
    assert not session.cancel()


def test_invalid_problem_count():
    with pytest.raises(ValueError):
        ChallengeSession(1, 0, scheduler=ManualScheduler())


def test_start_twice_is_an_error():
    session, _, _ = _session()
    with pytest.raises(RuntimeError):
        session.start()


def test_snapshot_hides_problem_after_finish():
    session, _, _ = _session()
    snap = session.snapshot()
    assert snap.question == session.current_problem.question
    assert snap.options == session.current_problem.options
    session.cancel()
    snap = session.snapshot()
    assert snap.state == ChallengeState.CANCELLED
    assert snap.question is None
    assert snap.options == []


def test_end_to_end_level_two():
    scheduler = ManualScheduler()
    controller = ChallengeController(scheduler=scheduler, settings=_settings())
    rec = Recorder()
    handle = controller.start_challenge(
        level=2, problem_count=3, on_complete=rec.on_complete, on_cancel=rec.on_cancel, seed=12
    )
    session = controller.get(handle)

    scheduler.advance(4)
    assert controller.submit_answer(handle, _right(session))
    scheduler.advance(1)
    assert session.state == ChallengeState.TIP_INTERSTITIAL
    scheduler.advance(5)
    assert session.state == ChallengeState.PRESENTING
    assert session.current_index == 1

    assert controller.submit_answer(handle, _wrong(session))
    scheduler.advance(1)
    assert session.current_index == 2

    assert controller.submit_answer(handle, _right(session))
    scheduler.advance(1)

    assert session.correct_count == 2
    assert session.state == ChallengeState.COMPLETED
    assert rec.completed == 1
    assert rec.cancelled == 0
    scheduler.advance(60)
    assert rec.completed == 1


def test_controller_runs_one_challenge_at_a_time():
    scheduler = ManualScheduler()
    controller = ChallengeController(scheduler=scheduler, settings=_settings())
    first = Recorder()
    h1 = controller.start_challenge(1, 3, on_cancel=first.on_cancel, seed=1)
    h2 = controller.start_challenge(1, 3, seed=2)

    assert h1 != h2
    assert first.cancelled == 1
    assert controller.active_handle == h2
    assert scheduler.pending() == 1
    with pytest.raises(SessionNotFound):
        controller.get(h1)
    assert controller.cancel(h2)
    assert not controller.cancel(h2)


def test_controller_unknown_handle():
    controller = ChallengeController(scheduler=ManualScheduler())
    with pytest.raises(SessionNotFound):
        controller.submit_answer("nope", "3")


def test_settings_budgets_are_per_instance():
    a = Settings()
    b = Settings()
    a.LEVEL_TIME_BUDGETS[1] = 5
    assert a.time_budget(1) == 5
    assert b.time_budget(1) == 15
    assert Settings.LEVEL_TIME_BUDGETS[1] == 15
