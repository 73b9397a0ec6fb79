from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from challenge_model import (
    ChallengeController,
    ChallengeSession,
    ProblemGenerator,
    SessionNotFound,
    TipCatalog,
)
from challenge_model.config import Settings, settings as default_settings
from challenge_model.scheduling import Scheduler


logger = logging.getLogger("challenge_model")


def setup_logging(cfg: Settings) -> None:
    logger.setLevel(logging.DEBUG if cfg.DEBUG else logging.INFO)

    log_path = os.path.abspath(os.path.join(cfg.LOG_DIR, cfg.LOG_FILE))
    for handler in list(logger.handlers):
        if not isinstance(handler, RotatingFileHandler):
            continue
        if handler.baseFilename == log_path:
            return
        # a later app with a different LOG_DIR takes over the file handler
        logger.removeHandler(handler)
        handler.close()

    os.makedirs(cfg.LOG_DIR, exist_ok=True)
    # delay opening the file until the first record is written
    file_handler = RotatingFileHandler(log_path, maxBytes=5_000_000, backupCount=3, delay=True)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(file_handler)
    logging.basicConfig(level=logging.INFO)


class GenerateRequest(BaseModel):
    level: int = Field(default=1, ge=1)
    n: int = Field(default=3, ge=1, le=100)


class MathProblemResponse(BaseModel):
    question: str
    options: List[str]
    correctAnswer: str
    level: int
    variant: str


class StartChallengeRequest(BaseModel):
    level: int = Field(default=default_settings.DEFAULT_LEVEL, ge=1)
    problem_count: int = Field(default=default_settings.DEFAULT_PROBLEM_COUNT, ge=1, le=20)
    seed: Optional[int] = None


class AnswerRequest(BaseModel):
    value: str


class SecurityTipResponse(BaseModel):
    id: int
    tip: str
    category: str


class ChallengeResponse(BaseModel):
    handle: str
    state: str
    level: int
    problemCount: int
    round: int
    currentIndex: int
    remainingTime: int
    timeBudget: int
    correctCount: int
    question: Optional[str] = None
    options: List[str] = []
    selectedAnswer: Optional[str] = None
    isCorrect: Optional[bool] = None
    tip: Optional[SecurityTipResponse] = None
    passed: Optional[bool] = None


def _challenge_response(handle: str, session: ChallengeSession) -> ChallengeResponse:
    snap = session.snapshot()
    tip = snap.tip
    return ChallengeResponse(
        handle=handle,
        state=snap.state.value,
        level=snap.level,
        problemCount=snap.problem_count,
        round=snap.round_number,
        currentIndex=snap.current_index,
        remainingTime=snap.remaining_time,
        timeBudget=snap.time_budget,
        correctCount=snap.correct_count,
        question=snap.question,
        options=snap.options,
        selectedAnswer=snap.selected_answer,
        isCorrect=snap.is_correct,
        tip=SecurityTipResponse(id=tip.id, tip=tip.tip, category=tip.category) if tip else None,
        passed=snap.passed,
    )


def create_app(
    scheduler: Optional[Scheduler] = None,
    cfg: Optional[Settings] = None,
    seed: Optional[int] = None,
) -> FastAPI:
    cfg = cfg or default_settings
    setup_logging(cfg)

    app = FastAPI(title="Wake-up Challenge Service", debug=cfg.DEBUG)
    generator = ProblemGenerator(seed=seed, max_distractor_attempts=cfg.DISTRACTOR_MAX_ATTEMPTS)
    tips = TipCatalog(seed=seed)
    controller = ChallengeController(scheduler=scheduler, settings=cfg)
    app.state.controller = controller

    def _session(handle: str) -> ChallengeSession:
        try:
            return controller.get(handle)
        except SessionNotFound:
            raise HTTPException(status_code=404, detail="Challenge not found")

    @app.post("/problems", response_model=List[MathProblemResponse])
    async def generate_problems(body: GenerateRequest) -> List[MathProblemResponse]:
        items = generator.generate_round(level=body.level, n=body.n)
        return [
            MathProblemResponse(
                question=i.question,
                options=i.options,
                correctAnswer=i.correct_answer,
                level=i.level,
                variant=i.variant,
            )
            for i in items
        ]

    @app.post("/challenges", response_model=ChallengeResponse, status_code=201)
    async def start_challenge(body: StartChallengeRequest) -> ChallengeResponse:
        def on_complete() -> None:
            logger.info("alarm dismissed: challenge passed")

        def on_cancel() -> None:
            logger.info("alarm snoozed: challenge cancelled")

        handle = controller.start_challenge(
            level=body.level,
            problem_count=body.problem_count,
            on_complete=on_complete,
            on_cancel=on_cancel,
            seed=body.seed,
        )
        return _challenge_response(handle, controller.get(handle))

    @app.get("/challenges/{handle}", response_model=ChallengeResponse)
    async def get_challenge(handle: str) -> ChallengeResponse:
        return _challenge_response(handle, _session(handle))

    @app.post("/challenges/{handle}/answer", response_model=ChallengeResponse)
    async def submit_answer(handle: str, body: AnswerRequest) -> ChallengeResponse:
        session = _session(handle)
        if not session.submit_answer(body.value):
            raise HTTPException(status_code=409, detail="Challenge is not accepting an answer")
        return _challenge_response(handle, session)

    @app.delete("/challenges/{handle}", response_model=ChallengeResponse)
    async def cancel_challenge(handle: str) -> ChallengeResponse:
        session = _session(handle)
        if not session.cancel():
            raise HTTPException(status_code=409, detail="Challenge already finished")
        return _challenge_response(handle, session)

    @app.get("/tips", response_model=List[SecurityTipResponse])
    def list_tips() -> List[SecurityTipResponse]:
        return [SecurityTipResponse(id=t.id, tip=t.tip, category=t.category) for t in tips.all()]

    @app.get("/tips/random", response_model=SecurityTipResponse)
    def random_tip(category: Optional[str] = None) -> SecurityTipResponse:
        tip = tips.random_tip(category)
        if tip is None:
            raise HTTPException(status_code=404, detail="No security tips found")
        return SecurityTipResponse(id=tip.id, tip=tip.tip, category=tip.category)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
