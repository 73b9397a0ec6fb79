from .models import ChallengeState, MathProblem, SecurityTip, SessionSnapshot
from .generator import ProblemGenerator
from .session import ChallengeController, ChallengeSession, SessionNotFound
from .scheduling import AsyncioScheduler, ManualScheduler
from .tips import TipCatalog

__all__ = [
    "ChallengeState",
    "MathProblem",
    "SecurityTip",
    "SessionSnapshot",
    "ProblemGenerator",
    "ChallengeController",
    "ChallengeSession",
    "SessionNotFound",
    "AsyncioScheduler",
    "ManualScheduler",
    "TipCatalog",
]
