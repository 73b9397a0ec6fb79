import os


def _env_int(name: str, default: int | None) -> int | None:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    return int(value)


class Settings:
    PROJECT_NAME: str = "cyberwake-challenge"
    DEBUG: bool = os.environ.get("DEBUG", "0") == "1"
    LOG_DIR: str = os.environ.get("LOG_DIR", "log")
    LOG_FILE: str = "challenge.log"
    DEFAULT_LEVEL: int = 2
    DEFAULT_PROBLEM_COUNT: int = 3
    TICK_SECONDS: float = 1.0
    FEEDBACK_SECONDS: float = 1.0
    TIP_SECONDS: float = 5.0
    TIPS_ENABLED: bool = os.environ.get("TIPS_ENABLED", "1") == "1"
    # unset means a failed round is regenerated forever
    MAX_ROUNDS: int | None = _env_int("MAX_ROUNDS", None)
    DISTRACTOR_MAX_ATTEMPTS: int = 50
    LEVEL_TIME_BUDGETS: dict[int, int] = {1: 15, 2: 20, 3: 20, 4: 20}

    def __init__(self) -> None:
        # per-instance copy so overriding one Settings leaves the others alone
        self.LEVEL_TIME_BUDGETS = dict(type(self).LEVEL_TIME_BUDGETS)

    def time_budget(self, level: int) -> int:
        return self.LEVEL_TIME_BUDGETS.get(level, self.LEVEL_TIME_BUDGETS[1])


settings = Settings()
