from __future__ import annotations

import logging
import math
import random
from typing import Callable


logger = logging.getLogger(__name__)

OPTION_COUNT = 4


class DistractorSynthesizer:
    """
    Build plausible wrong answers around a correct integer answer.

    Each attempt picks one strategy at random:
    - small shift: answer ± 1..3
    - large shift: answer ± 5..14
    - digit swap: swap two digit positions (± 2..6 for single digits)
    - percent shift: answer ± 10..29 %, rounded half up

    A candidate is kept only when it is a positive integer that differs from
    the correct answer and from every option collected so far. After
    `max_attempts` random attempts, the remaining slots are filled with
    answer ± 1, ± 2, ... so generation always terminates.
    """

    def __init__(self, seed: int | None = None, max_attempts: int = 50) -> None:
        self._rng = random.Random(seed)
        self.max_attempts = max_attempts
        self._strategies: dict[str, Callable[[int], int]] = {
            "small_shift": self._small_shift,
            "large_shift": self._large_shift,
            "digit_swap": self._digit_swap,
            "percent_shift": self._percent_shift,
        }

    def _sign(self) -> int:
        return 1 if self._rng.random() > 0.5 else -1

    def _small_shift(self, answer: int) -> int:
        return answer + self._sign() * self._rng.randint(1, 3)

    def _large_shift(self, answer: int) -> int:
        return answer + self._sign() * self._rng.randint(5, 14)

    def _digit_swap(self, answer: int) -> int:
        if answer <= 9:
            return answer + self._sign() * self._rng.randint(2, 6)
        digits = list(str(answer))
        i, j = self._rng.sample(range(len(digits)), 2)
        digits[i], digits[j] = digits[j], digits[i]
        return int("".join(digits))

    def _percent_shift(self, answer: int) -> int:
        percentage = self._rng.randint(10, 29)
        return math.floor(answer * (1 + self._sign() * percentage / 100) + 0.5)

    @staticmethod
    def _acceptable(candidate: int, correct: str, options: list[str]) -> bool:
        text = str(candidate)
        return candidate > 0 and text != correct and text not in options

    def build_options(self, answer: int) -> tuple[list[str], list[str]]:
        """
        Return (options, strategies): four shuffled numerals including the
        answer, and the strategy name that produced each distractor.
        """
        correct = str(answer)
        options = [correct]
        strategies: list[str] = []

        attempts = 0
        names = list(self._strategies)
        while len(options) < OPTION_COUNT and attempts < self.max_attempts:
            attempts += 1
            name = self._rng.choice(names)
            candidate = self._strategies[name](answer)
            if self._acceptable(candidate, correct, options):
                options.append(str(candidate))
                strategies.append(name)

        if len(options) < OPTION_COUNT:
            logger.debug(
                "distractor attempts exhausted for %s after %d tries, using fallback",
                correct,
                attempts,
            )
            k = 1
            while len(options) < OPTION_COUNT:
                for candidate in (answer + k, answer - k):
                    if len(options) < OPTION_COUNT and self._acceptable(candidate, correct, options):
                        options.append(str(candidate))
                        strategies.append("fallback_shift")
                k += 1

        self._rng.shuffle(options)
        return options, strategies
