from __future__ import annotations

import hashlib
import logging
from collections import Counter
from typing import List

from .arithmetic_generator import ArithmeticGenerator
from .distractors import DistractorSynthesizer
from .models import MathProblem


logger = logging.getLogger(__name__)


class QualityController:
    """
    Keeps a round free of repeated questions and tracks what was generated.

    Tracks:
    - questions in the current round (deduplication)
    - variant distribution
    - level distribution
    - distractor strategy distribution
    """

    def __init__(self, max_retries: int = 20) -> None:
        self.max_retries = max_retries
        self._round_hashes: set[str] = set()
        self._variant_counts: Counter[str] = Counter()
        self._level_counts: Counter[int] = Counter()
        self._strategy_counts: Counter[str] = Counter()
        self._total = 0

    def _hash_item(self, item: MathProblem) -> str:
        return hashlib.md5(item.question.encode()).hexdigest()

    def start_round(self) -> None:
        self._round_hashes.clear()

    def accept_item(self, item: MathProblem) -> bool:
        return self._hash_item(item) not in self._round_hashes

    def register_item(self, item: MathProblem) -> None:
        self._round_hashes.add(self._hash_item(item))
        self._total += 1
        self._variant_counts[item.variant] += 1
        self._level_counts[item.level] += 1
        if item.meta:
            self._strategy_counts.update(item.meta.get("distractor_strategies", []))

    def reset(self) -> None:
        self._round_hashes.clear()
        self._variant_counts.clear()
        self._level_counts.clear()
        self._strategy_counts.clear()
        self._total = 0

    def get_stats(self) -> dict:
        return {
            "total_generated": self._total,
            "variant_distribution": dict(self._variant_counts),
            "level_distribution": dict(self._level_counts),
            "strategy_distribution": dict(self._strategy_counts),
        }


class ProblemGenerator:
    """
    High-level API to generate wake-up challenge problems.

    Usage:

    ```python
    gen = ProblemGenerator(seed=42)
    problem = gen.generate_one(level=2)
    # problem.question -> string to show in UI
    # problem.options -> four numerals to render as buttons
    # problem.correct_answer -> the numeral to match against
    ```
    """

    def __init__(
        self,
        seed: int | None = None,
        max_distractor_attempts: int = 50,
        max_round_retries: int = 20,
    ) -> None:
        # use different seeds derived from base seed so results are reproducible
        expression_seed = None if seed is None else seed + 1
        distractor_seed = None if seed is None else seed + 2

        self._expressions = ArithmeticGenerator(seed=expression_seed)
        self._distractors = DistractorSynthesizer(
            seed=distractor_seed, max_attempts=max_distractor_attempts
        )
        self._quality_control = QualityController(max_retries=max_round_retries)

    def generate_one(self, level: int) -> MathProblem:
        expression = self._expressions.generate(level)
        options, strategies = self._distractors.build_options(expression.answer)
        meta = dict(expression.meta)
        meta["distractor_strategies"] = strategies
        return MathProblem(
            question=expression.question,
            options=options,
            correct_answer=str(expression.answer),
            level=level,
            variant=expression.variant,
            meta=meta,
        )

    def generate_round(self, level: int, n: int) -> List[MathProblem]:
        """
        Generate the `n` problems of one challenge round.

        Repeated questions are retried up to `max_retries` times each; past
        that the repeat is kept, since a round must always have `n` problems.
        """
        if n <= 0:
            return []

        qc = self._quality_control
        qc.start_round()
        items: List[MathProblem] = []
        retry_count = 0

        while len(items) < n:
            item = self.generate_one(level)
            if qc.accept_item(item) or retry_count >= qc.max_retries:
                if retry_count >= qc.max_retries:
                    logger.debug("keeping repeated question %r at level %d", item.question, level)
                qc.register_item(item)
                items.append(item)
                retry_count = 0
            else:
                retry_count += 1

        return items

    def reset_quality_control(self) -> None:
        self._quality_control.reset()

    def get_quality_stats(self) -> dict:
        return self._quality_control.get_stats()
