from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable


@dataclass
class Expression:
    """An arithmetic expression with its integer result, before options are attached."""

    question: str
    answer: int
    variant: str
    meta: dict


@dataclass
class _Variant:
    name: str
    build: Callable[[random.Random], Expression]


def _sum(rng: random.Random) -> Expression:
    a = rng.randint(1, 10)
    b = rng.randint(1, 10)
    return Expression(
        question=f"{a} + {b} = ?",
        answer=a + b,
        variant="sum",
        meta={"operands": [a, b], "operator": "+"},
    )


def _wide_sum_or_difference(rng: random.Random) -> Expression:
    a = rng.randrange(20, 70)
    op_symbol = rng.choice(["+", "-"])
    if op_symbol == "+":
        b = rng.randrange(10, 40)
        answer = a + b
    else:
        # keep the difference positive
        b = rng.randrange(10, min(40, a))
        answer = a - b
    return Expression(
        question=f"{a} {op_symbol} {b} = ?",
        answer=answer,
        variant="wide_sum_or_difference",
        meta={"operands": [a, b], "operator": op_symbol},
    )


def _product_plus(rng: random.Random) -> Expression:
    a = rng.randrange(5, 20)
    b = rng.randrange(2, 7)
    c = rng.randrange(1, 11)
    return Expression(
        question=f"({a} × {b}) + {c} = ?",
        answer=a * b + c,
        variant="product_plus",
        meta={"operands": [a, b, c]},
    )


def _product(rng: random.Random) -> Expression:
    a = rng.randrange(10, 30)
    b = rng.randrange(2, 12)
    return Expression(
        question=f"{a} × {b} = ?",
        answer=a * b,
        variant="product",
        meta={"operands": [a, b], "operator": "×"},
    )


def _exact_division(rng: random.Random) -> Expression:
    divisor = rng.randrange(2, 12)
    quotient = rng.randrange(2, 12)
    dividend = divisor * quotient
    return Expression(
        question=f"{dividend} ÷ {divisor} = ?",
        answer=quotient,
        variant="exact_division",
        meta={
            "operands": [dividend, divisor],
            "operator": "÷",
            "dividend": dividend,
            "divisor": divisor,
            "quotient": quotient,
        },
    )


def _sum_times(rng: random.Random) -> Expression:
    a = rng.randrange(5, 15)
    b = rng.randrange(5, 15)
    c = rng.randrange(2, 12)
    return Expression(
        question=f"({a} + {b}) × {c} = ?",
        answer=(a + b) * c,
        variant="sum_times",
        meta={"operands": [a, b, c]},
    )


def _difference_of_products(rng: random.Random) -> Expression:
    a = rng.randrange(5, 15)
    b = rng.randrange(2, 7)
    c = rng.randrange(1, 6)
    d = rng.choice([v for v in range(1, 6) if c * v != a * b])
    if c * d > a * b:
        a, b, c, d = c, d, a, b
    return Expression(
        question=f"({a} × {b}) - ({c} × {d}) = ?",
        answer=a * b - c * d,
        variant="difference_of_products",
        meta={"operands": [a, b, c, d]},
    )


def _square_plus(rng: random.Random) -> Expression:
    a = rng.randrange(2, 12)
    b = rng.randrange(5, 25)
    return Expression(
        question=f"{a}² + {b} = ?",
        answer=a * a + b,
        variant="square_plus",
        meta={"operands": [a, b]},
    )


LEVEL_VARIANTS: dict[int, tuple[_Variant, ...]] = {
    1: (_Variant("sum", _sum),),
    2: (
        _Variant("wide_sum_or_difference", _wide_sum_or_difference),
        _Variant("product_plus", _product_plus),
    ),
    3: (
        _Variant("product", _product),
        _Variant("exact_division", _exact_division),
        _Variant("sum_times", _sum_times),
    ),
    4: (
        _Variant("difference_of_products", _difference_of_products),
        _Variant("square_plus", _square_plus),
    ),
}

FALLBACK_LEVEL = 1


class ArithmeticGenerator:
    """Generate arithmetic expressions for the wake-up difficulty levels."""

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def variants_for(self, level: int) -> tuple[_Variant, ...]:
        """Unknown levels quietly use the level-1 rule."""
        return LEVEL_VARIANTS.get(level, LEVEL_VARIANTS[FALLBACK_LEVEL])

    def generate(self, level: int) -> Expression:
        variant = self._rng.choice(self.variants_for(level))
        return variant.build(self._rng)
