"""
Audit the wake-up problem generator.

This script:
- samples problems for each difficulty level with a fixed seed
- re-evaluates every question and checks it against the stored answer
- checks the option invariants (4 unique positive numerals, answer present once)
- reports variant and distractor-strategy distributions.

Usage:
    python evaluate_generator.py [n_samples]
"""

from __future__ import annotations

import ast
import operator
import sys
from collections import Counter

from challenge_model import MathProblem, ProblemGenerator


_SYMBOLS = {"×": "*", "÷": "//", "²": "**2"}

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.FloorDiv: operator.floordiv,
    ast.Pow: operator.pow,
}


def _eval_node(node: ast.AST) -> int:
    if isinstance(node, ast.Constant) and type(node.value) is int:
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        return _BIN_OPS[type(node.op)](_eval_node(node.left), _eval_node(node.right))
    raise ValueError(f"unsupported expression element: {ast.dump(node)}")


def evaluate_question(question: str) -> int:
    """Compute the value of a generated question such as "(3 + 4) × 2 = ?"."""
    expr = question.removesuffix("= ?").strip()
    for symbol, py in _SYMBOLS.items():
        expr = expr.replace(symbol, py)
    return _eval_node(ast.parse(expr, mode="eval").body)


def problem_errors(problem: MathProblem) -> list[str]:
    errors = []
    if len(problem.options) != 4:
        errors.append("option count")
    if len(set(problem.options)) != len(problem.options):
        errors.append("duplicate options")
    if problem.options.count(problem.correct_answer) != 1:
        errors.append("answer not present exactly once")
    if not all(o.isdigit() and int(o) > 0 and str(int(o)) == o for o in problem.options):
        errors.append("non-positive or non-canonical option")
    if evaluate_question(problem.question) != int(problem.correct_answer):
        errors.append("question does not evaluate to answer")
    if problem.variant == "exact_division":
        meta = problem.meta or {}
        if meta.get("dividend") != meta.get("divisor", 0) * meta.get("quotient", 0):
            errors.append("division has a remainder")
    return errors


def audit_level(level: int, n_samples: int = 1000, seed: int = 999) -> dict:
    gen = ProblemGenerator(seed=seed)
    failures: Counter[str] = Counter()
    variants: Counter[str] = Counter()
    strategies: Counter[str] = Counter()
    for _ in range(n_samples):
        problem = gen.generate_one(level)
        failures.update(problem_errors(problem))
        variants[problem.variant] += 1
        strategies.update((problem.meta or {}).get("distractor_strategies", []))
    return {
        "level": level,
        "samples": n_samples,
        "failures": dict(failures),
        "variants": dict(variants),
        "strategies": dict(strategies),
    }


def main(n_samples: int = 1000) -> int:
    failed = False
    for level in (1, 2, 3, 4):
        report = audit_level(level, n_samples=n_samples)
        print(f"[audit] level {level}: {report['samples']} samples")
        print(f"[audit]   variants:   {report['variants']}")
        print(f"[audit]   strategies: {report['strategies']}")
        if report["failures"]:
            failed = True
            print(f"[audit]   FAILURES:   {report['failures']}")
        else:
            print("[audit]   all invariants hold")
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main(int(sys.argv[1]) if len(sys.argv) > 1 else 1000))
