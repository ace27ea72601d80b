"""LLM evaluator implementations for the screening core."""

from .primary import PrimaryEvaluator, build_candidate_payload, failed_decision
from .secondary import SecondaryEvaluator, failed_secondary, merge_decisions

__all__ = [
    "PrimaryEvaluator",
    "SecondaryEvaluator",
    "build_candidate_payload",
    "failed_decision",
    "failed_secondary",
    "merge_decisions",
]
