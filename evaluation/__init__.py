"""
Evaluation Layer - 评估框架

Modules:
    evaluator: 评估器和智能体
"""
from .evaluator import (
    EvalResult,
    Agent,
    RandomAgent,
    RuleBasedAgent,
    Evaluator,
)

__all__ = [
    # evaluator
    "EvalResult",
    "Agent",
    "RandomAgent",
    "RuleBasedAgent",
    "Evaluator",
]
