"""AI answering on top of assembled issue context."""

from .answer import AnswerResult, TokenUsage, answer_question, find_token_length
from .ground_truths import build_ground_truths, collect_ground_truths

__all__ = [
    "AnswerResult",
    "TokenUsage",
    "answer_question",
    "build_ground_truths",
    "collect_ground_truths",
    "find_token_length",
]
