"""Answer workflow: topic routing, retrieval, grounded or open generation."""

from university_rag.answering.graph import build_graph
from university_rag.answering.nodes import AnswerNodes
from university_rag.answering.prompts import FALLBACK_ANSWER, OPEN_FALLBACK_ANSWER
from university_rag.answering.routing import GROUNDED, OPEN, route_question
from university_rag.answering.service import AnswerService
from university_rag.answering.state import AnswerResult, AnswerState, create_initial_state

__all__ = [
    "AnswerNodes",
    "AnswerResult",
    "AnswerService",
    "AnswerState",
    "FALLBACK_ANSWER",
    "GROUNDED",
    "OPEN",
    "OPEN_FALLBACK_ANSWER",
    "build_graph",
    "create_initial_state",
    "route_question",
]
