"""
Answer — retrieval-augmented question answering built with LangGraph.

Public API
----------
- :class:`AnswerPipeline` — embed, search (with fallback), generate, record.
- :class:`GenerationClient` / :func:`build_chat_model` — the generation model.
- :func:`build_graph` — compile the workflow around injected nodes.
"""

from docqa.answer.graph import build_graph
from docqa.answer.llm import GenerationClient, build_chat_model
from docqa.answer.pipeline import AnswerPipeline, AnswerResult
from docqa.answer.state import AnswerState, create_initial_state

__all__ = [
    "AnswerPipeline",
    "AnswerResult",
    "AnswerState",
    "GenerationClient",
    "build_chat_model",
    "build_graph",
    "create_initial_state",
]
