"""Prompt templates for the answer workflow.

Keeping prompts in one place makes them easy to audit and version.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

NO_DOCUMENTS_RESPONSE = (
    "I don't have any documents to search through. Please upload some documents first."
)

ANSWER_SYSTEM = """\
You are a helpful assistant that answers questions about the user's uploaded
documents.

Rules:
1. Answer using **only** the provided context.
2. If the context is empty or does not contain the information needed,
   say explicitly that you don't have enough information to answer —
   do NOT fabricate information.
3. Be concise and accurate.
"""


def build_answer_prompt(question: str, context: str) -> list[BaseMessage]:
    """Assemble the messages for the single generation call.

    Parameters
    ----------
    question:
        The user's original question.
    context:
        Selected chunk contents joined with blank lines (may be empty).

    Returns
    -------
    list[BaseMessage]
        A list of LangChain message objects ready for ``.invoke()``.
    """
    user_msg = (
        f"Context:\n{context}\n\n"
        f"User Question: {question}\n\n"
        "Please provide a helpful and accurate response based on the context provided. "
        "If the context is empty or doesn't contain relevant information, "
        "indicate that you don't have enough information to answer the question."
    )
    return [
        SystemMessage(content=ANSWER_SYSTEM),
        HumanMessage(content=user_msg),
    ]
