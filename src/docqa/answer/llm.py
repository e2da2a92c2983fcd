"""Generation model — single place to swap providers.

Supports two modes:

1. **OpenAI cloud** (default) — set ``DOCQA_OPENAI_API_KEY``.
2. **OpenAI-compatible endpoint** (vLLM, Ollama, …) — set
   ``DOCQA_LLM_BASE_URL``; ``ChatOpenAI`` talks to it unchanged.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from langchain_openai import ChatOpenAI

from docqa.errors import GenerationError

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

logger = logging.getLogger(__name__)


def build_chat_model(
    model_name: str = "gpt-4o-mini",
    *,
    api_key: str = "",
    base_url: str = "",
    temperature: float = 0.0,
    timeout: float = 60.0,
) -> ChatOpenAI:
    """Return the configured chat model.

    When *base_url* is set the client is pointed at that endpoint instead
    of the OpenAI cloud API; a dummy key (``"EMPTY"``) is used when none
    is configured because self-hosted servers do not check it.
    """
    kwargs: dict[str, Any] = {
        "model": model_name,
        "temperature": temperature,
        "timeout": timeout,
    }

    if base_url:
        logger.info("Using OpenAI-compatible endpoint: %s", base_url)
        kwargs["base_url"] = base_url
        kwargs["api_key"] = api_key or "EMPTY"
    else:
        kwargs["api_key"] = api_key

    return ChatOpenAI(**kwargs)


class GenerationClient:
    """``generate(prompt) -> text`` over any LangChain chat model."""

    def __init__(self, chat_model: BaseChatModel) -> None:
        self._chat_model = chat_model

    def generate(self, prompt: str | list[BaseMessage]) -> str:
        """Invoke the model once and return its text response.

        Raises
        ------
        GenerationError
            The provider failed or timed out.
        """
        try:
            response = self._chat_model.invoke(prompt)
        except Exception as exc:
            logger.exception("Generation call failed")
            raise GenerationError("Failed to generate response") from exc

        content = response.content
        if isinstance(content, str):
            return content
        # Multi-part content: keep only the text parts.
        return "".join(
            part if isinstance(part, str) else part.get("text", "")
            for part in content
        )
