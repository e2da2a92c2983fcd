"""Unit tests for the answer workflow: nodes, routing, graph and generation."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from docqa.answer.llm import GenerationClient, build_chat_model
from docqa.answer.nodes import AnswerNodes, route_after_corpus_check, route_after_search
from docqa.answer.pipeline import AnswerPipeline, AnswerResult
from docqa.answer.prompts import NO_DOCUMENTS_RESPONSE, build_answer_prompt
from docqa.answer.state import create_initial_state
from docqa.errors import EmbeddingProviderError, GenerationError, InvalidInput
from docqa.ingestion.chunker import OverlapWindowSplitter
from docqa.ingestion.embedder import EmbeddingClient
from docqa.ingestion.pipeline import IngestionPipeline, IngestionRequest
from docqa.retrieval.models import ChunkMatch
from docqa.retrieval.retriever import ContextRetriever


def _state(**overrides) -> dict:
    state = create_initial_state("What colour is the sky?")
    state.update(overrides)
    return state


def _generator(*responses: str) -> GenerationClient:
    return GenerationClient(FakeListChatModel(responses=list(responses) or ["ok"]))


def _ingest(store, embeddings, text: str) -> None:
    IngestionPipeline(
        OverlapWindowSplitter(chunk_size=200, chunk_overlap=20),
        EmbeddingClient(embeddings),
        store,
        staging=MagicMock(),
    ).ingest(IngestionRequest(text=text))


@pytest.fixture()
def nodes(fake_embeddings, memory_store) -> AnswerNodes:
    return AnswerNodes(
        EmbeddingClient(fake_embeddings),
        memory_store,
        ContextRetriever(memory_store, match_threshold=0.5, match_count=5, fallback_count=3),
        _generator("The sky is blue."),
    )


# ── Routing ─────────────────────────────────────────────────────────────


class TestRouting:
    def test_empty_corpus_goes_to_no_documents(self) -> None:
        assert route_after_corpus_check(_state(corpus_size=0)) == "no_documents"

    @pytest.mark.parametrize("size", [1, 42, None])
    def test_non_empty_or_unknown_corpus_searches(self, size) -> None:
        assert route_after_corpus_check(_state(corpus_size=size)) == "search_similar"

    def test_hits_go_to_context(self) -> None:
        match = ChunkMatch(chunk_id="c1", content="x", similarity=0.9)
        assert route_after_search(_state(matches=[match])) == "build_context"

    def test_no_hits_fall_back(self) -> None:
        assert route_after_search(_state(matches=[])) == "fallback_recent"


# ── Nodes ───────────────────────────────────────────────────────────────


class TestNodes:
    def test_embed_question(self, nodes) -> None:
        update = nodes.embed_question(_state())
        assert len(update["query_vector"]) == 64

    def test_check_corpus_counts(self, nodes, memory_store) -> None:
        memory_store.vectors["c1"] = [1.0]
        assert nodes.check_corpus(_state()) == {"corpus_size": 1}

    def test_check_corpus_unavailable_is_unknown(self, nodes, memory_store) -> None:
        memory_store.fail_count = True
        assert nodes.check_corpus(_state()) == {"corpus_size": None}

    def test_no_documents(self, nodes) -> None:
        update = nodes.no_documents(_state())
        assert update == {"response": NO_DOCUMENTS_RESPONSE, "sources_used": 0, "context_length": 0}

    def test_search_failure_yields_no_matches(self, nodes, memory_store) -> None:
        memory_store.fail_search = True
        update = nodes.search_similar(_state(query_vector=[1.0] * 64))
        assert update == {"matches": [], "contents": []}

    def test_fallback_failure_yields_empty_context(self, nodes, memory_store) -> None:
        memory_store.fail_recent = True
        update = nodes.fallback_recent(_state())
        assert update == {"contents": [], "used_fallback": True}

    def test_build_context_joins_with_blank_lines(self, nodes) -> None:
        update = nodes.build_context(_state(contents=["alpha", "beta"]))
        assert update["context"] == "alpha\n\nbeta"
        assert update["sources_used"] == 2
        assert update["context_length"] == len("alpha\n\nbeta")

    def test_build_context_empty(self, nodes) -> None:
        update = nodes.build_context(_state(contents=[]))
        assert update == {"context": "", "sources_used": 0, "context_length": 0}

    def test_generate(self, nodes) -> None:
        assert nodes.generate(_state(context="The sky is blue.")) == {"response": "The sky is blue."}

    def test_record_chat(self, nodes, memory_store) -> None:
        update = nodes.record_chat(_state(response="Blue."))
        assert update == {"chat_recorded": True}
        assert memory_store.chat_log[0].user_message == "What colour is the sky?"
        assert memory_store.chat_log[0].assistant_response == "Blue."

    def test_record_chat_failure_is_swallowed(self, nodes, memory_store) -> None:
        memory_store.fail_chat = True
        assert nodes.record_chat(_state(response="Blue.")) == {"chat_recorded": False}


# ── Prompt / generation ─────────────────────────────────────────────────


class TestPromptAndGeneration:
    def test_prompt_carries_context_and_question(self) -> None:
        messages = build_answer_prompt("Why?", "Because.")
        assert isinstance(messages[0], SystemMessage)
        assert isinstance(messages[1], HumanMessage)
        assert "Context:\nBecause." in messages[1].content
        assert "User Question: Why?" in messages[1].content

    def test_generation_error_wrapped(self) -> None:
        model = MagicMock()
        model.invoke.side_effect = TimeoutError("slow")
        with pytest.raises(GenerationError):
            GenerationClient(model).generate("hi")

    def test_multipart_content_joined(self) -> None:
        model = MagicMock()
        model.invoke.return_value = AIMessage(content=[{"type": "text", "text": "a"}, "b"])
        assert GenerationClient(model).generate("hi") == "ab"

    def test_build_chat_model_self_hosted(self) -> None:
        model = build_chat_model("local-model", base_url="http://localhost:8001/v1")
        assert model.model_name == "local-model"
        assert model.openai_api_base == "http://localhost:8001/v1"


# ── Full pipeline ───────────────────────────────────────────────────────


class TestAnswerPipeline:
    def test_answers_from_stored_document(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "The sky is blue. The grass is green.")
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, _generator("The sky is blue.")
        )

        result = pipeline.answer("What color is the sky?")

        assert isinstance(result, AnswerResult)
        assert "blue" in result.response
        assert result.sources_used >= 1
        assert result.context_length >= len("The sky is blue. The grass is green.")
        assert len(memory_store.chat_log) == 1

    def test_relevant_chunk_found_by_similarity(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "kubernetes pods restart automatically")
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, _generator("They restart.")
        )
        result = pipeline.answer("kubernetes pods restart automatically")
        assert result.used_fallback is False
        assert result.sources_used == 1

    def test_empty_corpus_skips_generation(self, fake_embeddings, memory_store) -> None:
        generator = MagicMock()
        pipeline = AnswerPipeline(EmbeddingClient(fake_embeddings), memory_store, generator)

        result = pipeline.answer("Anything?")

        assert result.response == NO_DOCUMENTS_RESPONSE
        assert (result.sources_used, result.context_length) == (0, 0)
        generator.generate.assert_not_called()
        assert memory_store.chat_log == []

    def test_search_failure_falls_back_to_recent_chunks(self, fake_embeddings, memory_store) -> None:
        for i in range(5):
            _ingest(memory_store, fake_embeddings, f"document number {i}")
        memory_store.fail_search = True
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, _generator("answer")
        )

        result = pipeline.answer("document")

        assert result.used_fallback is True
        assert result.sources_used == 3
        assert result.context_length == len(
            "document number 4\n\ndocument number 3\n\ndocument number 2"
        )

    def test_no_hits_above_threshold_fall_back(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "alpha beta gamma")
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings),
            memory_store,
            _generator("answer"),
            match_threshold=1.0,
        )
        result = pipeline.answer("unrelated words entirely")
        assert result.used_fallback is True
        assert result.sources_used == 1

    def test_chat_persistence_failure_still_answers(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "The sky is blue.")
        memory_store.fail_chat = True
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, _generator("Blue.")
        )
        assert pipeline.answer("sky?").response == "Blue."

    def test_unknown_corpus_size_still_searches(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "The sky is blue.")
        memory_store.fail_count = True
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, _generator("Blue.")
        )
        result = pipeline.answer("The sky is blue.")
        assert result.response == "Blue."
        assert result.sources_used == 1

    @pytest.mark.parametrize("question", ["", "   ", None, 123])
    def test_blank_question_rejected(self, fake_embeddings, memory_store, question) -> None:
        pipeline = AnswerPipeline(EmbeddingClient(fake_embeddings), memory_store, MagicMock())
        with pytest.raises(InvalidInput, match="No message provided"):
            pipeline.answer(question)
        assert fake_embeddings.calls == []

    def test_embedding_failure_propagates(self, memory_store) -> None:
        embeddings = MagicMock()
        embeddings.embed_query.side_effect = ConnectionError("down")
        pipeline = AnswerPipeline(
            EmbeddingClient(embeddings, max_attempts=1), memory_store, MagicMock()
        )
        with pytest.raises(EmbeddingProviderError):
            pipeline.answer("question")

    def test_generation_failure_propagates(self, fake_embeddings, memory_store) -> None:
        _ingest(memory_store, fake_embeddings, "The sky is blue.")
        model = MagicMock()
        model.invoke.side_effect = RuntimeError("provider error")
        pipeline = AnswerPipeline(
            EmbeddingClient(fake_embeddings), memory_store, GenerationClient(model)
        )
        with pytest.raises(GenerationError):
            pipeline.answer("sky?")
        assert memory_store.chat_log == []
