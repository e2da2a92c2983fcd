"""LangGraph graph definition — the retrieval & answer workflow.

This module wires the nodes of :class:`~docqa.answer.nodes.AnswerNodes`
into a compiled :class:`StateGraph`:

1. **Embed** the question.
2. **Check** whether any embeddings exist; an empty corpus short-circuits
   to a fixed answer without calling the model.
3. **Search** by cosine similarity; if the search fails or finds nothing,
   **fall back** to the most recent chunks.
4. **Build** the context, **generate** one answer, and **record** the
   exchange in the chat log (best effort).
"""

from __future__ import annotations

from langgraph.graph import END, StateGraph

from docqa.answer.nodes import AnswerNodes, route_after_corpus_check, route_after_search
from docqa.answer.state import AnswerState


def build_graph(nodes: AnswerNodes) -> StateGraph:
    """Construct and return the compiled answer workflow.

    Graph topology::

        embed_question
              ▼
        check_corpus ──── empty ────► no_documents ──► END
              ▼
        search_similar ── no hits ──► fallback_recent
              ▼                              │
        build_context ◄──────────────────────┘
              ▼
          generate
              ▼
         record_chat ──► END

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """
    workflow = StateGraph(AnswerState)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("embed_question", nodes.embed_question)
    workflow.add_node("check_corpus", nodes.check_corpus)
    workflow.add_node("no_documents", nodes.no_documents)
    workflow.add_node("search_similar", nodes.search_similar)
    workflow.add_node("fallback_recent", nodes.fallback_recent)
    workflow.add_node("build_context", nodes.build_context)
    workflow.add_node("generate", nodes.generate)
    workflow.add_node("record_chat", nodes.record_chat)

    # -- Edges ---------------------------------------------------------------
    workflow.set_entry_point("embed_question")
    workflow.add_edge("embed_question", "check_corpus")
    workflow.add_conditional_edges(
        "check_corpus",
        route_after_corpus_check,
        {
            "no_documents": "no_documents",
            "search_similar": "search_similar",
        },
    )
    workflow.add_edge("no_documents", END)
    workflow.add_conditional_edges(
        "search_similar",
        route_after_search,
        {
            "build_context": "build_context",
            "fallback_recent": "fallback_recent",
        },
    )
    workflow.add_edge("fallback_recent", "build_context")
    workflow.add_edge("build_context", "generate")
    workflow.add_edge("generate", "record_chat")
    workflow.add_edge("record_chat", END)

    return workflow.compile()
