"""LangGraph graph definition — the answer workflow.

1. **Route** the question: grounded (university records) vs open domain.
2. **Retrieve** the top-K chunks for grounded questions.
3. **Generate** a grounded answer from the numbered context, or return the
   fixed fallback when nothing was retrieved, or generate an open-domain
   answer without retrieval.
"""

from __future__ import annotations

from typing import Any

from langgraph.graph import END, StateGraph

from university_rag.answering.nodes import AnswerNodes
from university_rag.answering.state import AnswerState


def build_graph(nodes: AnswerNodes) -> Any:
    """Construct and return the compiled workflow.

    Graph topology::

                 ┌────────────────┐
                 │ route_question │
                 └───────┬────────┘
              grounded   │   open
             ┌───────────┴───────────┐
             ▼                       ▼
        ┌──────────┐          ┌───────────────┐
        │ retrieve │          │ generate_open │
        └────┬─────┘          └───────┬───────┘
     chunks  │  none                  │
       ┌─────┴──────┐                 │
       ▼            ▼                 │
  ┌───────────────────┐ ┌──────────┐  │
  │ generate_grounded │ │ fallback │  │
  └─────────┬─────────┘ └────┬─────┘  │
            ▼                ▼        ▼
                       [ END ]

    Returns
    -------
    CompiledGraph
        A compiled LangGraph workflow ready for ``.invoke()``.
    """
    workflow = StateGraph(AnswerState)

    # -- Nodes ---------------------------------------------------------------
    workflow.add_node("route_question", nodes.route_question)
    workflow.add_node("retrieve", nodes.retrieve)
    workflow.add_node("generate_grounded", nodes.generate_grounded)
    workflow.add_node("fallback", nodes.fallback)
    workflow.add_node("generate_open", nodes.generate_open)

    # -- Edges ---------------------------------------------------------------
    workflow.set_entry_point("route_question")
    workflow.add_conditional_edges(
        "route_question",
        nodes.after_routing,
        {"retrieve": "retrieve", "generate_open": "generate_open"},
    )
    workflow.add_conditional_edges(
        "retrieve",
        nodes.after_retrieval,
        {"generate_grounded": "generate_grounded", "fallback": "fallback"},
    )
    workflow.add_edge("generate_grounded", END)
    workflow.add_edge("fallback", END)
    workflow.add_edge("generate_open", END)

    return workflow.compile()
