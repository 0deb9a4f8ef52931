"""LangGraph-based dispatcher agent.

Architecture:
  A LangGraph StateGraph with two nodes:

    1. **chatbot** — Claude, bound to the dispatcher tool subset, decides
                     which tools to call (or answers)
    2. **tools**   — executes the requested tool calls against Zuper

  Routing:
    chatbot → (has tool calls?) → tools → chatbot (loop)
            → (no tool calls?)  → END

  The graph is async end to end (the Zuper tools are coroutines), so it is
  driven with ``ainvoke``.  Tool failures are turned into tool-result
  messages by the ToolNode so the model can react to them (try the next
  candidate, report the error).

  Memory:
    Conversation state is kept per thread via LangGraph's MemorySaver
    checkpoint.  It is the only in-process store and it is agent-internal.
"""

from __future__ import annotations

import logging
from typing import Annotated

from langchain_anthropic import ChatAnthropic
from langchain_core.messages import AnyMessage, SystemMessage
from langgraph.checkpoint.memory import MemorySaver
from langgraph.graph import END, StateGraph
from langgraph.graph.message import add_messages
from langgraph.prebuilt import ToolNode
from typing_extensions import TypedDict

from zuper_dispatch.config import Settings, get_settings
from zuper_dispatch.prompts import get_dispatcher_prompt
from zuper_dispatch.services.metrics import metrics
from zuper_dispatch.services.zuper_client import configure_zuper_client
from zuper_dispatch.tools.catalog import DISPATCHER_TOOLS

logger = logging.getLogger(__name__)


class AgentState(TypedDict):
    """The state that flows through the graph.

    ``messages`` uses the LangGraph ``add_messages`` reducer so that each
    node can append messages without overwriting the full history.
    """

    messages: Annotated[list[AnyMessage], add_messages]


def _build_llm(settings: Settings) -> ChatAnthropic:
    llm = ChatAnthropic(
        model=settings.model_name,
        api_key=settings.require_model_key(),
        temperature=0.1,
        max_tokens=4096,
    )
    return llm.bind_tools(DISPATCHER_TOOLS)


def _make_chatbot_node(settings: Settings):
    """Create the chatbot node.

    The LLM + tool bindings are captured in the closure so the
    chatbot -> tools -> chatbot loop reuses one client.
    """
    llm_with_tools = _build_llm(settings)

    async def chatbot_node(state: AgentState) -> dict:
        logger.debug("chatbot node invoked, model: %s", settings.model_name)
        system = SystemMessage(content=get_dispatcher_prompt(settings))
        with metrics.track("anthropic", "llm_invoke"):
            response = await llm_with_tools.ainvoke([system] + state["messages"])
        tool_calls = getattr(response, "tool_calls", None) or []
        logger.debug("chatbot requested %d tool call(s)", len(tool_calls))
        return {"messages": [response]}

    return chatbot_node


def should_use_tools(state: AgentState) -> str:
    """Route to the tools node when the last message requests tool calls."""
    last_message = state["messages"][-1]
    if getattr(last_message, "tool_calls", None):
        return "tools"
    return END


def create_dispatcher_agent(settings: Settings | None = None):
    """Build and compile the dispatcher graph.

    The shared Zuper client is configured from *settings*, so the tools use
    its credential defaults and primary team rule.

    Raises:
        OSError: if no Anthropic API key is configured.

    Returns a compiled graph that can be invoked with:
        await graph.ainvoke(
            {"messages": [HumanMessage(content="...")]},
            config={"configurable": {"thread_id": "dispatch-123"}},
        )
    """
    settings = settings or get_settings()

    chatbot = _make_chatbot_node(settings)
    configure_zuper_client(settings)

    graph = StateGraph(AgentState)
    graph.add_node("chatbot", chatbot)
    graph.add_node("tools", ToolNode(DISPATCHER_TOOLS, handle_tool_errors=True))

    graph.set_entry_point("chatbot")
    graph.add_conditional_edges(
        "chatbot", should_use_tools, {"tools": "tools", END: END},
    )
    graph.add_edge("tools", "chatbot")

    compiled = graph.compile(checkpointer=MemorySaver())
    logger.debug(
        "Dispatcher agent compiled (model %s, %d tools)",
        settings.model_name, len(DISPATCHER_TOOLS),
    )
    return compiled
