# =============================================================================
# agent/trip_agent.py  —  Google ADK Agent Configuration
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Creates the trip ledger assistant: a Google ADK agent that reads the
#   user's request ("I paid 3000 yen for ramen for the three of us"), calls
#   the MCP tools in tools/mcp_server.py, and answers in plain language.
#
#   ┌──────────────────────────────┐      stdio       ┌──────────────────────┐
#   │  ADK Agent                   │ ───────────────▶ │  FastMCP server      │
#   │  prompt + model + MCPToolset │ ◀─────────────── │  (tools/mcp_server)  │
#   └──────────────────────────────┘                  └──────────┬───────────┘
#                                                                │
#                                                                ▼
#                                                     ┌──────────────────────┐
#                                                     │  core/  TripBook     │
#                                                     │  + JSON store        │
#                                                     └──────────────────────┘
#
#   The agent holds no ledger logic and no trip state.  Everything it knows
#   about a trip comes back from a tool call.
#
# MODEL CHOICE (AGENT_MODEL):
#   - A plain Gemini name ("gemini-2.5-flash") is passed to ADK as is.
#   - A "provider/model" string ("openrouter/openai/gpt-4o",
#     "anthropic/claude-3-5-sonnet") goes through ADK's LiteLlm adapter,
#     which reads that provider's API key from the environment.
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset, StdioConnectionParams
from mcp import StdioServerParameters

from agent.prompt import get_trip_assistant_prompt
from core.config import Settings, get_settings


def _model_for(name: str):
    if "/" in name:
        return LiteLlm(model=name)
    return name


def create_agent(settings: Settings | None = None) -> Agent:
    """Create the trip ledger assistant with its MCP tool connection.

    Args:
        settings: Model selection; read from the environment if omitted.

    Returns:
        A configured Google ADK Agent instance.
    """
    settings = settings or get_settings()

    # The tool server runs as a subprocess of this interpreter, with the same
    # environment, so it sees the same .env values and data directory.
    project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    mcp_tools = MCPToolset(
        connection_params=StdioConnectionParams(
            server_params=StdioServerParameters(
                command=sys.executable,
                args=["-m", "tools.mcp_server"],
                cwd=project_root,
                env=dict(os.environ),
            ),
        ),
    )

    return Agent(
        name="trip_ledger_assistant",
        model=_model_for(settings.agent_model),
        instruction=get_trip_assistant_prompt(),
        tools=[mcp_tools],
    )
