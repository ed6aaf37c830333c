# =============================================================================
# main.py  —  Entry Point for the Trip Ledger Assistant
# =============================================================================
#
# HOW TO RUN:
#   python main.py
#
# WHAT HAPPENS:
#   1. Loads .env (API keys, USE_LIVE_WEATHER, TRIP_LEDGER_DATA_DIR, ...)
#   2. Creates the ADK agent (agent/trip_agent.py), which spawns the MCP
#      tool server as a subprocess
#   3. Runs an interactive chat loop; each message may trigger several tool
#      calls ("add_expense", "settle_up", ...) before the agent answers
#
# All trip data lives in the JSON store the tool server writes, so it
# survives restarts of this script.
# =============================================================================

import asyncio
import logging

from dotenv import load_dotenv

# Before anything reads the environment (settings, LiteLlm provider keys).
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.trip_agent import create_agent
from core.config import get_settings

APP_NAME = "trip_ledger"
USER_ID = "local_user"


async def run_agent():
    """Run the trip ledger assistant interactively."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    print("=" * 70)
    print("  TRIP LEDGER ASSISTANT")
    print(f"  Google ADK + FastMCP  ·  model: {settings.agent_model}")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent(settings)

    session_service = InMemorySessionService()
    runner = Runner(
        agent=agent,
        app_name=APP_NAME,
        session_service=session_service,
    )
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Agent initialized and ready!\n")
    print("💬 Plan days, log expenses, or ask who owes whom.")
    print("   (Type 'quit' to exit)\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break

        if not user_input:
            continue

        user_message = types.Content(
            role="user",
            parts=[types.Part(text=user_input)],
        )

        print("\n🤖 Agent is thinking...\n")
        print("-" * 70)

        final_response = ""
        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if event.content and event.content.parts:
                for part in event.content.parts:
                    if getattr(part, "text", None):
                        final_response = part.text
                    if getattr(part, "function_call", None):
                        print(f"  🔧 Calling tool: {part.function_call.name}")

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Agent:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated. The agent may have encountered an error.")

        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
