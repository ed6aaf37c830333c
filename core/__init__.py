# =============================================================================
# core/__init__.py
# =============================================================================
# The trip ledger engine: data model, itinerary scheduler, expense ledger,
# settlement solver, the TripBook that owns them, and the JSON store.
#
# Nothing here imports Google ADK or FastMCP.  The only outside service is
# Gemini, reached through core/genai_client.py by the two live collaborators
# (weather advisor, expense categorizer), and both have offline mock modes.
# =============================================================================
