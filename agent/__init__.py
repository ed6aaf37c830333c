# =============================================================================
# agent/__init__.py
# =============================================================================
# The conversational front end: a Google ADK agent whose only way to read or
# change trips is the MCP tool server in tools/.
#
#   agent/ → prompt + model + tool connection
#   tools/ → MCP wrappers around TripBook
#   core/  → the ledger itself
# =============================================================================
