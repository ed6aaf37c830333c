# =============================================================================
# tools/__init__.py
# =============================================================================
# FastMCP tool wrappers around core.book.TripBook.
#
# Each tool:
#   1. Parses its arguments and calls one TripBook method
#   2. Converts core dataclasses into small JSON-safe dicts
#   3. Returns {"error", "hint"} instead of raising on rejected input
#
# No ledger rules live here.  Splits, settlement, ordering and validation are
# all decided in core/.
# =============================================================================
