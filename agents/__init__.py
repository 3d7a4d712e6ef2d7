# =============================================================================
# agents/ - Analytics Assistant
# =============================================================================
# This package contains Fred, the studio's analytics assistant:
# - fred.py: the OpenAI tool-call loop
# - analytics/: the metric registry Fred dispatches to
#
# Prompts:
# - prompts/fred_system.py: system prompt and tool schema
# =============================================================================

from agents.fred import FredAgent, FredError

__all__ = [
    "FredAgent",
    "FredError",
]
