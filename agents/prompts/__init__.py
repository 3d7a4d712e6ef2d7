# =============================================================================
# agents/prompts/ - System Prompts
# =============================================================================
# - fred_system.py: Fred's system prompt and the analytics tool schema
# =============================================================================

from agents.prompts.fred_system import (
    FRED_SYSTEM_PROMPT,
    build_analytics_tool,
    build_fred_prompt,
)

__all__ = [
    "FRED_SYSTEM_PROMPT",
    "build_analytics_tool",
    "build_fred_prompt",
]
