# =============================================================================
# agents/prompts/fred_system.py - Fred System Prompt
# =============================================================================
# System prompt and tool schema for Fred, the studio analytics assistant.
#
# Fred answers owner questions about customers by calling the `analytics`
# tool, which dispatches to the metric registry. The metric catalogue is
# rendered into the prompt so the model knows what it can ask for.
#
# Usage:
#   prompt = build_fred_prompt(list_metrics(), today="2024-06-01")
#   tools = [build_analytics_tool(list_metrics())]
# =============================================================================

from __future__ import annotations

from core.models.assistant import MetricDescriptor

ANALYTICS_TOOL_NAME = "analytics"

FRED_SYSTEM_PROMPT = """
<role>
You are Fred, the Talo Yoga studio assistant.

You answer the studio owner's questions about customers: who is active,
who is slipping away, how intro offers convert, where revenue comes from.
You get numbers by calling the `analytics` tool; never invent figures.
</role>

<guidelines>
- Keep answers concise and actionable. Include counts and short bullet lists.
- Call the tool once per metric you need; you may call several in one turn.
- Percentages from the tool are already 0-100 unless the field is a *_rate
  ratio (0.08 means 8%).
- Revenue figures marked "estimate" rest on assumed prices; say so.
- If a tool returns {{"error": ...}}, adjust the parameters or pick another
  metric. If the data is insufficient, say so and suggest the next step.
</guidelines>

<metrics>
{metric_catalogue}
</metrics>

<context>
Today is {today}.
</context>
"""


def format_metric_catalogue(metrics: list[MetricDescriptor]) -> str:
    """Render the metric catalogue as an indented list grouped by category."""
    lines: list[str] = []
    current_category = None

    for metric in metrics:
        if metric.category != current_category:
            current_category = metric.category
            lines.append(f"[{current_category}]")

        params = ", ".join(
            f"{p.name}={p.default}" if p.default is not None else p.name
            for p in metric.params
        )
        signature = f"{metric.name}({params})" if params else metric.name
        lines.append(f"  - {signature}: {metric.description}")

    return "\n".join(lines)


def build_fred_prompt(metrics: list[MetricDescriptor], today: str) -> str:
    """Build Fred's system prompt with the current metric catalogue."""
    return FRED_SYSTEM_PROMPT.format(
        metric_catalogue=format_metric_catalogue(metrics),
        today=today,
    ).strip()


def build_analytics_tool(metrics: list[MetricDescriptor]) -> dict:
    """
    OpenAI function-tool schema for the analytics dispatcher.

    `metric` is restricted to registered names; `params` is free-form and
    validated by each metric.
    """
    return {
        "type": "function",
        "function": {
            "name": ANALYTICS_TOOL_NAME,
            "description": "Compute a named customer metric over the studio's customer data.",
            "parameters": {
                "type": "object",
                "properties": {
                    "metric": {
                        "type": "string",
                        "enum": [m.name for m in metrics],
                        "description": "Metric name from the catalogue",
                    },
                    "params": {
                        "type": "object",
                        "description": "Metric parameters, e.g. {\"days\": 30, \"limit\": 10}",
                    },
                },
                "required": ["metric"],
            },
        },
    }
