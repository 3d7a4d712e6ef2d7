# =============================================================================
# core/models/assistant.py - Fred Assistant Schemas
# =============================================================================
# Request/response models for the analytics assistant:
# - AskRequest: a natural-language question
# - ToolCallRecord: one metric the model asked for
# - FredAnswer: the final answer plus the tool calls that produced it
# - MetricDescriptor: catalogue entry for a registered metric
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    """Question for Fred."""
    question: str = Field(
        default="",
        max_length=2000,
        description="Natural-language question about the studio's customers",
        examples=[
            "Who hasn't been in for 30 days?",
            "How is retention looking by signup month?",
            "What share of clients opted in to marketing email?",
        ],
    )


class ToolCallRecord(BaseModel):
    """A metric invocation made while answering a question."""
    metric: str
    params: dict[str, Any] = Field(default_factory=dict)
    ok: bool = True
    error: str | None = None


class FredAnswer(BaseModel):
    """Fred's answer."""
    text: str
    tool_calls: list[ToolCallRecord] = Field(default_factory=list)
    iterations: int = 0


class MetricParam(BaseModel):
    """A parameter accepted by a metric."""
    name: str
    type: str = "number"
    description: str = ""
    default: Any = None


class MetricDescriptor(BaseModel):
    """Catalogue entry for a registered metric."""
    name: str
    category: str
    description: str
    params: list[MetricParam] = Field(default_factory=list)
