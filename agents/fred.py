# =============================================================================
# agents/fred.py - Fred, the Studio Analytics Assistant
# =============================================================================
# Fred answers natural-language questions about customers with a tool-call
# loop over the metric registry:
#
#   1. Send the question with one `analytics` tool (metric name + params)
#   2. Run every metric the model asks for, return results as JSON
#   3. Repeat up to FRED_MAX_TOOL_ITERATIONS rounds
#   4. If the model still wants tools, force a text answer
#
# The customers table is loaded once per question, on the first tool call.
#
# Usage:
#   from agents.fred import FredAgent
#   answer = FredAgent().ask("Who hasn't been in for 30 days?")
#   print(answer.text)
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, Callable

import pandas as pd
from openai import OpenAI

from app.config import settings
from app.exceptions import EmptyQuestionError, StudioException
from agents.analytics import (
    MetricParamError,
    UnknownMetricError,
    fetch_all_customers,
    list_metrics,
    load_customer_frame,
    run_metric,
)
from agents.prompts.fred_system import (
    ANALYTICS_TOOL_NAME,
    build_analytics_tool,
    build_fred_prompt,
)
from core.models.assistant import FredAnswer, ToolCallRecord
from lib.supabase_client import SupabaseClientError
from lib.utils import utc_now

# Set up logging for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Exceptions
# =============================================================================

class FredError(StudioException):
    """
    Error talking to the language model.

    Surfaces as HTTP 502: the request was fine, the upstream model failed.
    """

    def __init__(
        self,
        message: str,
        code: str = "FRED_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            code=code,
            status_code=502,
            suggestion=suggestion,
            details=details,
        )


# =============================================================================
# Fred Agent
# =============================================================================

class FredAgent:
    """
    The studio analytics assistant.

    Example:
        agent = FredAgent()
        answer = agent.ask("How many intro offers end this week?")
        answer.text         # "3 intro offers end in the next 7 days: ..."
        answer.tool_calls   # [ToolCallRecord(metric="intro_ending_soon", ...)]

    Attributes:
        model: OpenAI model to use (default from settings)
        temperature: Generation temperature (default from settings)
        max_iterations: Max tool rounds before forcing an answer
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_iterations: int | None = None,
        client: OpenAI | None = None,
        customer_loader: Callable[[], list[dict[str, Any]]] | None = None,
    ):
        self.client = client or OpenAI(api_key=settings.OPENAI_API_KEY)
        self.model = model or settings.OPENAI_MODEL
        self.temperature = temperature if temperature is not None else settings.FRED_TEMPERATURE
        self.max_iterations = max_iterations or settings.FRED_MAX_TOOL_ITERATIONS
        self.customer_loader = customer_loader or fetch_all_customers

        self._frame: pd.DataFrame | None = None

        logger.info(f"FredAgent initialized with model={self.model}, temp={self.temperature}")

    # -------------------------------------------------------------------------
    # Main Entry Point
    # -------------------------------------------------------------------------

    def ask(self, question: str) -> FredAnswer:
        """
        Answer a question.

        Args:
            question: The owner's question

        Returns:
            FredAnswer with the text and the metrics consulted

        Raises:
            EmptyQuestionError: If the question is blank
            FredError: If the OpenAI call fails
        """
        question = (question or "").strip()
        if not question:
            raise EmptyQuestionError()

        logger.info(f"Fred question: '{question[:80]}'")

        self._frame = None
        metrics = list_metrics()
        tools = [build_analytics_tool(metrics)]
        now = utc_now()

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": build_fred_prompt(metrics, today=now.date().isoformat())},
            {"role": "user", "content": question},
        ]
        records: list[ToolCallRecord] = []

        for iteration in range(self.max_iterations):
            message = self._complete(messages, tools, tool_choice="auto")

            if not message.tool_calls:
                return self._answer(message, records, iteration)

            logger.debug(f"Tool round {iteration + 1}: {len(message.tool_calls)} call(s)")
            messages.append(self._assistant_message(message))

            for call in message.tool_calls:
                output = self._run_tool_call(call, records, now)
                messages.append({
                    "role": "tool",
                    "tool_call_id": call.id,
                    "content": json.dumps(output, default=str),
                })

        logger.info(f"Tool limit ({self.max_iterations}) reached, forcing an answer")
        message = self._complete(messages, tools, tool_choice="none")
        return self._answer(message, records, self.max_iterations)

    # -------------------------------------------------------------------------
    # OpenAI
    # -------------------------------------------------------------------------

    def _complete(self, messages: list[dict[str, Any]], tools: list[dict], tool_choice: str):
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                messages=messages,
                tools=tools,
                tool_choice=tool_choice,
            )
            return response.choices[0].message

        except Exception as e:
            logger.error(f"OpenAI API call failed: {e}")
            raise FredError(
                message=f"OpenAI API call failed: {e}",
                code="OPENAI_ERROR",
                suggestion="Check your OPENAI_API_KEY and network connection",
                details={"model": self.model},
            )

    @staticmethod
    def _assistant_message(message: Any) -> dict[str, Any]:
        return {
            "role": "assistant",
            "content": message.content,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {
                        "name": call.function.name,
                        "arguments": call.function.arguments,
                    },
                }
                for call in message.tool_calls
            ],
        }

    @staticmethod
    def _answer(message: Any, records: list[ToolCallRecord], iterations: int) -> FredAnswer:
        text = (message.content or "").strip()
        logger.info(f"Fred answered after {iterations} tool round(s), {len(records)} metric call(s)")
        return FredAnswer(text=text, tool_calls=records, iterations=iterations)

    # -------------------------------------------------------------------------
    # Tool Execution
    # -------------------------------------------------------------------------

    def _customers(self) -> pd.DataFrame:
        if self._frame is None:
            self._frame = load_customer_frame(self.customer_loader())
        return self._frame

    def _run_tool_call(self, call: Any, records: list[ToolCallRecord], now) -> Any:
        """
        Execute one tool call and return its JSON-able output.

        Failures become {"error": ...} so the model can recover.
        """
        if call.function.name != ANALYTICS_TOOL_NAME:
            error = f"Unknown tool: {call.function.name}"
            records.append(ToolCallRecord(metric=call.function.name, ok=False, error=error))
            return {"error": error}

        try:
            args = json.loads(call.function.arguments or "{}")
        except json.JSONDecodeError:
            args = {}
        if not isinstance(args, dict):
            args = {}

        metric = str(args.get("metric") or "")
        params = args.get("params") if isinstance(args.get("params"), dict) else {}

        try:
            result = run_metric(metric, self._customers(), params, now)
        except (UnknownMetricError, MetricParamError) as e:
            error = str(e)
        except SupabaseClientError as e:
            logger.error(f"Failed to load customers for {metric}: {e}")
            error = f"Customer data unavailable: {e.message}"
        except Exception as e:
            logger.exception(f"Metric {metric} failed")
            error = f"Metric {metric} failed: {e}"
        else:
            logger.debug(f"Metric {metric}({params}) ok")
            records.append(ToolCallRecord(metric=metric, params=params))
            return result

        records.append(ToolCallRecord(metric=metric, params=params, ok=False, error=error))
        return {"error": error}
