"""Decoding of raw model text into envelopes.

Fallback rules:

- blank lines, and lines that are only Markdown fences, are skipped;
- fences and a leading ``Agent:`` label are stripped before decoding;
- a line that is not a JSON object, or whose ``type`` is missing or
  unknown, becomes ``UnrecognizedEnvelope`` holding the cleaned line;
- missing fields of a known type decode as empty values.
"""

import json
import re
from typing import Any

from todo_agent.agent.envelopes import (
    ActionEnvelope,
    Envelope,
    ObservationEnvelope,
    OutputEnvelope,
    PlanEnvelope,
    UnrecognizedEnvelope,
)
from todo_agent.llm.models import FunctionCall
from todo_agent.logging import get_logger

logger = get_logger("todo_agent.agent.parser")

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_ROLE_LABEL_RE = re.compile(r"^agent:\s*", re.IGNORECASE)


def clean_line(line: str) -> str:
    """Remove code fences and a leading role label from one line."""
    line = _FENCE_RE.sub("", line).strip()
    return _ROLE_LABEL_RE.sub("", line).strip()


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class ResponseParser:
    """Turns raw model output into an ordered list of envelopes."""

    def parse(self, raw_text: str | None) -> list[Envelope]:
        """Decode every non-empty line of ``raw_text``.

        Args:
            raw_text: Text returned by the model, possibly multi-line

        Returns:
            list[Envelope]: One envelope per meaningful line, in order
        """
        envelopes: list[Envelope] = []
        for line in (raw_text or "").splitlines():
            cleaned = clean_line(line)
            if not cleaned:
                continue
            envelopes.append(self.parse_line(cleaned))
        return envelopes

    def parse_line(self, line: str) -> Envelope:
        """Decode a single cleaned line."""
        try:
            obj = json.loads(line)
        except json.JSONDecodeError:
            logger.info("Failed to parse JSON line", line_preview=line[:200])
            return UnrecognizedEnvelope(raw_text=line)

        if not isinstance(obj, dict):
            logger.info("JSON line is not an object", line_preview=line[:200])
            return UnrecognizedEnvelope(raw_text=line)

        return self.from_object(obj, line)

    def from_object(self, obj: dict[str, Any], line: str) -> Envelope:
        """Map a decoded object to the envelope its ``type`` names."""
        kind = str(obj.get("type", "")).strip().lower()

        if kind == "plan":
            return PlanEnvelope(text=_as_text(obj.get("plan")))

        if kind == "action":
            action = obj.get("action")
            if isinstance(action, str):
                return ActionEnvelope(function=action.strip(), input=obj.get("input"))
            if not isinstance(action, dict):
                # tolerate {"type": "action", "function": ..., "input": ...}
                action = obj
            return ActionEnvelope(
                function=_as_text(action.get("function")),
                input=action.get("input"),
            )

        if kind == "observation":
            return ObservationEnvelope(value=obj.get("observation"))

        if kind == "output":
            return OutputEnvelope(text=_as_text(obj.get("output")))

        logger.warning("Unknown envelope type", envelope_type=kind or None)
        return UnrecognizedEnvelope(raw_text=line)

    def from_function_call(self, call: FunctionCall) -> Envelope:
        """Convert a provider's structured function call into an action.

        String arguments are JSON-decoded first; if that fails the call is
        reported as unrecognized.
        """
        arguments = call.arguments
        if isinstance(arguments, str):
            if not arguments.strip():
                arguments = None
            else:
                try:
                    arguments = json.loads(arguments)
                except json.JSONDecodeError:
                    logger.info("Failed to decode function call arguments", function=call.name)
                    return UnrecognizedEnvelope(raw_text=f"{call.name}({call.arguments})")

        return ActionEnvelope(function=call.name, input=arguments)


_default_parser = ResponseParser()


def parse_response(raw_text: str | None) -> list[Envelope]:
    """Module-level shortcut for ``ResponseParser().parse``."""
    return _default_parser.parse(raw_text)
