"""Typed envelopes decoded from model output.

The model answers with one JSON object per line, tagged by ``type``.
Each line becomes exactly one envelope; lines that cannot be decoded
become ``UnrecognizedEnvelope`` so nothing is dropped silently.
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field


class PlanEnvelope(BaseModel):
    """The model's reasoning about what to do next."""

    type: Literal["plan"] = "plan"
    text: str = ""


class ActionEnvelope(BaseModel):
    """A request to run one operation."""

    type: Literal["action"] = "action"
    function: str = ""
    input: Any = None


class ObservationEnvelope(BaseModel):
    """The model acknowledging a result; informational only."""

    type: Literal["observation"] = "observation"
    value: Any = None


class OutputEnvelope(BaseModel):
    """The final reply for the user."""

    type: Literal["output"] = "output"
    text: str = ""


class UnrecognizedEnvelope(BaseModel):
    """A line that could not be decoded as an envelope."""

    type: Literal["unrecognized"] = "unrecognized"
    raw_text: str = ""


Envelope = Annotated[
    Union[PlanEnvelope, ActionEnvelope, ObservationEnvelope, OutputEnvelope, UnrecognizedEnvelope],
    Field(discriminator="type"),
]
