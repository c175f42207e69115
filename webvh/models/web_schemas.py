"""Pydantic models for the web schemas."""

from typing import Any, Dict, Union

from pydantic import Field

from .base import CustomBaseModel
from .did_log import WitnessProofFile


class NewLogEntry(CustomBaseModel):
    """NewLogEntry model."""

    logEntry: Dict[str, Any] = Field()
    witnessSignature: Union[WitnessProofFile, None] = Field(None)
