"""DID Log models."""

from datetime import datetime
from typing import Any, Dict, List, Union

from pydantic import ConfigDict, Field, field_validator

from .base import CustomBaseModel
from .di_proof import DataIntegrityProof


class Witness(CustomBaseModel):
    """Witness model."""

    id: str = Field()
    weight: int = Field(1)


class WitnessParam(CustomBaseModel):
    """WitnessParam model."""

    threshold: Union[int, None] = Field(None)
    witnesses: Union[List[Witness], None] = Field(None)


class WitnessProofFile(CustomBaseModel):
    """Witness proofs for a single log version."""

    versionId: str = Field()
    proof: List[DataIntegrityProof] = Field()


class LogParameters(CustomBaseModel):
    """LogParameters model."""

    model_config = ConfigDict(extra="forbid")

    method: Union[str, None] = Field(None)
    scid: Union[str, None] = Field(None)
    portable: Union[bool, None] = Field(None)
    updateKeys: Union[List[str], None] = Field(None)
    nextKeyHashes: Union[List[str], None] = Field(None)
    witness: Union[WitnessParam, None] = Field(None)
    watchers: Union[List[str], None] = Field(None)
    deactivated: Union[bool, None] = Field(None)
    ttl: Union[int, None] = Field(None)

    @field_validator("ttl")
    @classmethod
    def ttl_validator(cls, value):
        """Validate the ttl field."""
        assert value is None or value > 0, "Expected positive ttl."
        return value


class LogEntry(CustomBaseModel):
    """LogEntry model."""

    model_config = ConfigDict(extra="forbid")

    versionId: str = Field()
    versionTime: str = Field()
    parameters: LogParameters = Field()
    state: Dict[str, Any] = Field()
    proof: Union[List[DataIntegrityProof], None] = Field(None)

    @field_validator("versionId")
    @classmethod
    def version_id_validator(cls, value):
        """Validate the versionId field."""
        number, _, entry_hash = value.partition("-")
        assert number.isdigit() and entry_hash, f"Invalid versionId {value}."
        return value

    @field_validator("versionTime")
    @classmethod
    def version_time_validator(cls, value):
        """Validate the versionTime field."""
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return value

    @field_validator("state")
    @classmethod
    def state_validator(cls, value):
        """Validate the state field."""
        assert isinstance(value.get("id"), str), "Invalid document state: missing 'id'."
        assert value["id"].startswith("did:"), "Invalid document state id."
        return value

    @property
    def version_number(self) -> int:
        """Return the sequence number encoded in the versionId."""
        return int(self.versionId.split("-")[0])
