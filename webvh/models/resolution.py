"""Resolution models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import ConfigDict, Field

from .base import CustomBaseModel
from .did_log import WitnessParam


class ResolutionMeta(CustomBaseModel):
    """Metadata accumulated while replaying a DID log."""

    model_config = ConfigDict(frozen=True)

    versionId: str = Field()
    versionNumber: int = Field()
    versionTime: str = Field()
    created: str = Field()
    updated: str = Field()
    previousLogEntryHash: Union[str, None] = Field(None)
    scid: str = Field()
    updateKeys: List[str] = Field(default_factory=list)
    nextKeyHashes: List[str] = Field(default_factory=list)
    prerotation: bool = Field(False)
    portable: bool = Field(False)
    witness: Union[WitnessParam, None] = Field(None)
    watchers: Union[List[str], None] = Field(None)
    deactivated: bool = Field(False)
    ttl: Union[int, None] = Field(None)


class ResolutionOptions(CustomBaseModel):
    """ResolutionOptions model."""

    versionNumber: Union[int, None] = Field(None)
    versionId: Union[str, None] = Field(None)
    versionTime: Union[datetime, None] = Field(None)
    verificationMethod: Union[str, None] = Field(None)
    scid: Union[str, None] = Field(None)
    skipWitnessVerification: bool = Field(False)

    @property
    def version_filter(self) -> bool:
        """Return True when a version stop condition is requested."""
        return any(
            value is not None for value in (self.versionNumber, self.versionId, self.versionTime)
        )

    @property
    def stop_requested(self) -> bool:
        """Return True when any stop condition is requested."""
        return self.version_filter or self.verificationMethod is not None


class ResolutionStage(str, Enum):
    """Stages of the log replay."""

    EXPECT_GENESIS = "ExpectGenesis"
    EXPECT_NEXT = "ExpectNext"
    RESOLVED = "Resolved"


class ResolutionState(CustomBaseModel):
    """Immutable accumulator threaded through the log replay."""

    model_config = ConfigDict(frozen=True)

    stage: ResolutionStage = Field(ResolutionStage.EXPECT_GENESIS)
    expected_version: int = Field(1)
    did: Union[str, None] = Field(None)
    document: Union[Dict[str, Any], None] = Field(None)
    meta: Union[ResolutionMeta, None] = Field(None)


class DIDResult(CustomBaseModel):
    """Result of a create, update, deactivate or resolve operation."""

    did: str = Field()
    doc: Dict[str, Any] = Field()
    meta: ResolutionMeta = Field()
    log: Union[List[Dict[str, Any]], None] = Field(None)
