from .di_proof import DataIntegrityProof, DataIntegrityProofOptions
from .did_document import DidDocument, Service, VerificationMethod, VerificationMethodMultikey
from .did_log import LogEntry, LogParameters, Witness, WitnessParam, WitnessProofFile
from .resolution import (
    DIDResult,
    ResolutionMeta,
    ResolutionOptions,
    ResolutionStage,
    ResolutionState,
)
from .web_schemas import NewLogEntry

__all__ = [
    "DataIntegrityProof",
    "DataIntegrityProofOptions",
    "DidDocument",
    "Service",
    "VerificationMethod",
    "VerificationMethodMultikey",
    "LogEntry",
    "LogParameters",
    "Witness",
    "WitnessParam",
    "WitnessProofFile",
    "DIDResult",
    "ResolutionMeta",
    "ResolutionOptions",
    "ResolutionStage",
    "ResolutionState",
    "NewLogEntry",
]
