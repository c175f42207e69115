"""This module defines the DataIntegrityProof model used for data integrity proofs."""

from typing import Union

from pydantic import Field, field_validator

from config import settings
from .base import CustomBaseModel


class DataIntegrityProofOptions(CustomBaseModel):
    """DataIntegrityProofOptions model."""

    type: str = Field(settings.PROOF_TYPE)
    cryptosuite: str = Field(settings.PROOF_CRYPTOSUITE)
    proofPurpose: str = Field(settings.PROOF_PURPOSE)
    verificationMethod: str = Field()
    created: Union[str, None] = Field(None)

    @field_validator("type")
    @classmethod
    def validate_type(cls, value):
        """Validate the type field."""
        assert value == "DataIntegrityProof"
        return value

    @field_validator("cryptosuite")
    @classmethod
    def validate_cryptosuite(cls, value):
        """Validate the cryptosuite field."""
        assert value in ["eddsa-jcs-2022"]
        return value

    @field_validator("proofPurpose")
    @classmethod
    def validate_proof_purpose(cls, value):
        """Validate the proofPurpose field."""
        assert value in ["assertionMethod", "authentication"]
        return value

    @field_validator("verificationMethod")
    @classmethod
    def validate_verification_method(cls, value):
        """Validate the verificationMethod field."""
        assert value.split("#")[0].startswith("did:")
        return value


class DataIntegrityProof(DataIntegrityProofOptions):
    """DataIntegrityProof model."""

    proofValue: str = Field()
