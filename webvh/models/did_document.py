"""DID Document model."""

from typing import Any, Dict, List, Union

import validators
from multiformats import multibase
from pydantic import ConfigDict, Field, field_validator

from config import settings
from .base import CustomBaseModel

VERIFICATION_RELATIONSHIPS = [
    "authentication",
    "assertionMethod",
    "keyAgreement",
    "capabilityInvocation",
    "capabilityDelegation",
]


class VerificationMethod(CustomBaseModel):
    """Verification method supplied by a controller.

    ``secretKeyMultibase`` and ``purpose`` are only meaningful to signers and
    document builders, they are never written to a DID document.
    """

    id: Union[str, None] = Field(None)
    type: str = Field("Multikey")
    controller: Union[str, None] = Field(None)
    publicKeyMultibase: str = Field()
    secretKeyMultibase: Union[str, None] = Field(None)
    purpose: Union[str, None] = Field(None)

    @field_validator("type")
    @classmethod
    def verification_method_type_validator(cls, value):
        """Validate the type field."""
        assert value == "Multikey", "Expected type Multikey"
        return value

    @field_validator("purpose")
    @classmethod
    def verification_method_purpose_validator(cls, value):
        """Validate the purpose field."""
        assert value is None or value in VERIFICATION_RELATIONSHIPS, f"Invalid purpose {value}"
        return value

    @field_validator("publicKeyMultibase")
    @classmethod
    def verification_method_public_key_validator(cls, value):
        """Validate the public key field."""
        try:
            multibase.decode(value)
        except Exception:
            assert False, f"Unable to decode public key multibase value {value}"
        return value


class VerificationMethodMultikey(CustomBaseModel):
    """VerificationMethodMultikey model."""

    id: str = Field()
    type: str = Field("Multikey")
    controller: str = Field()
    publicKeyMultibase: str = Field()

    @field_validator("id")
    @classmethod
    def verification_method_id_validator(cls, value):
        """Validate the id field."""
        assert value.startswith("did:")
        return value


class Service(CustomBaseModel):
    """Service model."""

    model_config = ConfigDict(extra="allow")

    id: str = Field()
    type: Union[str, List[str]] = Field()
    serviceEndpoint: Union[str, List[Any], Dict[str, Any]] = Field()

    @field_validator("id")
    @classmethod
    def service_id_validator(cls, value):
        """Validate the id field."""
        assert value.startswith("did:") or value.startswith("#"), f"Invalid service id {value}."
        return value

    @field_validator("serviceEndpoint")
    @classmethod
    def service_endpoint_validator(cls, value):
        """Validate the service endpoint field."""
        if isinstance(value, str) and value.startswith("http"):
            assert validators.url(value, simple_host=True), f"Invalid service endpoint {value}."
        return value


class DidDocument(CustomBaseModel):
    """DID Document model."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    context: Union[str, List[Any]] = Field(
        settings.BASE_CONTEXT,
        alias="@context",
    )
    id: str = Field()
    controller: Union[str, List[str], None] = Field(None)
    alsoKnownAs: Union[List[str], None] = Field(None)
    verificationMethod: Union[List[VerificationMethodMultikey], None] = Field(None)
    authentication: Union[List[Union[str, Dict[str, Any]]], None] = Field(None)
    assertionMethod: Union[List[Union[str, Dict[str, Any]]], None] = Field(None)
    keyAgreement: Union[List[Union[str, Dict[str, Any]]], None] = Field(None)
    capabilityInvocation: Union[List[Union[str, Dict[str, Any]]], None] = Field(None)
    capabilityDelegation: Union[List[Union[str, Dict[str, Any]]], None] = Field(None)
    service: Union[List[Service], None] = Field(None)

    @field_validator("context")
    @classmethod
    def context_validator(cls, value):
        """Validate the context field."""
        first = value if isinstance(value, str) else value[0]
        assert first == "https://www.w3.org/ns/did/v1", "Invalid context."
        return value

    @field_validator("id")
    @classmethod
    def id_validator(cls, value):
        """Validate the id field."""
        assert value.startswith("did:")
        return value
