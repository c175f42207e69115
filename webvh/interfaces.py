"""Capabilities injected into log construction and resolution."""

import logging

from multiformats import multibase
from pydantic import ValidationError

from webvh.errors import SignatureInvalid
from webvh.models.di_proof import DataIntegrityProof
from webvh.utilities import did_key_to_multikey, multikey_to_public_bytes, transform

logger = logging.getLogger(__name__)


class Signer:
    """Produces proof values for log entries.

    Implementations hold the signing key; the log functions only see the
    verification method id and the returned ``proofValue``.
    """

    @property
    def verification_method_id(self) -> str:
        """Return the did:key verification method used by this signer."""
        raise NotImplementedError()

    async def sign(self, signing_input: dict) -> dict:
        """Sign ``{"document": ..., "proof": ...}`` and return ``{"proofValue": ...}``."""
        raise NotImplementedError()


class Verifier:
    """Checks raw signatures."""

    def verify(self, signature: bytes, message: bytes, public_key: bytes) -> bool:
        """Return True if the signature over message is valid for public_key."""
        raise NotImplementedError()

    def verify_proof(self, document: dict, proof: dict, version=None) -> str:
        """Verify a did:key data integrity proof over a document.

        Returns the multikey that produced the proof.
        """
        try:
            DataIntegrityProof.model_validate(proof)
        except ValidationError as err:
            raise SignatureInvalid(f"Invalid proof options: {err}", version=version)
        try:
            multikey = did_key_to_multikey(proof["verificationMethod"])
            public_key = multikey_to_public_bytes(multikey)
            signature = multibase.decode(proof["proofValue"])
        except (KeyError, ValueError) as err:
            raise SignatureInvalid(f"Unable to decode proof: {err}", version=version)

        proof_options = {key: value for key, value in proof.items() if key != "proofValue"}
        if not self.verify(signature, transform(document, proof_options), public_key):
            raise SignatureInvalid(
                f"Signature was forged or corrupt for {proof['verificationMethod']}.",
                version=version,
            )
        logger.debug(f"Verified proof from {multikey}")
        return multikey
