"""Askar plugin for signing and verifying cryptographic proofs."""

import logging

from aries_askar import AskarError, Key, KeyAlg
from multiformats import multibase

from webvh.interfaces import Signer, Verifier
from webvh.models.did_document import VerificationMethod
from webvh.utilities import key_to_multikey, multikey_to_did_key, transform

logger = logging.getLogger(__name__)


class AskarVerifier(Verifier):
    """Askar verifier plugin."""

    def __init__(self, alg=KeyAlg.ED25519):
        """Initialize the Askar verifier plugin."""
        self.alg = alg

    def verify(self, signature, message, public_key):
        """Verify a raw signature."""
        try:
            key = Key.from_public_bytes(alg=self.alg, public=public_key)
            return key.verify_signature(message=message, signature=signature)
        except AskarError as err:
            logger.debug(f"Signature verification error: {err}")
            return False


class AskarSigner(Signer):
    """Askar signer plugin, signs with a did:key verification method."""

    def __init__(self, key: Key):
        """Initialize the signer with an Askar key."""
        self.key = key
        self.multikey = key_to_multikey(key.get_public_bytes())

    @classmethod
    def generate(cls):
        """Create a signer for a new random ed25519 key."""
        return cls(Key.generate(KeyAlg.ED25519))

    @classmethod
    def from_seed(cls, seed):
        """Create a signer from a 32 byte seed."""
        return cls(Key.from_seed(KeyAlg.ED25519, seed))

    @classmethod
    def from_secret_multibase(cls, secret_key_multibase):
        """Create a signer from a multibase encoded secret key."""
        secret = bytes(bytearray(multibase.decode(secret_key_multibase))[2:])
        return cls(Key.from_secret_bytes(KeyAlg.ED25519, secret))

    @classmethod
    def from_verification_method(cls, verification_method: VerificationMethod):
        """Create a signer from a verification method carrying its secret key."""
        if not verification_method.secretKeyMultibase:
            raise ValueError("Verification method has no secret key.")
        return cls.from_secret_multibase(verification_method.secretKeyMultibase)

    @property
    def verification_method_id(self):
        """Return the did:key verification method id."""
        return multikey_to_did_key(self.multikey)

    def verification_method(self, purpose=None):
        """Return a verification method for this key, including its secret."""
        secret_multibase = multibase.encode(
            bytes.fromhex(f"8026{self.key.get_secret_bytes().hex()}"), "base58btc"
        )
        return VerificationMethod(
            type="Multikey",
            publicKeyMultibase=self.multikey,
            secretKeyMultibase=secret_multibase,
            purpose=purpose,
        )

    async def sign(self, signing_input):
        """Sign a document with the given proof options."""
        hash_data = transform(signing_input["document"], signing_input["proof"])
        proof_value = multibase.encode(self.key.sign_message(hash_data), "base58btc")
        return {"proofValue": proof_value}
