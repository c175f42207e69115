"""Witness parameter validation and witness proof verification."""

import logging

from pydantic import ValidationError

from config import settings
from webvh.errors import (
    DuplicateWitness,
    InvalidWitnessConfig,
    SignatureInvalid,
    UnknownWitness,
    WitnessThresholdNotMet,
)
from webvh.models.did_log import WitnessParam
from webvh.plugins.askar import AskarVerifier
from webvh.utilities import timestamp

logger = logging.getLogger(__name__)


def load_witness_parameter(param) -> WitnessParam | None:
    """Parse a witness parameter, returning None when witnessing is disabled."""
    if param is None:
        return None
    if isinstance(param, WitnessParam):
        witness = param
    else:
        try:
            witness = WitnessParam.model_validate(param)
        except ValidationError as err:
            raise InvalidWitnessConfig(f"Invalid witness parameter: {err}")
    if not witness.witnesses and not witness.threshold:
        return None
    return witness


def validate_witness_parameter(param) -> WitnessParam | None:
    """Validate a witness parameter."""
    witness = load_witness_parameter(param)
    if witness is None:
        return None

    if not witness.witnesses:
        raise InvalidWitnessConfig("Witness list must not be empty when a threshold is set.")
    if witness.threshold is None or witness.threshold < 1:
        raise InvalidWitnessConfig(
            "Witness threshold must be a positive number.", actual=witness.threshold
        )

    seen = set()
    for entry in witness.witnesses:
        if not entry.id.startswith(settings.DID_KEY_PREFIX):
            raise InvalidWitnessConfig(
                f"Witness id must be a did:key identifier, got: {entry.id}", actual=entry.id
            )
        if entry.weight < 1:
            raise InvalidWitnessConfig(
                f"Witness weight must be positive for {entry.id}.", actual=entry.weight
            )
        if entry.id in seen:
            raise DuplicateWitness(f"Witness {entry.id} declared more than once.", actual=entry.id)
        seen.add(entry.id)

    total_weight = sum(entry.weight for entry in witness.witnesses)
    if witness.threshold > total_weight:
        raise InvalidWitnessConfig(
            "Witness threshold exceeds the total witness weight.",
            expected=total_weight,
            actual=witness.threshold,
        )
    return witness


def verify_witness_proofs(last_entry: dict, proof_files, witness, verifier=None) -> int:
    """Check witness proofs for the log tip against the witness threshold.

    Returns the approved weight.
    """
    witness = validate_witness_parameter(witness)
    if witness is None:
        return 0
    verifier = verifier or AskarVerifier()
    version_id = last_entry["versionId"]
    weights = {entry.id: entry.weight for entry in witness.witnesses}

    approved = {}
    for proof_file in proof_files or []:
        if proof_file.get("versionId") != version_id:
            continue
        proofs = proof_file.get("proof") or []
        for proof in proofs if isinstance(proofs, list) else [proofs]:
            witness_id = proof.get("verificationMethod", "").split("#")[0]
            if witness_id not in weights:
                raise UnknownWitness(
                    f"Unknown witness: {witness_id}", version=version_id, actual=witness_id
                )
            if witness_id in approved:
                logger.debug(f"Ignoring repeated proof from witness {witness_id}")
                continue
            try:
                verifier.verify_proof({"versionId": version_id}, proof, version=version_id)
            except SignatureInvalid as err:
                logger.warning(f"Witness proof from {witness_id} rejected: {err}")
                continue
            approved[witness_id] = weights[witness_id]

    approved_weight = sum(approved.values())
    if approved_weight < witness.threshold:
        raise WitnessThresholdNotMet(
            f"Witness threshold not met for {version_id}.",
            version=version_id,
            expected=witness.threshold,
            actual=approved_weight,
        )
    logger.info(f"Witness threshold met for {version_id} ({approved_weight}/{witness.threshold})")
    return approved_weight


async def create_witness_proof(signer, version_id: str) -> dict:
    """Create a witness proof over a log versionId."""
    proof = {
        "type": settings.PROOF_TYPE,
        "cryptosuite": settings.PROOF_CRYPTOSUITE,
        "proofPurpose": "assertionMethod",
        "verificationMethod": signer.verification_method_id,
        "created": timestamp(),
    }
    signed = await signer.sign({"document": {"versionId": version_id}, "proof": proof})
    return proof | {"proofValue": signed["proofValue"]}
