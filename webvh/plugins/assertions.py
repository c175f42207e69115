"""Integrity, authorization and pre-rotation checks for DID log entries."""

from config import settings
from webvh.errors import (
    HashChainBroken,
    InvalidUpdateKey,
    PortabilityViolation,
    SCIDMismatch,
    SignatureInvalid,
    UnauthorizedKey,
)
from webvh.plugins.askar import AskarVerifier
from webvh.plugins.witness import verify_witness_proofs
from webvh.utilities import (
    derive_hash,
    derive_next_key_hash,
    did_key_to_multikey,
    replace_in_values,
    split_did,
)


def entry_without_proof(entry: dict) -> dict:
    """Return a shallow copy of a log entry without its proof."""
    return {key: value for key, value in entry.items() if key != "proof"}


def compute_entry_hash(entry: dict, previous_version_id: str) -> str:
    """Hash a log entry chained to the previous versionId.

    For the genesis entry the previous versionId is the SCID.
    """
    return derive_hash(entry_without_proof(entry) | {"versionId": previous_version_id})


def compute_version_id(entry: dict, version_number: int, previous_version_id: str) -> str:
    """Return the expected versionId of an entry."""
    return f"{version_number}-{compute_entry_hash(entry, previous_version_id)}"


def genesis_preimage(entry: dict, scid: str) -> dict:
    """Return the placeholder form of a genesis entry."""
    return replace_in_values(
        entry_without_proof(entry) | {"versionId": scid}, scid, settings.SCID_PLACEHOLDER
    )


def scid_is_from_hash(scid: str, log_entry_hash: str) -> bool:
    """Return True if the SCID was derived from the given hash."""
    return scid == log_entry_hash


def hash_chain_valid(computed_version_id: str, claimed_version_id: str) -> bool:
    """Return True if the recomputed versionId matches the claimed one."""
    return computed_version_id == claimed_version_id


def verify_genesis_hashes(entry: dict):
    """Check the entry hash and SCID derivation of a genesis entry."""
    scid = entry["parameters"].get("scid")
    computed = compute_version_id(entry, 1, scid)
    if not hash_chain_valid(computed, entry["versionId"]):
        raise HashChainBroken(
            "Genesis entry hash mismatch.",
            version=1,
            expected=computed,
            actual=entry["versionId"],
        )
    first_hash = derive_hash(genesis_preimage(entry, scid))
    if not scid_is_from_hash(scid, first_hash):
        raise SCIDMismatch(
            f"SCID '{scid}' not derived from log entry hash '{first_hash}'.",
            version=1,
            expected=first_hash,
            actual=scid,
        )
    doc_scid, _, _ = split_did(entry["state"]["id"])
    if doc_scid != scid:
        raise SCIDMismatch(
            "SCID not found in document id.", version=1, expected=scid, actual=doc_scid
        )


def verify_hash_chain(entry: dict, version_number: int, previous_version_id: str):
    """Check that an entry is chained to the previous version."""
    computed = compute_version_id(entry, version_number, previous_version_id)
    if not hash_chain_valid(computed, entry["versionId"]):
        raise HashChainBroken(
            f"Hash chain broken at version {version_number}.",
            version=version_number,
            expected=computed,
            actual=entry["versionId"],
        )


def new_keys_are_in_next_keys(update_keys, next_key_hashes, version=None):
    """Check that every update key was committed in the nextKeyHashes."""
    if not update_keys:
        raise InvalidUpdateKey(
            "Invalid update key: 'updateKeys' must be provided while pre-rotation is active.",
            version=version,
        )
    for update_key in update_keys:
        if derive_next_key_hash(update_key) not in (next_key_hashes or []):
            raise InvalidUpdateKey(
                f"Invalid update key {update_key}. Not found in nextKeyHashes.",
                version=version,
                expected=next_key_hashes,
                actual=update_key,
            )


def check_portability(previous_did: str, new_did: str, portable: bool, version=None):
    """Check that a DID only moves when portability is enabled."""
    if previous_did == new_did:
        return
    if not portable:
        raise PortabilityViolation(
            "Cannot move DID: portability is disabled.",
            version=version,
            expected=previous_did,
            actual=new_did,
        )
    previous_scid, _, _ = split_did(previous_did)
    new_scid, _, _ = split_did(new_did)
    if previous_scid != new_scid:
        raise PortabilityViolation(
            "Cannot move DID: SCID must be retained.",
            version=version,
            expected=previous_scid,
            actual=new_scid,
        )


def document_state_is_valid(
    entry: dict,
    update_keys,
    witness=None,
    verifier=None,
    skip_witness_verification=True,
    witness_proofs=None,
    version=None,
) -> bool:
    """Verify the proofs of a log entry against the authorized update keys.

    Witness proofs are only checked when ``skip_witness_verification`` is
    False, which callers do for the log tip.
    """
    verifier = verifier or AskarVerifier()
    proofs = entry.get("proof") or []
    if isinstance(proofs, dict):
        proofs = [proofs]
    if not proofs:
        raise SignatureInvalid("Missing log entry proof.", version=version)

    document = entry_without_proof(entry)
    for proof in proofs:
        method_id = proof.get("verificationMethod", "")
        try:
            multikey = did_key_to_multikey(method_id)
        except ValueError as err:
            raise UnauthorizedKey(str(err), version=version, actual=method_id)
        if multikey not in (update_keys or []):
            raise UnauthorizedKey(
                f"Update key not found: {method_id}",
                version=version,
                expected=update_keys,
                actual=multikey,
            )
        verifier.verify_proof(document, proof, version=version)

    if witness and not skip_witness_verification:
        verify_witness_proofs(entry, witness_proofs, witness, verifier)
    return True
