"""Resolve a DID document from its verifiable history log.

The log is replayed as a fold over :class:`ResolutionState`. Each step either
returns the next state or raises a :class:`WebVHError`; no step mutates the
log or the previous state.
"""

import logging
from functools import reduce

from pydantic import ValidationError

from config import settings
from webvh.errors import (
    DIDDeactivated,
    InvalidLogEntry,
    InvalidOptions,
    MissingNextKeyHashes,
    MissingUpdateKeys,
    NotFound,
    PortabilityViolation,
    ProtocolMismatch,
    SCIDMismatch,
    VersionSequenceError,
)
from webvh.models.did_log import LogEntry
from webvh.models.resolution import (
    DIDResult,
    ResolutionMeta,
    ResolutionOptions,
    ResolutionStage,
    ResolutionState,
)
from webvh.plugins.assertions import (
    check_portability,
    document_state_is_valid,
    new_keys_are_in_next_keys,
    verify_genesis_hashes,
    verify_hash_chain,
)
from webvh.plugins.witness import validate_witness_parameter, verify_witness_proofs
from webvh.utilities import clone, get_base_url, parse_timestamp

logger = logging.getLogger(__name__)


def load_log_entry(entry, version=None) -> LogEntry:
    """Validate the shape of a log entry."""
    if not isinstance(entry, dict):
        raise InvalidLogEntry("Log entry must be a JSON object.", version=version)
    try:
        return LogEntry.model_validate(entry)
    except ValidationError as err:
        raise InvalidLogEntry(f"Invalid log entry: {err}", version=version)


def _check_method(parameters: dict, version: int):
    method = parameters.get("method")
    if method != settings.WEBVH_METHOD:
        raise ProtocolMismatch(
            f"Unsupported method version {method}.",
            version=version,
            expected=settings.WEBVH_METHOD,
            actual=method,
        )


def _apply_genesis(entry: dict) -> tuple:
    parameters = entry["parameters"]
    _check_method(parameters, 1)
    if not parameters.get("scid"):
        raise SCIDMismatch("Missing scid in first log entry.", version=1)

    verify_genesis_hashes(entry)

    update_keys = parameters.get("updateKeys") or []
    if not update_keys:
        raise MissingUpdateKeys("First log entry must declare updateKeys.", version=1)
    witness = validate_witness_parameter(parameters.get("witness"))
    return update_keys, witness


def _apply_next(state: ResolutionState, entry: dict) -> tuple:
    meta = state.meta
    version = state.expected_version
    parameters = entry["parameters"]

    if "method" in parameters:
        _check_method(parameters, version)
    if "scid" in parameters and parameters["scid"] != meta.scid:
        raise InvalidLogEntry(
            "The scid parameter cannot change.", version=version, expected=meta.scid
        )
    if meta.deactivated and parameters.get("deactivated") is False:
        raise DIDDeactivated(f"DID {state.did} cannot be reactivated.", version=version)
    if parameters.get("portable") and not meta.portable:
        raise PortabilityViolation(
            "Portability can only be enabled in the first log entry.", version=version
        )
    check_portability(state.did, entry["state"]["id"], meta.portable, version=version)

    if meta.prerotation:
        if "nextKeyHashes" not in parameters:
            raise MissingNextKeyHashes(
                "Pre-rotation is active: nextKeyHashes must be provided.", version=version
            )
        new_keys_are_in_next_keys(
            parameters.get("updateKeys"), meta.nextKeyHashes, version=version
        )
        authorized_keys = parameters["updateKeys"]
    else:
        authorized_keys = meta.updateKeys

    witness = meta.witness
    if "witness" in parameters:
        witness = validate_witness_parameter(parameters["witness"])
    return authorized_keys, witness


def apply_log_entry(state: ResolutionState, entry, verifier=None) -> ResolutionState:
    """Verify one log entry against the current state and return the next state."""
    version = state.expected_version
    log_entry = load_log_entry(entry, version)
    if log_entry.version_number != version:
        raise VersionSequenceError(
            f"Unexpected version number in {log_entry.versionId}.",
            version=version,
            expected=version,
            actual=log_entry.version_number,
        )

    parameters = entry["parameters"]
    if state.stage == ResolutionStage.EXPECT_GENESIS:
        authorized_keys, witness = _apply_genesis(entry)
        document_state_is_valid(entry, authorized_keys, verifier=verifier, version=version)
        meta = ResolutionMeta(
            versionId=entry["versionId"],
            versionNumber=1,
            versionTime=entry["versionTime"],
            created=entry["versionTime"],
            updated=entry["versionTime"],
            scid=parameters["scid"],
            updateKeys=authorized_keys,
            nextKeyHashes=parameters.get("nextKeyHashes") or [],
            prerotation=bool(parameters.get("nextKeyHashes")),
            portable=bool(parameters.get("portable")),
            witness=witness,
            watchers=parameters.get("watchers"),
            deactivated=bool(parameters.get("deactivated")),
            ttl=parameters.get("ttl"),
        )
    else:
        authorized_keys, witness = _apply_next(state, entry)
        document_state_is_valid(entry, authorized_keys, verifier=verifier, version=version)
        verify_hash_chain(entry, version, state.meta.versionId)

        if parse_timestamp(entry["versionTime"]) < parse_timestamp(state.meta.updated):
            logger.warning(f"versionTime of {entry['versionId']} precedes the previous entry")

        previous = state.meta
        next_key_hashes = previous.nextKeyHashes
        if "nextKeyHashes" in parameters:
            next_key_hashes = parameters["nextKeyHashes"] or []
        update_keys = previous.updateKeys
        if "updateKeys" in parameters:
            update_keys = parameters["updateKeys"] or []
        meta = previous.model_copy(
            update={
                "versionId": entry["versionId"],
                "versionNumber": version,
                "versionTime": entry["versionTime"],
                "updated": entry["versionTime"],
                "previousLogEntryHash": previous.versionId,
                "updateKeys": update_keys,
                "nextKeyHashes": next_key_hashes,
                "prerotation": bool(next_key_hashes),
                "portable": bool(parameters.get("portable", previous.portable)),
                "witness": witness,
                "watchers": parameters.get("watchers", previous.watchers),
                "deactivated": previous.deactivated or bool(parameters.get("deactivated")),
                "ttl": parameters.get("ttl", previous.ttl),
            }
        )

    logger.debug(f"Applied log entry {entry['versionId']}")
    return ResolutionState(
        stage=ResolutionStage.EXPECT_NEXT,
        expected_version=version + 1,
        did=entry["state"]["id"],
        document=clone(entry["state"]),
        meta=meta,
    )


def replay_log(log, verifier=None) -> ResolutionState:
    """Verify every entry of a log and return the final state."""
    if not log:
        raise NotFound("Empty DID log.")
    state = reduce(
        lambda state, entry: apply_log_entry(state, entry, verifier), log, ResolutionState()
    )
    return state.model_copy(update={"stage": ResolutionStage.RESOLVED})


def with_default_services(document: dict, did: str) -> dict:
    """Return the resolved document with the implicit #files and #whois services."""
    document = clone(document)
    services = list(document.get("service") or [])
    service_ids = [service.get("id", "") for service in services if isinstance(service, dict)]
    base_url = get_base_url(did)
    if not any(service_id.endswith("#files") for service_id in service_ids):
        services.append({"id": "#files", "type": "relativeRef", "serviceEndpoint": base_url})
    if not any(service_id.endswith("#whois") for service_id in service_ids):
        services.append(
            {
                "id": "#whois",
                "type": "LinkedVerifiablePresentation",
                "serviceEndpoint": f"{base_url}whois.vp",
            }
        )
    document["service"] = services
    for verification_method in document.get("verificationMethod") or []:
        if isinstance(verification_method, dict):
            verification_method.pop("secretKeyMultibase", None)
    return document


def _entry_time(entry):
    try:
        return parse_timestamp(entry["versionTime"])
    except (KeyError, TypeError, AttributeError, ValueError):
        # Left for the next replay step to reject.
        return None


def _stop_matches(state: ResolutionState, options: ResolutionOptions, next_entry) -> bool:
    meta = state.meta
    if options.versionNumber is not None:
        return meta.versionNumber == options.versionNumber
    if options.versionId is not None:
        return meta.versionId == options.versionId
    if options.versionTime is not None:
        target = parse_timestamp(options.versionTime)
        if parse_timestamp(meta.versionTime) > target:
            return False
        if next_entry is None:
            return True
        next_time = _entry_time(next_entry)
        return next_time is not None and next_time > target
    if options.verificationMethod is not None:
        return any(
            isinstance(vm, dict) and vm.get("id") == options.verificationMethod
            for vm in state.document.get("verificationMethod") or []
        )
    return False


def load_resolution_options(options=None) -> ResolutionOptions:
    """Parse resolution options."""
    if not isinstance(options, ResolutionOptions):
        try:
            options = ResolutionOptions.model_validate(options or {})
        except ValidationError as err:
            raise InvalidOptions(f"Invalid resolution options: {err}")
    if options.verificationMethod is not None and options.version_filter:
        raise InvalidOptions("verificationMethod cannot be combined with a version filter.")
    return options


async def resolve_did_from_log(log, options=None, verifier=None, witness_source=None) -> DIDResult:
    """Resolve a DID document from a DID log.

    ``witness_source`` is an async callable returning the witness proof file
    for a DID; it is only awaited when the returned entry is the log tip and
    a witness rule is in force.
    """
    options = load_resolution_options(options)
    if not log:
        raise NotFound("Empty DID log.")

    state = ResolutionState()
    resolved = None
    last_index = len(log) - 1
    for index, entry in enumerate(log):
        state = apply_log_entry(state, entry, verifier)
        if index == 0 and options.scid and state.meta.scid != options.scid:
            raise SCIDMismatch(
                "SCID does not match the requested SCID.",
                version=1,
                expected=options.scid,
                actual=state.meta.scid,
            )
        next_entry = None if index == last_index else log[index + 1]
        if options.stop_requested and _stop_matches(state, options, next_entry):
            resolved = (state, index == last_index)
            break

    if resolved is None:
        if options.stop_requested:
            raise NotFound("No log entry matches the resolution options.")
        resolved = (state, True)

    state, is_tip = resolved
    state = state.model_copy(update={"stage": ResolutionStage.RESOLVED})
    if is_tip and state.meta.witness and not options.skipWitnessVerification:
        proof_files = await witness_source(state.did) if witness_source else []
        verify_witness_proofs(
            {"versionId": state.meta.versionId}, proof_files, state.meta.witness, verifier
        )

    logger.info(f"Resolved {state.did} at version {state.meta.versionId}")
    return DIDResult(
        did=state.did,
        doc=with_default_services(state.document, state.did),
        meta=state.meta,
    )
