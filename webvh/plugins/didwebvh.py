"""DID Web Verifiable History (DID WebVH) plugin."""

import logging

from config import settings
from webvh.errors import DIDDeactivated, MissingNextKeyHashes, MissingUpdateKeys, NotFound
from webvh.models.did_document import VERIFICATION_RELATIONSHIPS
from webvh.models.resolution import DIDResult, ResolutionState
from webvh.plugins.askar import AskarVerifier
from webvh.plugins.assertions import (
    check_portability,
    compute_entry_hash,
    compute_version_id,
    new_keys_are_in_next_keys,
)
from webvh.plugins.builder import DocumentBuilder
from webvh.plugins.fetcher import fetch_log, fetch_witness_proofs, resolve_resource
from webvh.plugins.resolver import apply_log_entry, replay_log, resolve_did_from_log
from webvh.plugins.witness import validate_witness_parameter
from webvh.utilities import (
    build_did,
    clone,
    create_scid,
    derive_hash,
    format_timestamp,
    placeholder_id,
    rebase_did_references,
    split_did,
    unique,
)

logger = logging.getLogger(__name__)


class DidWebVH:
    """DID Web Verifiable History (DID WebVH) plugin."""

    def __init__(self, verifier=None, witness_source=None):
        """Initialize the DID WebVH plugin."""
        self.scid_placeholder = settings.SCID_PLACEHOLDER
        self.method_version = settings.WEBVH_METHOD
        self.verifier = verifier or AskarVerifier()
        self.witness_source = witness_source

    def parameters(
        self,
        update_keys,
        portable=False,
        next_key_hashes=None,
        witness=None,
        watchers=None,
    ):
        """Return the parameters of a first log entry."""
        parameters = {
            "method": self.method_version,
            "scid": self.scid_placeholder,
            "updateKeys": list(update_keys),
            "portable": portable,
            "nextKeyHashes": list(next_key_hashes or []),
        }
        if witness:
            parameters["witness"] = witness.model_dump()
        if watchers:
            parameters["watchers"] = list(watchers)
        parameters["deactivated"] = False
        return parameters

    def proof_options(self, signer, created):
        """Return the proof options for a log entry."""
        return {
            "type": settings.PROOF_TYPE,
            "cryptosuite": settings.PROOF_CRYPTOSUITE,
            "proofPurpose": settings.PROOF_PURPOSE,
            "verificationMethod": signer.verification_method_id,
            "created": created,
        }

    async def sign_log_entry(self, entry, signer):
        """Sign a log entry and attach the proof."""
        options = self.proof_options(signer, entry["versionTime"])
        signed = await signer.sign({"document": entry, "proof": options})
        return entry | {"proof": [options | {"proofValue": signed["proofValue"]}]}

    def _check_prerotation(self, meta, update_keys, next_key_hashes, version):
        if not meta.prerotation:
            return
        if next_key_hashes is None:
            raise MissingNextKeyHashes(
                "Pre-rotation is active: next_key_hashes must be provided.", version=version
            )
        new_keys_are_in_next_keys(update_keys, meta.nextKeyHashes, version=version)

    async def _extend(self, log, state: ResolutionState, signer, parameters, document, updated):
        version = state.expected_version
        entry = {
            "versionId": state.meta.versionId,
            "versionTime": format_timestamp(updated),
            "parameters": parameters,
            "state": document,
        }
        entry["versionId"] = compute_version_id(entry, version, state.meta.versionId)
        entry = await self.sign_log_entry(entry, signer)
        new_state = apply_log_entry(state, entry, self.verifier)
        return DIDResult(
            did=new_state.did,
            doc=new_state.document,
            meta=new_state.meta,
            log=[*clone(log), entry],
        )

    async def create_did(
        self,
        domain,
        signer,
        update_keys,
        verification_methods=None,
        paths=None,
        portable=False,
        next_key_hashes=None,
        witness=None,
        watchers=None,
        also_known_as=None,
        context=None,
        controller=None,
        services=None,
        authentication=None,
        assertion_method=None,
        key_agreement=None,
        created=None,
    ) -> DIDResult:
        """Create a DID and its first log entry."""
        if not update_keys:
            raise MissingUpdateKeys("At least one update key is required.", version=1)
        witness = validate_witness_parameter(witness)
        version_time = format_timestamp(created)

        builder = DocumentBuilder(
            verification_methods=verification_methods,
            context=context,
            controller=controller,
            also_known_as=also_known_as,
            services=services,
            relationships={
                "authentication": authentication,
                "assertionMethod": assertion_method,
                "keyAgreement": key_agreement,
            },
        )
        parameters = self.parameters(update_keys, portable, next_key_hashes, witness, watchers)
        preliminary_entry = {
            "versionId": self.scid_placeholder,
            "versionTime": version_time,
            "parameters": parameters,
            "state": builder.build(placeholder_id(domain, paths)),
        }
        scid = create_scid(derive_hash(preliminary_entry))
        did = build_did(scid, domain, paths)

        entry = {
            "versionId": scid,
            "versionTime": version_time,
            "parameters": parameters | {"scid": scid},
            "state": builder.build(did),
        }
        entry["versionId"] = f"1-{compute_entry_hash(entry, scid)}"
        entry = await self.sign_log_entry(entry, signer)

        state = apply_log_entry(ResolutionState(), entry, self.verifier)
        logger.info(f"Created {did}")
        return DIDResult(did=did, doc=state.document, meta=state.meta, log=[entry])

    def _carried_document(self, document, did, new_did, **changes):
        """Build the next document, keeping the fields that are not supplied."""
        current = rebase_did_references(clone(document), did, new_did)

        verification_methods = changes["verification_methods"]
        relationships = {
            "authentication": changes["authentication"],
            "assertionMethod": changes["assertion_method"],
            "keyAgreement": changes["key_agreement"],
        }
        if verification_methods is None:
            verification_methods = current.get("verificationMethod") or []
            for name in VERIFICATION_RELATIONSHIPS:
                if relationships.get(name) is None:
                    relationships[name] = current.get(name) or []

        controller = changes["controller"]
        if controller is None:
            controller = current.get("controller")
            controller = [controller] if isinstance(controller, str) else controller or []
            controller = [value for value in controller if value != new_did]

        also_known_as = changes["also_known_as"]
        if also_known_as is None:
            also_known_as = current.get("alsoKnownAs")
        if did != new_did:
            also_known_as = unique([*(also_known_as or []), did])
        if also_known_as:
            also_known_as = [alias for alias in also_known_as if alias != new_did] or None

        context = changes["context"]
        if context is None:
            context = current.get("@context")
        services = changes["services"]
        if services is None:
            services = current.get("service")

        builder = DocumentBuilder(
            verification_methods=verification_methods,
            context=context,
            controller=controller,
            also_known_as=also_known_as,
            services=services,
            relationships=relationships,
            extra=current,
        )
        return builder.build(new_did)

    async def update_did(
        self,
        log,
        signer,
        update_keys=None,
        verification_methods=None,
        services=None,
        context=None,
        controller=None,
        also_known_as=None,
        next_key_hashes=None,
        witness=None,
        watchers=None,
        domain=None,
        paths=None,
        authentication=None,
        assertion_method=None,
        key_agreement=None,
        updated=None,
    ) -> DIDResult:
        """Append an update entry to a DID log."""
        state = replay_log(log, self.verifier)
        meta = state.meta
        version = state.expected_version
        if meta.deactivated:
            raise DIDDeactivated(f"DID {state.did} is deactivated.", version=version)
        self._check_prerotation(meta, update_keys, next_key_hashes, version)

        parameters = {}
        if update_keys is not None:
            if not update_keys:
                raise MissingUpdateKeys("Update keys cannot be emptied.", version=version)
            parameters["updateKeys"] = list(update_keys)
        if next_key_hashes is not None:
            parameters["nextKeyHashes"] = list(next_key_hashes)
        if witness is not None:
            witness = validate_witness_parameter(witness)
            parameters["witness"] = witness.model_dump() if witness else {}
        if watchers is not None:
            parameters["watchers"] = list(watchers)

        scid, current_domain, current_paths = split_did(state.did)
        new_did = build_did(
            scid,
            domain or current_domain,
            current_paths if paths is None else paths,
        )
        check_portability(state.did, new_did, meta.portable, version=version)

        document = self._carried_document(
            state.document,
            state.did,
            new_did,
            verification_methods=verification_methods,
            services=services,
            context=context,
            controller=controller,
            also_known_as=also_known_as,
            authentication=authentication,
            assertion_method=assertion_method,
            key_agreement=key_agreement,
        )
        result = await self._extend(log, state, signer, parameters, document, updated)
        logger.info(f"Updated {result.did} to {result.meta.versionId}")
        return result

    async def deactivate_did(
        self,
        log,
        signer,
        update_keys=None,
        next_key_hashes=None,
        updated=None,
    ) -> DIDResult:
        """Append a deactivation entry to a DID log."""
        state = replay_log(log, self.verifier)
        meta = state.meta
        version = state.expected_version
        if meta.deactivated:
            raise DIDDeactivated(f"DID {state.did} is already deactivated.", version=version)
        self._check_prerotation(meta, update_keys, next_key_hashes, version)

        parameters = {"deactivated": True}
        if update_keys is not None:
            parameters["updateKeys"] = list(update_keys)
        if next_key_hashes is not None:
            parameters["nextKeyHashes"] = list(next_key_hashes)

        document = clone(state.document)
        document["verificationMethod"] = []
        for name in VERIFICATION_RELATIONSHIPS:
            document[name] = []
        result = await self._extend(log, state, signer, parameters, document, updated)
        logger.info(f"Deactivated {result.did}")
        return result

    async def resolve_did_from_log(self, log, options=None) -> DIDResult:
        """Resolve a DID document from a DID log."""
        return await resolve_did_from_log(
            log, options, verifier=self.verifier, witness_source=self.witness_source
        )

    async def resolve_did(self, did, options=None) -> DIDResult:
        """Fetch the log of a DID and resolve it."""
        log = await fetch_log(did)
        if not log:
            raise NotFound(f"No DID log found for {did}.")
        return await resolve_did_from_log(
            log,
            options,
            verifier=self.verifier,
            witness_source=self.witness_source or fetch_witness_proofs,
        )

    async def resolve_resource(self, did, file) -> dict:
        """Resolve a DID and fetch a file through its #files or #whois service."""
        resolved = await self.resolve_did(did)
        return await resolve_resource(resolved.did, file, resolved.doc)
