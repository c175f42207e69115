import copy

import pytest

from config import settings
from webvh.errors import (
    DIDDeactivated,
    HashChainBroken,
    MissingUpdateKeys,
    PortabilityViolation,
    SignatureInvalid,
    UnauthorizedKey,
    WebVHError,
)
from webvh.plugins import AskarSigner, DidWebVH
from webvh.plugins.assertions import compute_version_id
from webvh.plugins.resolver import resolve_did_from_log
from webvh.utilities import build_did, rebase_did_references, split_did
from tests.fixtures import (
    TEST_DOMAIN,
    TEST_NEW_DOMAIN,
    TEST_SECOND_UPDATE_TIME,
    TEST_SERVICE,
    TEST_THIRD_UPDATE_TIME,
    TEST_UNKNOWN_SEED,
    TEST_UPDATE_TIME,
    TEST_VERSION_TIME,
)
from tests.mock_agents import ControllerAgent

webvh = DidWebVH()


async def extend_log(log, signer, parameters, state, version_time=TEST_SECOND_UPDATE_TIME):
    """Sign an arbitrary next entry for a log."""
    previous_version_id = log[-1]["versionId"]
    entry = {
        "versionId": previous_version_id,
        "versionTime": version_time,
        "parameters": parameters,
        "state": state,
    }
    entry["versionId"] = compute_version_id(entry, len(log) + 1, previous_version_id)
    return [*log, await webvh.sign_log_entry(entry, signer)]


@pytest.mark.asyncio
async def test_create_did(controller: ControllerAgent):
    result = await controller.create()
    did = result.did
    scid, domain, paths = split_did(did)

    assert did.startswith("did:webvh:Qm")
    assert domain == TEST_DOMAIN
    assert paths == controller.paths
    assert result.meta.scid == scid
    assert result.meta.versionNumber == 1
    assert result.meta.versionId.startswith("1-Qm")
    assert result.meta.created == TEST_VERSION_TIME
    assert result.meta.updateKeys == [controller.update_key]
    assert not result.meta.deactivated
    assert len(result.log) == 1

    entry = result.log[0]
    assert entry["parameters"]["method"] == settings.WEBVH_METHOD
    assert entry["parameters"]["scid"] == scid
    assert entry["parameters"]["deactivated"] is False
    assert entry["proof"][0]["verificationMethod"] == controller.update_signer.verification_method_id

    document = result.doc
    assert document["id"] == did
    assert document["controller"] == did
    vm_id = f"{did}#{controller.signing_signer.multikey[-8:]}"
    assert document["verificationMethod"][0]["id"] == vm_id
    assert document["verificationMethod"][0]["controller"] == did
    assert "secretKeyMultibase" not in document["verificationMethod"][0]
    assert document["authentication"] == [vm_id]
    assert document["assertionMethod"] == [vm_id]
    assert settings.SCID_PLACEHOLDER not in str(entry)


@pytest.mark.asyncio
async def test_scid_is_deterministic(controller: ControllerAgent):
    first = await controller.create()
    second = await controller.create()
    assert first.did == second.did
    assert first.log == second.log

    later = await controller.create(created=TEST_UPDATE_TIME)
    assert later.did != first.did


@pytest.mark.asyncio
async def test_create_requires_update_keys(controller: ControllerAgent):
    with pytest.raises(MissingUpdateKeys):
        await webvh.create_did(TEST_DOMAIN, controller.update_signer, [])


@pytest.mark.asyncio
async def test_create_signed_by_unknown_key(controller: ControllerAgent):
    with pytest.raises(UnauthorizedKey):
        await webvh.create_did(
            TEST_DOMAIN,
            AskarSigner.from_seed(TEST_UNKNOWN_SEED),
            [controller.update_key],
            controller.verification_methods(),
        )


@pytest.mark.asyncio
async def test_resolve_round_trip(controller: ControllerAgent):
    created = await controller.create(services=[TEST_SERVICE])
    resolved = await resolve_did_from_log(created.log)

    assert resolved.did == created.did
    assert resolved.meta == created.meta
    assert {key: value for key, value in resolved.doc.items() if key != "service"} == {
        key: value for key, value in created.doc.items() if key != "service"
    }
    assert resolved.doc["service"][0] == TEST_SERVICE


@pytest.mark.asyncio
async def test_update_did(controller: ControllerAgent):
    created = await controller.create()
    updated = await webvh.update_did(
        created.log, controller.update_signer, services=[TEST_SERVICE], updated=TEST_UPDATE_TIME
    )

    assert updated.did == created.did
    assert len(updated.log) == 2
    assert len(created.log) == 1
    assert updated.meta.versionNumber == 2
    assert updated.meta.versionId.startswith("2-")
    assert updated.meta.previousLogEntryHash == created.meta.versionId
    assert updated.meta.created == TEST_VERSION_TIME
    assert updated.meta.updated == TEST_UPDATE_TIME
    assert updated.doc["service"] == [TEST_SERVICE]
    assert updated.doc["verificationMethod"] == created.doc["verificationMethod"]
    assert updated.doc["authentication"] == created.doc["authentication"]
    assert updated.log[1]["parameters"] == {}

    resolved = await resolve_did_from_log(updated.log)
    assert resolved.meta.versionId == updated.meta.versionId
    assert resolved.doc["service"][0] == TEST_SERVICE


@pytest.mark.asyncio
async def test_rotate_update_key(controller: ControllerAgent):
    created = await controller.create()
    rotated = await webvh.update_did(
        created.log,
        controller.update_signer,
        update_keys=[controller.next_key],
        updated=TEST_UPDATE_TIME,
    )
    assert rotated.meta.updateKeys == [controller.next_key]

    with pytest.raises(UnauthorizedKey):
        await webvh.update_did(rotated.log, controller.update_signer, services=[TEST_SERVICE])

    updated = await webvh.update_did(
        rotated.log, controller.next_signer, services=[TEST_SERVICE]
    )
    assert updated.meta.versionNumber == 3


@pytest.mark.asyncio
async def test_update_with_unauthorized_key(controller: ControllerAgent):
    created = await controller.create()
    with pytest.raises(UnauthorizedKey):
        await webvh.update_did(
            created.log, AskarSigner.from_seed(TEST_UNKNOWN_SEED), services=[TEST_SERVICE]
        )


@pytest.mark.asyncio
async def test_tampered_log_is_rejected(controller: ControllerAgent):
    created = await controller.create()
    updated = await webvh.update_did(
        created.log, controller.update_signer, services=[TEST_SERVICE], updated=TEST_UPDATE_TIME
    )

    tampered = copy.deepcopy(updated.log)
    tampered[0]["state"]["alsoKnownAs"] = ["https://attacker.example"]
    with pytest.raises(HashChainBroken):
        await resolve_did_from_log(tampered)

    tampered = copy.deepcopy(updated.log)
    tampered[1]["state"]["service"] = []
    with pytest.raises(SignatureInvalid):
        await resolve_did_from_log(tampered)

    tampered = copy.deepcopy(updated.log)
    tampered[1]["versionTime"] = TEST_SECOND_UPDATE_TIME
    with pytest.raises(WebVHError):
        await resolve_did_from_log(tampered)

    tampered = copy.deepcopy(updated.log)
    tampered[1]["proof"][0]["proofValue"] = created.log[0]["proof"][0]["proofValue"]
    with pytest.raises(SignatureInvalid):
        await resolve_did_from_log(tampered)

    tampered = copy.deepcopy(updated.log)
    del tampered[1]["proof"]
    with pytest.raises(SignatureInvalid):
        await resolve_did_from_log(tampered)


@pytest.mark.asyncio
async def test_move_requires_portability(controller: ControllerAgent):
    created = await controller.create()
    with pytest.raises(PortabilityViolation):
        await webvh.update_did(created.log, controller.update_signer, domain=TEST_NEW_DOMAIN)


@pytest.mark.asyncio
async def test_move_portable_did(controller: ControllerAgent):
    created = await controller.create(portable=True)
    moved = await webvh.update_did(
        created.log, controller.update_signer, domain=TEST_NEW_DOMAIN, updated=TEST_UPDATE_TIME
    )

    scid, domain, paths = split_did(moved.did)
    assert scid == created.meta.scid
    assert domain == TEST_NEW_DOMAIN
    assert paths == controller.paths
    assert moved.meta.portable
    assert created.did in moved.doc["alsoKnownAs"]
    assert moved.doc["controller"] == moved.did
    assert all(vm["id"].startswith(moved.did) for vm in moved.doc["verificationMethod"])
    assert all(ref.startswith(moved.did) for ref in moved.doc["authentication"])

    resolved = await resolve_did_from_log(moved.log)
    assert resolved.did == moved.did


@pytest.mark.asyncio
async def test_portability_cannot_be_enabled_later(controller: ControllerAgent):
    created = await controller.create()
    log = await extend_log(
        created.log, controller.update_signer, {"portable": True}, created.doc
    )
    with pytest.raises(PortabilityViolation):
        await resolve_did_from_log(log)


@pytest.mark.asyncio
async def test_resolver_rejects_move_of_non_portable_did(controller: ControllerAgent):
    created = await controller.create()
    scid, _, paths = split_did(created.did)
    moved_state = rebase_did_references(
        created.doc, created.did, build_did(scid, TEST_NEW_DOMAIN, paths)
    )
    log = await extend_log(created.log, controller.update_signer, {}, moved_state)
    with pytest.raises(PortabilityViolation):
        await resolve_did_from_log(log)


@pytest.mark.asyncio
async def test_move_after_portability_disabled(controller: ControllerAgent):
    created = await controller.create(portable=True)
    log = await extend_log(
        created.log,
        controller.update_signer,
        {"portable": False},
        created.doc,
        version_time=TEST_UPDATE_TIME,
    )
    resolved = await resolve_did_from_log(log)
    assert not resolved.meta.portable

    with pytest.raises(PortabilityViolation):
        await webvh.update_did(log, controller.update_signer, domain=TEST_NEW_DOMAIN)

    scid, _, paths = split_did(created.did)
    moved_state = rebase_did_references(
        created.doc, created.did, build_did(scid, TEST_NEW_DOMAIN, paths)
    )
    log = await extend_log(log, controller.update_signer, {}, moved_state)
    with pytest.raises(PortabilityViolation):
        await resolve_did_from_log(log)


@pytest.mark.asyncio
async def test_moves_keep_also_known_as_history(controller: ControllerAgent):
    created = await controller.create(portable=True)
    first_did = created.did
    nested = await webvh.update_did(
        created.log,
        controller.update_signer,
        paths=[*controller.paths, "a"],
        updated=TEST_UPDATE_TIME,
    )
    nested_did = nested.did
    assert nested.doc["alsoKnownAs"] == [first_did]

    returned = await webvh.update_did(
        nested.log,
        controller.update_signer,
        paths=controller.paths,
        updated=TEST_SECOND_UPDATE_TIME,
    )
    assert returned.did == first_did
    assert returned.doc["alsoKnownAs"] == [nested_did]

    moved = await webvh.update_did(
        returned.log,
        controller.update_signer,
        domain=TEST_NEW_DOMAIN,
        updated=TEST_THIRD_UPDATE_TIME,
    )
    assert moved.doc["alsoKnownAs"] == [nested_did, first_did]
    assert moved.did not in moved.doc["alsoKnownAs"]
    assert all(vm["controller"] == moved.did for vm in moved.doc["verificationMethod"])

    resolved = await resolve_did_from_log(moved.log)
    assert resolved.doc["alsoKnownAs"] == [nested_did, first_did]


@pytest.mark.asyncio
async def test_deactivate_did(controller: ControllerAgent):
    created = await controller.create(services=[TEST_SERVICE])
    deactivated = await webvh.deactivate_did(
        created.log, controller.update_signer, updated=TEST_UPDATE_TIME
    )

    assert deactivated.meta.deactivated
    assert deactivated.log[1]["parameters"] == {"deactivated": True}
    assert deactivated.doc["id"] == created.did
    assert deactivated.doc["verificationMethod"] == []
    assert deactivated.doc["authentication"] == []
    assert deactivated.doc["assertionMethod"] == []
    assert deactivated.doc["keyAgreement"] == []

    resolved = await resolve_did_from_log(deactivated.log)
    assert resolved.meta.deactivated
    assert resolved.doc["verificationMethod"] == []

    with pytest.raises(DIDDeactivated):
        await webvh.update_did(deactivated.log, controller.update_signer, services=[])
    with pytest.raises(DIDDeactivated):
        await webvh.deactivate_did(deactivated.log, controller.update_signer)


@pytest.mark.asyncio
async def test_reactivation_is_rejected(controller: ControllerAgent):
    created = await controller.create()
    deactivated = await webvh.deactivate_did(
        created.log, controller.update_signer, updated=TEST_UPDATE_TIME
    )
    log = await extend_log(
        deactivated.log, controller.update_signer, {"deactivated": False}, created.doc
    )
    with pytest.raises(DIDDeactivated):
        await resolve_did_from_log(log)
