import copy
import json

import pytest

from webvh.plugins import DidWebVH
from tests.fixtures import TEST_DID_IDENTIFIER, TEST_DID_NAMESPACE, TEST_SERVICE, TEST_UPDATE_TIME
from tests.mock_agents import ControllerAgent, WitnessAgent

webvh = DidWebVH()
DID_URL = f"/{TEST_DID_NAMESPACE}/{TEST_DID_IDENTIFIER}"


def test_server_status(test_client):
    response = test_client.get("/api/server/status")
    assert response.status_code == 200
    assert response.json().get("status") == "ok"


def test_unknown_did(test_client):
    assert test_client.get(f"{DID_URL}/did.jsonl").status_code == 404
    assert test_client.get(f"{DID_URL}/did-witness.json").status_code == 404
    assert test_client.get(f"{DID_URL}/did.json").status_code == 404
    assert test_client.get("/.well-known/did.jsonl").status_code == 404


@pytest.mark.asyncio
async def test_publish_and_resolve(test_client, controller: ControllerAgent):
    created = await controller.create()
    response = test_client.post(DID_URL, json={"logEntry": created.log[0]})
    assert response.status_code == 201

    response = test_client.get(f"{DID_URL}/did.jsonl")
    assert response.status_code == 200
    lines = [line for line in response.text.splitlines() if line.strip()]
    assert [json.loads(line) for line in lines] == created.log

    response = test_client.get(f"{DID_URL}/did.json")
    assert response.status_code == 200
    assert response.json().get("id") == created.did

    updated = await webvh.update_did(
        created.log, controller.update_signer, services=[TEST_SERVICE], updated=TEST_UPDATE_TIME
    )
    response = test_client.post(DID_URL, json={"logEntry": updated.log[1]})
    assert response.status_code == 200

    response = test_client.get(f"{DID_URL}/did.json")
    assert response.json().get("service")[0] == TEST_SERVICE

    response = test_client.get(f"{DID_URL}/did.json?versionNumber=1")
    assert response.status_code == 200
    assert response.json().get("service")[0]["id"] == "#files"

    response = test_client.get(f"{DID_URL}/did.json?versionNumber=7")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_publish_rejected_entries(test_client, controller: ControllerAgent):
    created = await controller.create()

    tampered = copy.deepcopy(created.log[0])
    tampered["state"]["alsoKnownAs"] = ["https://attacker.example"]
    response = test_client.post(DID_URL, json={"logEntry": tampered})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "HashChainBroken"

    response = test_client.post(
        f"/{TEST_DID_NAMESPACE}/02", json={"logEntry": created.log[0]}
    )
    assert response.status_code == 400

    response = test_client.post("/api/01", json={"logEntry": created.log[0]})
    assert response.status_code == 400

    response = test_client.post(DID_URL, json={"logEntry": created.log[0]})
    assert response.status_code == 201
    response = test_client.post(DID_URL, json={"logEntry": created.log[0]})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "VersionSequenceError"


@pytest.mark.asyncio
async def test_publish_witnessed_entry(
    test_client, controller: ControllerAgent, witness: WitnessAgent
):
    created = await controller.create(
        witness={"threshold": 1, "witnesses": [{"id": witness.id}]}
    )

    response = test_client.post(DID_URL, json={"logEntry": created.log[0]})
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "WitnessThresholdNotMet"

    witness_signature = witness.create_log_entry_proof(created.log[0])
    response = test_client.post(
        DID_URL,
        json={"logEntry": created.log[0], "witnessSignature": witness_signature},
    )
    assert response.status_code == 201

    response = test_client.get(f"{DID_URL}/did-witness.json")
    assert response.status_code == 200
    assert response.json() == [witness_signature]

    response = test_client.get(f"{DID_URL}/did.json")
    assert response.status_code == 200
    assert response.json().get("id") == created.did
