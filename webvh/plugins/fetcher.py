"""Fetch DID logs, witness proofs and DID relative resources over HTTPS."""

import json
import logging

import requests
from fastapi.concurrency import run_in_threadpool

from config import settings
from webvh.errors import NotFound, WebVHError
from webvh.utilities import did_to_https, get_base_url, split_did

logger = logging.getLogger(__name__)

WHOIS_FILE = "whois.vp"


def _file_url(did: str, name: str) -> str:
    _, _, paths = split_did(did)
    if paths:
        return f"{did_to_https(did)}/{name}"
    return f"{did_to_https(did)}/.well-known/{name}"


def log_url(did: str) -> str:
    """Return the url of the did.jsonl file for a DID."""
    return _file_url(did, "did.jsonl")


def witness_url(did: str) -> str:
    """Return the url of the did-witness.json file for a DID."""
    return _file_url(did, "did-witness.json")


def _service_endpoint(document, did: str, service_id: str):
    for service in (document or {}).get("service") or []:
        if not isinstance(service, dict):
            continue
        if service.get("id") in (service_id, f"{did}{service_id}"):
            return service.get("serviceEndpoint")
    return None


def resource_url(did: str, file: str, document=None) -> str:
    """Return the url of a DID relative file, or of the whois presentation."""
    if file == "whois":
        endpoint = _service_endpoint(document, did, "#whois")
        return endpoint or f"{get_base_url(did)}{WHOIS_FILE}"
    endpoint = _service_endpoint(document, did, "#files") or get_base_url(did)
    return f"{endpoint.rstrip('/')}/{file.lstrip('/')}"


def parse_log(content: str) -> list:
    """Parse a JSON Lines DID log, ignoring blank lines."""
    return [json.loads(line) for line in content.splitlines() if line.strip()]


async def _get(url: str):
    return await run_in_threadpool(requests.get, url, timeout=settings.FETCH_TIMEOUT)


async def fetch_log(did: str) -> list:
    """Fetch the DID log, an empty list means the DID was not found."""
    url = log_url(did)
    logger.info(f"Fetching DID log {url}")
    response = await _get(url)
    if not response.ok:
        logger.warning(f"Unable to fetch {url}: {response.status_code}")
        return []
    return parse_log(response.text)


async def fetch_witness_proofs(did: str) -> list:
    """Fetch the witness proof file of a DID."""
    url = witness_url(did)
    response = await _get(url)
    if not response.ok:
        logger.warning(f"Unable to fetch {url}: {response.status_code}")
        return []
    return response.json()


async def resolve_resource(did: str, file: str, document=None) -> dict:
    """Fetch a file through the #files service of a DID, or its #whois presentation."""
    url = resource_url(did, file, document)
    logger.info(f"Fetching resource {url}")
    response = await _get(url)
    if response.status_code == 404:
        raise NotFound(f"Resource {file} not found for {did}.")
    if not response.ok:
        raise WebVHError(f"Unable to fetch {url}.", actual=response.status_code)
    return {
        "content": response.text,
        "contentType": response.headers.get("content-type"),
    }
