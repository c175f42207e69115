"""DID log hosting and resolution routes."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse, PlainTextResponse

from config import settings
from webvh.dependencies import get_storage, get_webvh
from webvh.errors import NotFound, StorageError, WebVHError
from webvh.models.web_schemas import NewLogEntry
from webvh.plugins import DidWebVH, LogStorage
from webvh.plugins.resolver import resolve_did_from_log
from webvh.utilities import split_did

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Resolvers"])

WELL_KNOWN = ".well-known"


def http_error(err: WebVHError) -> HTTPException:
    """Map a log error to an HTTP error."""
    status_code = 404 if isinstance(err, NotFound) else 400
    return HTTPException(status_code=status_code, detail=err.details())


def _log_response(storage: LogStorage, did_path: str):
    log = storage.read_log(did_path)
    if not log:
        raise HTTPException(status_code=404, detail="Not Found")
    with open(storage.log_path(did_path), "r", encoding="utf-8") as log_file:
        content = log_file.read()
    return PlainTextResponse(content, media_type="text/jsonl")


def _witness_response(storage: LogStorage, did_path: str):
    proof_files = storage.read_witness_file(did_path)
    if not proof_files:
        raise HTTPException(status_code=404, detail="Not Found")
    return JSONResponse(status_code=200, content=proof_files)


async def _resolve_stored(storage: LogStorage, webvh: DidWebVH, did_path: str, options: dict):
    log = storage.read_log(did_path)

    async def witness_source(did):
        return storage.read_witness_file(did_path)

    try:
        result = await resolve_did_from_log(
            log, options, verifier=webvh.verifier, witness_source=witness_source
        )
    except WebVHError as err:
        raise http_error(err)
    return JSONResponse(status_code=200, content=result.doc)


@router.get("/.well-known/did.jsonl")
async def read_root_did_log(storage: LogStorage = Depends(get_storage)):
    """Return the log of the root DID."""
    return _log_response(storage, WELL_KNOWN)


@router.get("/.well-known/did-witness.json")
async def read_root_witness_file(storage: LogStorage = Depends(get_storage)):
    """Return the witness proofs of the root DID."""
    return _witness_response(storage, WELL_KNOWN)


@router.get("/{namespace}/{alias}/did.jsonl")
async def read_did_log(namespace: str, alias: str, storage: LogStorage = Depends(get_storage)):
    """Return a DID log."""
    return _log_response(storage, f"{namespace}/{alias}")


@router.get("/{namespace}/{alias}/did-witness.json")
async def read_witness_file(
    namespace: str, alias: str, storage: LogStorage = Depends(get_storage)
):
    """Return the witness proofs of a DID."""
    return _witness_response(storage, f"{namespace}/{alias}")


@router.get("/{namespace}/{alias}/did.json")
async def read_did(
    namespace: str,
    alias: str,
    versionId: str = Query(None),
    versionTime: str = Query(None),
    versionNumber: int = Query(None),
    storage: LogStorage = Depends(get_storage),
    webvh: DidWebVH = Depends(get_webvh),
):
    """Resolve a DID document from its stored log."""
    options = {
        "versionId": versionId,
        "versionTime": versionTime,
        "versionNumber": versionNumber,
    }
    options = {key: value for key, value in options.items() if value is not None}
    return await _resolve_stored(storage, webvh, f"{namespace}/{alias}", options)


@router.post("/{namespace}/{alias}")
async def submit_log_entry(
    namespace: str,
    alias: str,
    request_body: NewLogEntry,
    storage: LogStorage = Depends(get_storage),
    webvh: DidWebVH = Depends(get_webvh),
):
    """Verify a new log entry against the stored log and append it."""
    if namespace in settings.RESERVED_NAMESPACES:
        raise HTTPException(status_code=400, detail=f"Namespace '{namespace}' is reserved")

    did_path = f"{namespace}/{alias}"
    log = storage.read_log(did_path)
    new_log = [*log, request_body.logEntry]

    proof_files = storage.read_witness_file(did_path)
    if request_body.witnessSignature:
        proof_files.append(request_body.witnessSignature.model_dump())

    async def witness_source(did):
        return proof_files

    try:
        result = await resolve_did_from_log(
            new_log, verifier=webvh.verifier, witness_source=witness_source
        )
    except WebVHError as err:
        logger.warning(f"Rejected log entry for {did_path}: {err}")
        raise http_error(err)

    _, domain, paths = split_did(result.did)
    if domain != settings.DOMAIN or paths != [namespace, alias]:
        raise HTTPException(status_code=400, detail="DID location does not match the request path.")

    try:
        storage.append_log(did_path, new_log)
    except StorageError as err:
        raise HTTPException(status_code=409, detail=err.details())
    if request_body.witnessSignature:
        storage.write_witness_file(did_path, [request_body.witnessSignature.model_dump()])

    logger.info(f"Published {result.meta.versionId} for {result.did}")
    return JSONResponse(status_code=201 if not log else 200, content=request_body.logEntry)
