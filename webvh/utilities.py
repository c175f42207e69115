"""Utility functions for DID WebVH logs."""

from copy import deepcopy
from datetime import datetime, timezone, timedelta
from hashlib import sha256
from urllib.parse import unquote

import canonicaljson
import jcs
from multiformats import multibase, multihash

from config import settings

MULTIKEY_PARAMS = {"ed25519": {"header": "ed01"}}


def _encode_hash(data: bytes) -> str:
    # https://identity.foundation/didwebvh/#generate-scid
    multihashed = multihash.digest(data, "sha2-256")
    return multibase.encode(multihashed, "base58btc")[1:]


def derive_hash(value) -> str:
    """Return the base58btc sha2-256 multihash of a JCS canonicalized value."""
    return _encode_hash(jcs.canonicalize(value))


def create_scid(log_entry_hash: str) -> str:
    """Create the SCID from the hash of the placeholder genesis entry."""
    return log_entry_hash


def derive_next_key_hash(multikey: str) -> str:
    """Return the pre-rotation commitment for a multikey."""
    return _encode_hash(multikey.encode("utf-8"))


def transform(document, options):
    """Transform document and proof options into hash data for signing."""
    return (
        sha256(canonicaljson.encode_canonical_json(options)).digest()
        + sha256(canonicaljson.encode_canonical_json(document)).digest()
    )


def clone(value):
    """Deep copy a JSON value."""
    return deepcopy(value)


def timestamp(minutes_delta=None):
    """Create timestamps."""
    dt = (
        datetime.now(timezone.utc) + timedelta(minutes=minutes_delta)
        if minutes_delta
        else datetime.now(timezone.utc)
    )
    return str(dt.isoformat("T", "seconds")).replace("+00:00", "Z")


def format_timestamp(value) -> str:
    """Format a datetime or timestamp string as a versionTime value."""
    if value is None:
        return timestamp()
    if isinstance(value, str):
        value = parse_timestamp(value)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc).replace(microsecond=0)
    return str(value.isoformat("T", "seconds")).replace("+00:00", "Z")


def parse_timestamp(value) -> datetime:
    """Parse a versionTime value into an aware datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def key_to_multikey(public_bytes: bytes, alg="ed25519") -> str:
    """Encode raw public key bytes as a multikey."""
    header = MULTIKEY_PARAMS[alg]["header"]
    return multibase.encode(bytes.fromhex(f"{header}{public_bytes.hex()}"), "base58btc")


def multikey_to_public_bytes(multikey: str) -> bytes:
    """Decode a multikey into raw public key bytes."""
    return bytes(bytearray(multibase.decode(multikey))[2:])


def did_key_to_multikey(verification_method: str) -> str:
    """Return the multikey encoded in a did:key verification method id."""
    did = verification_method.split("#")[0]
    if not did.startswith(settings.DID_KEY_PREFIX):
        raise ValueError(f"Expected did:key verification method, got {verification_method}")
    return did[len(settings.DID_KEY_PREFIX) :]


def multikey_to_did_key(multikey: str) -> str:
    """Return the did:key verification method id for a multikey."""
    return f"{settings.DID_KEY_PREFIX}{multikey}#{multikey}"


def build_did(scid: str, domain: str, paths=None) -> str:
    """Assemble a did:webvh identifier."""
    return ":".join([f"{settings.DID_WEBVH_PREFIX}{scid}", domain, *(paths or [])])


def placeholder_id(domain: str, paths=None) -> str:
    """Return placeholder id."""
    return build_did(settings.SCID_PLACEHOLDER, domain, paths)


def split_did(did: str):
    """Split a did:webvh identifier into its scid, domain and path segments."""
    parts = did.split("#")[0].split(":")
    if len(parts) < 4 or parts[0] != "did" or parts[1] != "webvh":
        raise ValueError(f"Not a did:webvh identifier: {did}")
    return parts[2], parts[3], parts[4:]


def did_to_https(did: str) -> str:
    """DID to https transformation, without trailing slash."""
    _, domain, paths = split_did(did)
    base = f"https://{unquote(domain)}"
    return "/".join([base, *paths])


def get_base_url(did: str) -> str:
    """Return the base url of the files hosted for a DID."""
    return f"{did_to_https(did)}/"


def replace_in_values(value, old: str, new: str):
    """Replace a substring in every string of a JSON value."""
    if isinstance(value, str):
        return value.replace(old, new)
    if isinstance(value, list):
        return [replace_in_values(item, old, new) for item in value]
    if isinstance(value, dict):
        return {
            replace_in_values(key, old, new): replace_in_values(item, old, new)
            for key, item in value.items()
        }
    return value


def rebase_did_references(value, old_did: str, new_did: str, skip=("alsoKnownAs",)):
    """Move references to a DID and its fragments onto another DID."""
    if isinstance(value, str):
        if value == old_did or value.startswith(f"{old_did}#"):
            return f"{new_did}{value[len(old_did):]}"
        return value
    if isinstance(value, list):
        return [rebase_did_references(item, old_did, new_did, skip) for item in value]
    if isinstance(value, dict):
        return {
            key: item if key in skip else rebase_did_references(item, old_did, new_did, skip)
            for key, item in value.items()
        }
    return value


def unique(values):
    """Deduplicate a list while keeping its order."""
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen
