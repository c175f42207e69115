"""did:webvh verifiable history logs."""

from .interfaces import Signer, Verifier
from .plugins import AskarSigner, AskarVerifier, DidWebVH, LogStorage

__all__ = ["Signer", "Verifier", "AskarSigner", "AskarVerifier", "DidWebVH", "LogStorage"]
