from .askar import AskarSigner, AskarVerifier
from .didwebvh import DidWebVH
from .storage import LogStorage

__all__ = ["AskarSigner", "AskarVerifier", "DidWebVH", "LogStorage"]
