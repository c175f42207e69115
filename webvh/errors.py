"""DID WebVH log errors.

Every failure raised while building or replaying a log is a subclass of
:class:`WebVHError`. None of them are retried or downgraded by this package;
callers map them to user facing messages or status codes.
"""


class WebVHError(Exception):
    """Base class for log construction and resolution failures."""

    def __init__(self, message, version=None, expected=None, actual=None):
        """Initialize the error with optional diagnostic context."""
        super().__init__(message)
        self.message = message
        self.version = version
        self.expected = expected
        self.actual = actual

    def details(self):
        """Return the diagnostic context as a dictionary."""
        return {
            key: value
            for key, value in {
                "error": self.__class__.__name__,
                "message": self.message,
                "version": self.version,
                "expected": self.expected,
                "actual": self.actual,
            }.items()
            if value is not None
        }


class ProtocolMismatch(WebVHError):
    """Unknown or unsupported method tag."""


class VersionSequenceError(WebVHError):
    """Version number does not match the entry position."""


class SCIDMismatch(WebVHError):
    """SCID is not derived from the genesis entry."""


class HashChainBroken(WebVHError):
    """Entry hash does not match the entry content."""


class SignatureInvalid(WebVHError):
    """Proof is missing, malformed or does not verify."""


class UnauthorizedKey(WebVHError):
    """Proof signer is not an authorized update key."""


class InvalidUpdateKey(WebVHError):
    """Update key was not committed by the previous nextKeyHashes."""


class MissingNextKeyHashes(WebVHError):
    """Pre-rotation is active but no new nextKeyHashes were provided."""


class PortabilityViolation(WebVHError):
    """DID moved while portability is disabled."""


class InvalidWitnessConfig(WebVHError):
    """Malformed witness parameter."""


class DuplicateWitness(InvalidWitnessConfig):
    """Witness declared more than once."""


class WitnessThresholdNotMet(WebVHError):
    """Witness proofs do not reach the declared threshold."""


class UnknownWitness(WebVHError):
    """Witness proof signer is not a declared witness."""


class MissingUpdateKeys(WebVHError):
    """No update keys supplied."""


class InvalidOptions(WebVHError):
    """Conflicting resolution options."""


class NotFound(WebVHError):
    """Empty log or requested version not found."""


class InvalidLogEntry(WebVHError):
    """Log entry is malformed."""


class DIDDeactivated(WebVHError):
    """DID is deactivated."""


class StorageError(WebVHError):
    """Stored log cannot be extended without rewriting it."""
