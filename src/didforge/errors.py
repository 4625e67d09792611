"""
errors.py — didforge Error Taxonomy

Every failure raised by the derivation pipeline carries a stable code so
callers (and the CLI) can classify it without parsing messages.
"""

from typing import Optional

__all__ = [
    "DidForgeError",
    "InvalidInputLengthError",
    "UnknownAlgorithmError",
    "TransportFailureError",
    "MalformedRemoteDataError",
    "InvalidKeySizeError",
    "UnderlyingPrimitiveFailureError",
    "PrimitiveUnavailableError",
    "DecodeFormatError",
    "AlgorithmTagError",
    "IdentityStoreError",
]

class DidForgeError(Exception):
    """Base class for all didforge errors."""
    def __init__(
        self,
        code: str,
        message: str,
        context: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.context = context

        full_msg = f"[{code}] {message}"
        if context:
            full_msg += f" Context: {context}"

        super().__init__(full_msg)

    @property
    def kind(self) -> str:
        """Short error kind, e.g. ``DecodeFormatError``."""
        return type(self).__name__

    @property
    def doc_url(self) -> str:
        """Link to the human-readable documentation for this error."""
        return f"https://didforge.dev/errors/{self.code}"

# Input Errors (E1xx)
class InvalidInputLengthError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E100", "An input buffer has the wrong length (seed must be 32 bytes; messages, keys and samples must be non-empty).", context)

class UnknownAlgorithmError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E101", "The key algorithm name is not one of Ed25519 or Dilithium2.", context)

# Remote Seed Errors (E2xx)
class TransportFailureError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E200", "The remote random source was unreachable or answered with a non-2xx status.", context)

class MalformedRemoteDataError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E201", "The remote random source response is missing a 'data' field of exactly 32 bytes.", context)

# Key Errors (E3xx)
class InvalidKeySizeError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E300", "A generated key does not have the size required by its algorithm.", context)

class UnderlyingPrimitiveFailureError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E301", "The underlying cryptographic primitive raised an error.", context)

class PrimitiveUnavailableError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E302", "The cryptographic library for this algorithm could not be loaded.", context)

# Identifier Errors (E4xx)
class DecodeFormatError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E400", "The identifier is not a well-formed did:key string.", context)

class AlgorithmTagError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E401", "The algorithm tag is not 2 bytes or cannot be used with this algorithm.", context)

# Storage Errors (E5xx)
class IdentityStoreError(DidForgeError):
    def __init__(self, context: Optional[str] = None):
        super().__init__("DIDFORGE_E500", "The identity store could not be read or written.", context)
