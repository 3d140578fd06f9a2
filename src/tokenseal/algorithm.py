"""
Signature Primitive
===================

HMAC signature computation and constant-time verification over a derived key.
"""

import hashlib
import hmac
import logging
from typing import Callable, Union

from .error_handling import SignerConfigurationError

logger = logging.getLogger(__name__)

DigestLike = Union[str, Callable]

DEFAULT_DIGEST = "sha1"


def resolve_digest(digest: DigestLike) -> str:
    """
    Validate a digest identifier and return its canonical hashlib name.

    Args:
        digest: A hashlib algorithm name (``"sha256"``) or constructor
            (``hashlib.sha256``)

    Returns:
        The lower-case hashlib name

    Raises:
        SignerConfigurationError: If hashlib does not provide the digest, or it
            is a variable-length digest that HMAC cannot use
    """
    try:
        if callable(digest):
            name = digest().name
        elif isinstance(digest, str):
            name = hashlib.new(digest.lower()).name
        else:
            name = hashlib.new(digest).name
    except (TypeError, ValueError) as e:
        raise SignerConfigurationError(
            f"Unsupported digest: {digest!r}", {"digest": str(digest)}
        ) from e

    if name.startswith("shake_"):
        raise SignerConfigurationError(
            f"Variable-length digest {name} cannot be used for signing",
            {"digest": name},
        )
    return name.lower()


class HMACAlgorithm:
    """Computes and verifies HMAC signatures with a fixed digest."""

    def __init__(self, digest: DigestLike = DEFAULT_DIGEST):
        self.digest = resolve_digest(digest)

    def __repr__(self) -> str:
        return f"HMACAlgorithm(digest={self.digest!r})"

    @property
    def signature_size(self) -> int:
        return hashlib.new(self.digest).digest_size

    def get_signature(self, key: bytes, message: bytes) -> bytes:
        return hmac.new(key, message, self.digest).digest()

    def verify_signature(self, key: bytes, message: bytes, signature: bytes) -> bool:
        """Check ``signature`` against the expected one in constant time."""
        return hmac.compare_digest(self.get_signature(key, message), signature)
