"""
Key Derivation
==============

Turns a long-lived secret plus a salt into the key actually used for signing.
The salt namespaces signatures: the same secret yields unrelated keys for
different purposes.

Key derivation is not a password stretching scheme. Secrets should already be
long and random.
"""

import enum
import hashlib
import hmac
from typing import Union

from .algorithm import DigestLike, resolve_digest
from .error_handling import SignerConfigurationError

# Namespace literal of the legacy Django-compatible scheme.
NAMESPACE = b"signer"


class DerivationMethod(enum.Enum):
    """How the secret and salt are combined."""

    CONCAT = "concat"
    NAMESPACED_CONCAT = "django-concat"
    HMAC = "hmac"

    @classmethod
    def parse(cls, value: Union["DerivationMethod", str]) -> "DerivationMethod":
        """Accept an enum member or its string value."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as e:
            valid = sorted(m.value for m in cls)
            raise SignerConfigurationError(
                f"Invalid key derivation method: {value!r} (expected one of {valid})",
                {"derivation_method": str(value)},
            ) from e


DEFAULT_DERIVATION = DerivationMethod.NAMESPACED_CONCAT


def derive_key(
    secret: bytes,
    salt: bytes,
    method: DerivationMethod = DEFAULT_DERIVATION,
    digest: DigestLike = "sha1",
) -> bytes:
    """
    Derive a signing key.

    Args:
        secret: Raw secret bytes
        salt: Namespacing salt
        method: Derivation method
        digest: hashlib digest name or constructor

    Returns:
        The derived key, ``digest_size`` bytes long
    """
    name = resolve_digest(digest)

    if method is DerivationMethod.CONCAT:
        return hashlib.new(name, salt + secret).digest()
    if method is DerivationMethod.NAMESPACED_CONCAT:
        return hashlib.new(name, salt + NAMESPACE + secret).digest()
    if method is DerivationMethod.HMAC:
        return hmac.new(secret, salt, name).digest()

    raise SignerConfigurationError(
        f"Unknown key derivation method: {method!r}",
        {"derivation_method": str(method)},
    )
