"""
Secret Keys and Key Rotation
============================

``SecretKey`` wraps secret material so it cannot be printed or compared by
accident. ``KeyRing`` is the ordered list of secrets, newest first, that
implements key rotation:

- signing always uses the newest secret (index 0)
- unsigning tries every secret in order and stops at the first match
- old secrets stay valid until they are removed from the ring

Usage:
    ring = KeyRing(["current-secret"])
    ring = ring.rotate("next-secret")    # sign with next, still accept current
    ring = ring.rotate("third", keep=2)  # drops "current-secret"
"""

import hmac
import logging
from typing import Iterable, Iterator, Optional, Tuple, Union

from .encoding import want_bytes
from .error_handling import SignerConfigurationError

logger = logging.getLogger(__name__)

SecretLike = Union[str, bytes, "SecretKey"]


class SecretKey:
    """Immutable secret bytes that never appear in reprs or logs."""

    __slots__ = ("_value",)

    def __init__(self, value: SecretLike):
        if isinstance(value, SecretKey):
            value = value.reveal()
        if not isinstance(value, (str, bytes, bytearray)):
            raise SignerConfigurationError(
                f"Secret keys must be str or bytes, not {type(value).__name__}"
            )
        object.__setattr__(self, "_value", want_bytes(value))

    def __setattr__(self, name, value):
        raise AttributeError("SecretKey is immutable")

    def __repr__(self) -> str:
        return "SecretKey('**********')"

    __str__ = __repr__

    def __eq__(self, other):
        raise TypeError("SecretKey does not support ==; use matches()")

    __hash__ = None

    def __len__(self) -> int:
        return len(self._value)

    def __reduce__(self):
        raise TypeError("SecretKey cannot be pickled")

    def reveal(self) -> bytes:
        """Return the raw secret bytes."""
        return self._value

    def matches(self, other: SecretLike) -> bool:
        """Compare against another secret in constant time."""
        return hmac.compare_digest(self._value, SecretKey(other).reveal())


class KeyRing:
    """Ordered, non-empty sequence of secrets, newest first."""

    __slots__ = ("_keys",)

    def __init__(self, secrets: Union[SecretLike, Iterable[SecretLike]]):
        if isinstance(secrets, (str, bytes, bytearray, SecretKey)):
            secrets = [secrets]

        keys = tuple(SecretKey(secret) for secret in secrets)
        if not keys:
            raise SignerConfigurationError("A key ring needs at least one secret")

        object.__setattr__(self, "_keys", keys)
        logger.debug(f"Key ring initialized with {len(keys)} secret(s)")

    @classmethod
    def coerce(cls, secrets: Union["KeyRing", SecretLike, Iterable[SecretLike]]) -> "KeyRing":
        if isinstance(secrets, KeyRing):
            return secrets
        return cls(secrets)

    def __setattr__(self, name, value):
        raise AttributeError("KeyRing is immutable")

    def __repr__(self) -> str:
        return f"KeyRing(<{len(self._keys)} secret(s)>)"

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[SecretKey]:
        return iter(self._keys)

    def __getitem__(self, index: int) -> SecretKey:
        return self._keys[index]

    @property
    def newest(self) -> SecretKey:
        """The secret used for signing."""
        return self._keys[0]

    @property
    def keys(self) -> Tuple[SecretKey, ...]:
        return self._keys

    def rotate(self, new_secret: SecretLike, keep: Optional[int] = None) -> "KeyRing":
        """
        Return a new ring that signs with ``new_secret``.

        Args:
            new_secret: Secret to sign with from now on
            keep: If given, retain at most this many secrets in total, dropping
                the oldest ones

        Returns:
            A new KeyRing; this ring is left unchanged
        """
        if keep is not None and keep < 1:
            raise SignerConfigurationError(
                "keep must be at least 1", {"keep": keep}
            )

        keys = (SecretKey(new_secret),) + self._keys
        if keep is not None:
            keys = keys[:keep]

        logger.debug(f"Rotated key ring: {len(self._keys)} -> {len(keys)} secret(s)")
        return KeyRing(keys)
