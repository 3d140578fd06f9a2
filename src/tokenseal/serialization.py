"""
Serialization Adapters
======================

Sign arbitrary JSON-compatible objects by serializing them to bytes and handing
the bytes to a ``Signer`` or ``TimestampSigner``. The signing engine itself
never sees anything but bytes.

Fallback signers let a serializer accept values produced with different
settings (another salt, digest or derivation method) while always producing
values with the primary signer. Rotating secrets under identical settings is
better handled by the signer's key ring.

Usage:
    from tokenseal import Signer, Serializer

    serializer = Serializer(Signer("secret", salt="session"))
    token = serializer.dumps({"user_id": 42})
    serializer.loads(token)  # {'user_id': 42}
"""

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence, Tuple, Union

from . import encoding, json_utils
from .error_handling import BadData, BadPayload, BadSignature, log_signing_performance, with_error_handling
from .signer import Signer
from .timed import _DEFAULT_MAX_AGE, TimestampSigner

logger = logging.getLogger(__name__)


@with_error_handling(BadPayload, {"stage": "deserialize"})
def load_payload(payload: bytes) -> Any:
    """Deserialize verified payload bytes."""
    return json_utils.loads(payload)


@with_error_handling(BadPayload, {"stage": "serialize"})
def dump_payload(obj: Any, sort_keys: bool = False) -> bytes:
    return json_utils.dumps(obj, sort_keys=sort_keys)


def _try_signers(signers: Sequence, unsign):
    """Call ``unsign(signer)`` for each signer, returning the first success."""
    last_error: Optional[BadSignature] = None
    for signer in signers:
        try:
            return unsign(signer)
        except BadSignature as e:
            # Expired or malformed-timestamp errors prove authenticity; do not
            # fall through to other signers.
            if type(e) is not BadSignature:
                raise
            last_error = e
    raise last_error


class Serializer:
    """
    Sign JSON-serializable objects.

    Args:
        signer: Signer used for dumps and tried first on loads
        fallback_signers: Additional signers tried, in order, on loads
        sort_keys: Sort dictionary keys so equal objects give equal tokens
    """

    def __init__(
        self,
        signer: Signer,
        fallback_signers: Iterable[Signer] = (),
        sort_keys: bool = False,
    ):
        self.signer = signer
        self.fallback_signers = tuple(fallback_signers)
        self.sort_keys = sort_keys

    @property
    def signers(self) -> Tuple[Signer, ...]:
        return (self.signer,) + self.fallback_signers

    def dumps(self, obj: Any) -> str:
        return self.signer.sign(dump_payload(obj, self.sort_keys))

    @log_signing_performance
    def loads(self, signed: Union[str, bytes]) -> Any:
        """
        Verify and deserialize a value produced by ``dumps``.

        Raises:
            BadData: If the value is malformed
            BadSignature: If no signer validates the value
            BadPayload: If the verified payload is not valid JSON
        """
        payload = _try_signers(self.signers, lambda signer: signer.unsign(signed))
        return load_payload(payload)

    def loads_unsafe(self, signed: Union[str, bytes]) -> Tuple[bool, Optional[Any]]:
        """
        Load a value without requiring a valid signature.

        Returns:
            Tuple of (signature was valid, payload or None if undecodable).
            Never use the payload when the flag is False for anything but
            debugging.
        """
        try:
            return True, self.loads(signed)
        except BadSignature:
            return False, self._load_unverified(signed)
        except BadData:
            return False, None

    def _load_unverified(self, signed: Union[str, bytes]) -> Optional[Any]:
        try:
            segments, _ = self.signer.split_signed(signed, 1)
            return load_payload(encoding.decode(segments[0]))
        except BadData:
            return None


class TimedSerializer:
    """
    Sign JSON-serializable objects together with their signing time.

    Args:
        signer: TimestampSigner used for dumps and tried first on loads
        fallback_signers: Additional TimestampSigners tried, in order, on loads
        sort_keys: Sort dictionary keys so equal objects give equal tokens
    """

    def __init__(
        self,
        signer: TimestampSigner,
        fallback_signers: Iterable[TimestampSigner] = (),
        sort_keys: bool = False,
    ):
        self.signer = signer
        self.fallback_signers = tuple(fallback_signers)
        self.sort_keys = sort_keys

    @property
    def signers(self) -> Tuple[TimestampSigner, ...]:
        return (self.signer,) + self.fallback_signers

    def dumps(self, obj: Any) -> str:
        return self.signer.sign(dump_payload(obj, self.sort_keys))

    def dumps_with_timestamp(self, obj: Any, timestamp: int) -> str:
        return self.signer.sign_with_timestamp(dump_payload(obj, self.sort_keys), timestamp)

    @log_signing_performance
    def loads(
        self,
        signed: Union[str, bytes],
        max_age=_DEFAULT_MAX_AGE,
        return_timestamp: bool = False,
    ) -> Union[Any, Tuple[Any, datetime]]:
        """
        Verify, check the age of and deserialize a value produced by ``dumps``.

        Args:
            signed: Signed value
            max_age: Maximum age in seconds or as a timedelta; None disables
                the check, omitted uses each signer's default
            return_timestamp: Also return the signing time as a UTC datetime

        Raises:
            BadData, BadSignature, BadTimeSignature, SignatureExpired, BadPayload
        """
        result = _try_signers(
            self.signers,
            lambda signer: signer.unsign_with_timestamp(signed, max_age=max_age),
        )
        obj = load_payload(result.payload)
        if return_timestamp:
            return obj, result.signed_at
        return obj
