"""
Timestamp Signer
================

Wraps a ``Signer`` to embed the signing time and enforce a maximum age.

Signed strings have the form::

    <encode(payload)><sep><encode_int(timestamp)><sep><encode(signature)>

with the signature covering ``payload-segment sep timestamp-segment``.

Timestamps are whole seconds since ``epoch``. The epoch must be the same for
every signer sharing the secrets; ``LEGACY_EPOCH`` reproduces the scheme of
itsdangerous 0.x.

A timestamp in the future is accepted and never treated as expired, so small
clock differences between issuing and verifying hosts do not reject fresh
values.
"""

import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, NamedTuple, Optional, Tuple, Union

from . import encoding
from .error_handling import BadData, BadSignature, BadTimeSignature, SignatureExpired, SignerConfigurationError
from .signer import Signer

logger = logging.getLogger(__name__)

LEGACY_EPOCH = 1293840000

MaxAge = Union[int, float, timedelta, None]

# Sentinel distinguishing "no expiry check" (None) from "use the configured default"
_DEFAULT_MAX_AGE = object()


class SignedValue(NamedTuple):
    """A payload recovered by ``TimestampSigner.unsign_with_timestamp``."""

    payload: bytes
    timestamp: int
    signed_at: datetime


def _max_age_seconds(max_age: MaxAge) -> Optional[float]:
    if max_age is None:
        return None
    if isinstance(max_age, timedelta):
        return max_age.total_seconds()
    if isinstance(max_age, bool) or not isinstance(max_age, (int, float)):
        raise SignerConfigurationError(
            f"max_age must be a number of seconds or a timedelta, not {type(max_age).__name__}"
        )
    return max_age


class TimestampSigner:
    """
    Sign values together with the time they were signed.

    Args:
        signer: The Signer providing keys, salt, separator and digest
        epoch: Unix time that timestamp 0 corresponds to
        max_age: Default maximum age in seconds (or timedelta) applied by
            ``unsign`` when none is passed; None disables the check
        clock: Callable returning the current Unix time
    """

    def __init__(
        self,
        signer: Signer,
        epoch: int = 0,
        max_age: MaxAge = None,
        clock: Callable[[], float] = time.time,
    ):
        if epoch < 0:
            raise SignerConfigurationError("epoch must be non-negative", {"epoch": epoch})

        self.signer = signer
        self.epoch = epoch
        self.max_age = _max_age_seconds(max_age)
        self.clock = clock

        logger.debug(f"Timestamp signer initialized: epoch={epoch}, max_age={self.max_age}")

    @classmethod
    def from_secret(
        cls,
        secret_key,
        epoch: int = 0,
        max_age: MaxAge = None,
        clock: Callable[[], float] = time.time,
        **signer_options,
    ) -> "TimestampSigner":
        """Build the inner Signer from ``secret_key`` and ``signer_options``."""
        return cls(Signer(secret_key, **signer_options), epoch=epoch, max_age=max_age, clock=clock)

    def __repr__(self) -> str:
        return f"TimestampSigner(signer={self.signer!r}, epoch={self.epoch})"

    @property
    def sep(self) -> str:
        return self.signer.sep

    def get_timestamp(self) -> int:
        """Current time in seconds since the epoch."""
        return int(self.clock()) - self.epoch

    def timestamp_to_datetime(self, timestamp: int) -> datetime:
        """Convert a decoded timestamp into an aware UTC datetime."""
        try:
            return datetime.fromtimestamp(timestamp + self.epoch, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise BadTimeSignature(
                "Timestamp is out of range", {"timestamp": timestamp}
            ) from e

    def sign(self, payload: Union[str, bytes]) -> str:
        """Sign ``payload`` with the current timestamp."""
        return self.sign_with_timestamp(payload, self.get_timestamp())

    def sign_with_timestamp(self, payload: Union[str, bytes], timestamp: int) -> str:
        """Sign ``payload`` with an explicit timestamp (seconds since the epoch)."""
        if timestamp < 0:
            raise SignerConfigurationError(
                "Timestamp is before the epoch; check the clock and epoch settings",
                {"timestamp": timestamp, "epoch": self.epoch},
            )
        return self.signer.sign_segments(
            encoding.encode(payload), encoding.encode_int(timestamp)
        )

    def _unsign(self, signed: Union[str, bytes], max_age) -> Tuple[bytes, int]:
        if max_age is _DEFAULT_MAX_AGE:
            max_age = self.max_age
        else:
            max_age = _max_age_seconds(max_age)

        segments, signature = self.signer.split_signed(signed, 2)
        value_segment, timestamp_segment = segments
        payload = encoding.decode(value_segment)

        if not self.signer.verify_segments(segments, signature):
            raise BadSignature(
                "Signature does not match",
                {"secrets_tried": len(self.signer.keyring), "digest": self.signer.digest},
            )

        try:
            timestamp = encoding.decode_int(timestamp_segment)
        except BadData as e:
            raise BadTimeSignature(
                "Malformed timestamp", {"timestamp_length": len(timestamp_segment)}
            ) from e

        if max_age is not None:
            age = self.get_timestamp() - timestamp
            # Negative ages (timestamps in the future) are accepted.
            if age > max_age:
                raise SignatureExpired(
                    f"Signature age {age} > {max_age} seconds",
                    timestamp=timestamp,
                    age=age,
                    max_age=max_age,
                    date_signed=self.timestamp_to_datetime(timestamp),
                )

        return payload, timestamp

    def unsign(self, signed: Union[str, bytes], max_age=_DEFAULT_MAX_AGE) -> bytes:
        """
        Verify a timestamped string and return the original payload.

        Args:
            signed: Output of ``sign``
            max_age: Maximum age in seconds or as a timedelta. None disables
                the check; if omitted, the signer's default applies.

        Raises:
            BadData: If the value does not have three segments or a segment
                cannot be decoded
            BadSignature: If no secret validates the signature
            BadTimeSignature: If the timestamp segment is malformed
            SignatureExpired: If the value is older than ``max_age``
        """
        payload, _ = self._unsign(signed, max_age)
        return payload

    def unsign_with_timestamp(self, signed: Union[str, bytes], max_age=_DEFAULT_MAX_AGE) -> SignedValue:
        """Like ``unsign`` but also return when the value was signed."""
        payload, timestamp = self._unsign(signed, max_age)
        return SignedValue(payload, timestamp, self.timestamp_to_datetime(timestamp))

    def validate(self, signed: Union[str, bytes], max_age=_DEFAULT_MAX_AGE) -> bool:
        """Return True if ``signed`` unsigns cleanly and has not expired."""
        try:
            self._unsign(signed, max_age)
            return True
        except BadData:
            return False
