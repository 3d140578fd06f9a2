"""
Signer
======

Signs and unsigns byte payloads.

A signed string has the form ``<encode(payload)><sep><encode(signature)>``.
The signature is an HMAC over the encoded value segment, keyed with a key
derived from the newest secret of the key ring and the salt.

A salt namespaces the signature, so a value signed for one purpose is not
valid for another. Reusing the default salt across unrelated parts of an
application, where the same signed value can mean different things, is a
security risk.

Usage:
    from tokenseal import Signer

    signer = Signer("secret key", salt="activate-account")
    token = signer.sign(b"user-42")
    assert signer.unsign(token) == b"user-42"
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

from . import encoding
from .algorithm import DEFAULT_DIGEST, DigestLike, HMACAlgorithm
from .error_handling import BadData, BadSignature, InvalidSeparator, SignerConfigurationError
from .key_derivation import DEFAULT_DERIVATION, DerivationMethod, derive_key
from .keys import KeyRing, SecretKey, SecretLike

logger = logging.getLogger(__name__)

DEFAULT_SALT = b"itsdangerous.Signer"
DEFAULT_SEPARATOR = "."


def validate_separator(sep: Union[str, bytes]) -> str:
    """
    Check that ``sep`` can unambiguously split encoded segments.

    Raises:
        InvalidSeparator: If ``sep`` is in the codec alphabet
        SignerConfigurationError: If ``sep`` is not a single ASCII character
    """
    if isinstance(sep, bytes):
        try:
            sep = sep.decode("ascii")
        except UnicodeDecodeError as e:
            raise SignerConfigurationError(
                "Separator must be a single ASCII character"
            ) from e

    if not isinstance(sep, str) or len(sep) != 1 or not sep.isascii():
        raise SignerConfigurationError(
            "Separator must be a single ASCII character", {"separator": repr(sep)}
        )

    if encoding.in_alphabet(sep):
        raise InvalidSeparator(sep)

    return sep


class Signer:
    """
    Sign and unsign values with an ordered set of secrets.

    Args:
        secret_key: A secret, a list of secrets (newest first) or a KeyRing
        salt: Namespacing salt
        sep: Separator character, must not be in the codec alphabet
        key_derivation: A DerivationMethod or its string value
        digest: hashlib digest name or constructor
    """

    def __init__(
        self,
        secret_key: Union[KeyRing, SecretLike, Iterable[SecretLike]],
        salt: Union[str, bytes] = DEFAULT_SALT,
        sep: Union[str, bytes] = DEFAULT_SEPARATOR,
        key_derivation: Union[DerivationMethod, str] = DEFAULT_DERIVATION,
        digest: DigestLike = DEFAULT_DIGEST,
    ):
        self.sep = validate_separator(sep)
        self.keyring = KeyRing.coerce(secret_key)
        self.salt = encoding.want_bytes(salt)
        self.key_derivation = DerivationMethod.parse(key_derivation)
        self.algorithm = HMACAlgorithm(digest)

        logger.debug(
            f"Signer initialized: digest={self.digest}, "
            f"key_derivation={self.key_derivation.value}, sep={self.sep!r}, "
            f"secrets={len(self.keyring)}"
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(salt={self.salt!r}, sep={self.sep!r}, "
            f"key_derivation={self.key_derivation.value!r}, digest={self.digest!r}, "
            f"keyring={self.keyring!r})"
        )

    @property
    def digest(self) -> str:
        return self.algorithm.digest

    def derive_key(self, secret: Optional[SecretKey] = None) -> bytes:
        """Derive the signing key for ``secret`` (the newest secret by default)."""
        if secret is None:
            secret = self.keyring.newest
        return derive_key(
            secret.reveal(), self.salt, self.key_derivation, self.algorithm.digest
        )

    def get_signature(self, message: Union[str, bytes]) -> str:
        """Encoded signature of ``message`` under the newest secret."""
        key = self.derive_key()
        signature = self.algorithm.get_signature(key, encoding.want_bytes(message))
        return encoding.encode(signature)

    # Segment-level operations shared with TimestampSigner

    def sign_segments(self, *segments: str) -> str:
        """Join already-encoded segments and append their signature."""
        message = self.sep.join(segments)
        return f"{message}{self.sep}{self.get_signature(message)}"

    def split_signed(self, signed: Union[str, bytes], parts: int = 1) -> Tuple[List[str], bytes]:
        """
        Split a signed string into message segments and the raw signature.

        Splitting happens from the right, on the last ``parts`` separators.

        Args:
            signed: The signed string
            parts: Number of message segments expected before the signature

        Returns:
            Tuple of (message segments, decoded signature bytes)

        Raises:
            BadData: If separators are missing or the signature is undecodable
        """
        if isinstance(signed, bytes):
            try:
                signed = signed.decode("utf-8")
            except UnicodeDecodeError as e:
                raise BadData("Signed value is not valid UTF-8") from e

        pieces = signed.rsplit(self.sep, parts)
        if len(pieces) != parts + 1:
            raise BadData(
                f"Separator {self.sep!r} not found in value",
                {
                    "separator": self.sep,
                    "expected_segments": parts + 1,
                    "found_segments": len(pieces),
                },
            )

        *segments, signature_segment = pieces
        signature = encoding.decode(signature_segment)
        return segments, signature

    def verify_segments(self, segments: List[str], signature: bytes) -> bool:
        """Try every secret in the key ring, newest first."""
        message = encoding.want_bytes(self.sep.join(segments))

        for index, secret in enumerate(self.keyring):
            key = self.derive_key(secret)
            if self.algorithm.verify_signature(key, message, signature):
                if index:
                    logger.debug(f"Signature matched rotated secret at position {index}")
                return True

        return False

    # Public API

    def sign(self, payload: Union[str, bytes]) -> str:
        """Sign ``payload`` with the newest secret."""
        return self.sign_segments(encoding.encode(payload))

    def unsign(self, signed: Union[str, bytes]) -> bytes:
        """
        Verify a signed string and return the original payload.

        Raises:
            BadData: If the value is structurally malformed
            BadSignature: If no secret in the key ring validates the signature
        """
        segments, signature = self.split_signed(signed, 1)
        payload = encoding.decode(segments[0])

        if not self.verify_segments(segments, signature):
            raise BadSignature(
                "Signature does not match",
                {"secrets_tried": len(self.keyring), "digest": self.digest},
            )

        return payload

    def validate(self, signed: Union[str, bytes]) -> bool:
        """Return True if ``signed`` unsigns cleanly."""
        try:
            self.unsign(signed)
            return True
        except BadData:
            return False


def default_signer(secret_key: Union[KeyRing, SecretLike, Iterable[SecretLike]], **overrides) -> Signer:
    """Build a Signer with the default sha1, django-concat and "." settings."""
    return Signer(secret_key, **overrides)
