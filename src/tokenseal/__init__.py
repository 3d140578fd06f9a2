"""
tokenseal - Sign values for untrusted environments and get them back intact.

Data handed to a browser cookie, URL parameter or stored token is signed with
a secret; when it comes back the signature proves it was not altered and,
optionally, that it is not older than a given age.

Key Features:
- HMAC signatures with configurable digest and key derivation
- Compact URL-safe wire format
- Embedded timestamps with maximum age checks
- Key rotation through ordered key rings
- JSON serialization adapters

Quick Start:
    >>> from tokenseal import Signer, TimestampSigner
    >>>
    >>> signer = Signer("secret key")
    >>> token = signer.sign(b"hello world!")
    >>> signer.unsign(token)
    b'hello world!'
    >>>
    >>> timed = TimestampSigner(signer)
    >>> token = timed.sign(b"hello world!")
    >>> timed.unsign(token, max_age=60)
    b'hello world!'
"""

from .algorithm import HMACAlgorithm
from .config import (
    SignerConfig,
    SigningConfig,
    TimestampConfig,
    create_signing_config,
    load_config_from_dict,
    load_config_from_json,
)
from .error_handling import (
    BadData,
    BadPayload,
    BadSignature,
    BadTimeSignature,
    InvalidSeparator,
    SignatureExpired,
    SignerConfigurationError,
    SigningError,
)
from .key_derivation import DerivationMethod, derive_key
from .keys import KeyRing, SecretKey
from .serialization import Serializer, TimedSerializer
from .signer import Signer, default_signer
from .timed import LEGACY_EPOCH, SignedValue, TimestampSigner

__version__ = "0.1.0"

__all__ = [
    # Signers
    "Signer",
    "TimestampSigner",
    "SignedValue",
    "default_signer",
    "LEGACY_EPOCH",
    # Keys
    "SecretKey",
    "KeyRing",
    "DerivationMethod",
    "derive_key",
    "HMACAlgorithm",
    # Serializers
    "Serializer",
    "TimedSerializer",
    # Configuration
    "SignerConfig",
    "TimestampConfig",
    "SigningConfig",
    "create_signing_config",
    "load_config_from_dict",
    "load_config_from_json",
    # Errors
    "SigningError",
    "SignerConfigurationError",
    "InvalidSeparator",
    "BadData",
    "BadPayload",
    "BadSignature",
    "BadTimeSignature",
    "SignatureExpired",
    # Version info
    "__version__",
]
