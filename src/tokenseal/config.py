"""
Configuration Management for tokenseal
======================================

Dataclass-based configuration for signers. Configuration is split into a
signer section (secrets, salt, separator, derivation, digest) and a timestamp
section (epoch, default max age), combined by ``SigningConfig``.

Secrets are never included in reprs or log messages.

Usage:
    config = create_signing_config(["new-secret", "old-secret"], salt="session")
    signer = config.build_timestamp_signer()

    config = load_config_from_json("signing.json")
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from . import json_utils
from .algorithm import DEFAULT_DIGEST, resolve_digest
from .error_handling import SignerConfigurationError
from .key_derivation import DEFAULT_DERIVATION, DerivationMethod
from .keys import KeyRing
from .serialization import Serializer, TimedSerializer
from .signer import DEFAULT_SALT, DEFAULT_SEPARATOR, Signer, validate_separator
from .timed import LEGACY_EPOCH, TimestampSigner

logger = logging.getLogger(__name__)


@dataclass
class SignerConfig:
    """Configuration for the signing engine."""

    secrets: List[Union[str, bytes]] = field(default_factory=list, repr=False)
    salt: Union[str, bytes] = DEFAULT_SALT
    separator: str = DEFAULT_SEPARATOR
    derivation_method: str = DEFAULT_DERIVATION.value
    digest: str = DEFAULT_DIGEST

    def __post_init__(self):
        """Validate signer configuration."""
        if isinstance(self.secrets, (str, bytes)):
            self.secrets = [self.secrets]
        else:
            self.secrets = list(self.secrets)

        if not self.secrets:
            raise SignerConfigurationError("secrets must contain at least one secret")

        self.separator = validate_separator(self.separator)
        self.derivation_method = DerivationMethod.parse(self.derivation_method).value
        self.digest = resolve_digest(self.digest)

        logger.debug(
            f"Signer configured: secrets={len(self.secrets)}, digest={self.digest}, "
            f"derivation={self.derivation_method}, separator={self.separator!r}"
        )


@dataclass
class TimestampConfig:
    """Configuration for timestamped signing."""

    epoch: int = 0
    max_age: Optional[float] = None

    def __post_init__(self):
        """Validate timestamp configuration."""
        if isinstance(self.epoch, bool) or not isinstance(self.epoch, int):
            raise SignerConfigurationError(
                f"epoch must be an integer, not {type(self.epoch).__name__}"
            )
        if self.epoch < 0:
            raise SignerConfigurationError("epoch must be non-negative", {"epoch": self.epoch})

        if isinstance(self.max_age, timedelta):
            self.max_age = self.max_age.total_seconds()

        if self.max_age is not None and (
            isinstance(self.max_age, bool) or not isinstance(self.max_age, (int, float))
        ):
            raise SignerConfigurationError(
                f"max_age must be a number of seconds or a timedelta, "
                f"not {type(self.max_age).__name__}"
            )
        if self.max_age is not None and self.max_age < 0:
            raise SignerConfigurationError(
                "max_age must be non-negative", {"max_age": self.max_age}
            )

        logger.debug(f"Timestamps configured: epoch={self.epoch}, max_age={self.max_age}")


class SigningConfig:
    """Main configuration class that combines the signer and timestamp sections."""

    signer: SignerConfig
    timestamp: TimestampConfig

    def __init__(
        self,
        signer: Optional[SignerConfig] = None,
        timestamp: Optional[TimestampConfig] = None,
        # Flat parameters applied on top of the sections
        secrets: Optional[List[Union[str, bytes]]] = None,
        salt: Optional[Union[str, bytes]] = None,
        separator: Optional[str] = None,
        derivation_method: Optional[str] = None,
        digest: Optional[str] = None,
        epoch: Optional[int] = None,
        max_age: Optional[float] = None,
        **kwargs,
    ):
        if signer is None:
            if secrets is None:
                raise SignerConfigurationError("secrets must contain at least one secret")
            signer = SignerConfig(secrets=secrets)

        signer_overrides = {
            "secrets": secrets,
            "salt": salt,
            "separator": separator,
            "derivation_method": derivation_method,
            "digest": digest,
        }
        timestamp_overrides = {"epoch": epoch, "max_age": max_age}

        # Sections are copied so overrides never change objects the caller holds
        self.signer = replace(
            signer, **{k: v for k, v in signer_overrides.items() if v is not None}
        )
        self.timestamp = replace(
            timestamp or TimestampConfig(),
            **{k: v for k, v in timestamp_overrides.items() if v is not None},
        )

        for key in kwargs:
            logger.warning(f"Unknown configuration parameter ignored: {key}")

        self.__post_init__()

    def __post_init__(self):
        """Re-validate both sections after overrides were applied."""
        self.signer.__post_init__()
        self.timestamp.__post_init__()
        logger.debug("Signing configuration initialized")

    def __repr__(self) -> str:
        return f"SigningConfig(signer={self.signer!r}, timestamp={self.timestamp!r})"

    def build_keyring(self) -> KeyRing:
        return KeyRing(self.signer.secrets)

    def build_signer(self) -> Signer:
        return Signer(
            self.build_keyring(),
            salt=self.signer.salt,
            sep=self.signer.separator,
            key_derivation=self.signer.derivation_method,
            digest=self.signer.digest,
        )

    def build_timestamp_signer(self) -> TimestampSigner:
        return TimestampSigner(
            self.build_signer(),
            epoch=self.timestamp.epoch,
            max_age=self.timestamp.max_age,
        )

    def build_serializer(self, **options) -> Serializer:
        return Serializer(self.build_signer(), **options)

    def build_timed_serializer(self, **options) -> TimedSerializer:
        return TimedSerializer(self.build_timestamp_signer(), **options)

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """Export the configuration; secrets are omitted unless requested."""
        signer = {
            "salt": self.signer.salt.decode("utf-8")
            if isinstance(self.signer.salt, bytes)
            else self.signer.salt,
            "separator": self.signer.separator,
            "derivation_method": self.signer.derivation_method,
            "digest": self.signer.digest,
        }
        if include_secrets:
            signer["secrets"] = [
                s.decode("utf-8") if isinstance(s, bytes) else s for s in self.signer.secrets
            ]
        return {
            "signer": signer,
            "timestamp": {"epoch": self.timestamp.epoch, "max_age": self.timestamp.max_age},
        }

    @classmethod
    def create_legacy(cls, secrets: List[Union[str, bytes]]) -> "SigningConfig":
        """Configuration compatible with values produced by itsdangerous 0.x."""
        return cls(
            signer=SignerConfig(
                secrets=secrets,
                derivation_method=DerivationMethod.NAMESPACED_CONCAT.value,
                digest="sha1",
            ),
            timestamp=TimestampConfig(epoch=LEGACY_EPOCH),
        )


def create_signing_config(
    secrets: List[Union[str, bytes]],
    legacy_mode: bool = False,
    **overrides,
) -> SigningConfig:
    """
    Factory function for creating configurations.

    Args:
        secrets: Secrets, newest first
        legacy_mode: Start from the itsdangerous 0.x compatible configuration
        **overrides: Values for any SignerConfig or TimestampConfig field

    Returns:
        Configured SigningConfig instance
    """
    if legacy_mode:
        config = SigningConfig.create_legacy(secrets)
    else:
        config = SigningConfig(secrets=secrets)

    for key, value in overrides.items():
        found = False
        for section_name in ["signer", "timestamp"]:
            section = getattr(config, section_name)
            if hasattr(section, key):
                setattr(section, key, value)
                found = True
                break

        if not found:
            logger.warning(f"Unknown configuration parameter ignored: {key}")

    config.__post_init__()
    return config


def load_config_from_dict(data: Dict[str, Any]) -> SigningConfig:
    """
    Build a configuration from a dictionary.

    Accepts either nested ``{"signer": {...}, "timestamp": {...}}`` sections or
    flat keys.
    """
    if not isinstance(data, dict):
        raise SignerConfigurationError(
            f"Configuration must be a mapping, not {type(data).__name__}"
        )

    data = dict(data)
    signer_data = data.pop("signer", None)
    timestamp_data = data.pop("timestamp", None)

    try:
        signer = SignerConfig(**signer_data) if signer_data is not None else None
        timestamp = TimestampConfig(**timestamp_data) if timestamp_data is not None else None
    except TypeError as e:
        raise SignerConfigurationError(f"Invalid configuration section: {e}") from e

    return SigningConfig(signer=signer, timestamp=timestamp, **data)


def load_config_from_json(path: Union[str, Path]) -> SigningConfig:
    """Load a configuration from a JSON file."""
    path = Path(path)
    try:
        data = json_utils.loads(path.read_bytes())
    except OSError as e:
        raise SignerConfigurationError(
            f"Could not read configuration file: {path}", {"path": str(path)}
        ) from e
    except ValueError as e:
        raise SignerConfigurationError(
            f"Configuration file is not valid JSON: {path}", {"path": str(path)}
        ) from e

    logger.debug(f"Loaded signing configuration from {path}")
    return load_config_from_dict(data)
