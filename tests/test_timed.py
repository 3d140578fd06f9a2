"""
Tests for the TimestampSigner.
"""

from datetime import datetime, timedelta, timezone

import pytest

from conftest import FIXED_NOW, FakeClock
from tokenseal import LEGACY_EPOCH, Signer, TimestampSigner
from tokenseal.encoding import ALPHABET, encode, encode_int
from tokenseal.error_handling import (
    BadData,
    BadSignature,
    BadTimeSignature,
    SignatureExpired,
    SignerConfigurationError,
)


class TestCompatibility:
    """Timestamped signatures must match other itsdangerous implementations."""

    def test_signature_over_value_and_timestamp(self):
        assert Signer("hello").get_signature(b"hello world.XP57dg") == "uBK_KvrfABr48ZHk6IrBINjpqp8"

    def test_legacy_epoch_timestamp_segment(self):
        clock = FakeClock(1560181622)
        signer = TimestampSigner(Signer("hello world"), epoch=LEGACY_EPOCH, clock=clock)
        signed = signer.sign(b"[1,2,3]")
        assert signed.split(".")[1] == "D-AM9g"
        assert Signer("hello world").get_signature(b"[1,2,3].D-AM9g") == "nHmuOEE3v5DuwHEW9noSBOvExO0"

    def test_unix_epoch_timestamp_segment(self):
        signer = TimestampSigner(Signer("hello"), clock=FakeClock(1560181622))
        assert signer.sign(b"hello world").split(".")[1] == "XP57dg"


class TestSignUnsign:
    """Test basic timestamped signing."""

    def test_round_trip(self, timestamp_signer):
        signed = timestamp_signer.sign(b"hello world")
        assert timestamp_signer.unsign(signed) == b"hello world"

    def test_wire_format(self, timestamp_signer):
        value, timestamp, signature = timestamp_signer.sign(b"hello").split(".")
        assert value == encode(b"hello")
        assert timestamp == encode_int(FIXED_NOW)
        assert signature

    def test_get_timestamp(self, timestamp_signer):
        assert timestamp_signer.get_timestamp() == FIXED_NOW

    def test_epoch_offsets_timestamp(self, signer, clock):
        timed = TimestampSigner(signer, epoch=1_000_000_000, clock=clock)
        assert timed.get_timestamp() == FIXED_NOW - 1_000_000_000

    def test_unsign_with_timestamp(self, timestamp_signer):
        result = timestamp_signer.unsign_with_timestamp(timestamp_signer.sign(b"value"))
        assert result.payload == b"value"
        assert result.timestamp == FIXED_NOW
        assert result.signed_at == datetime.fromtimestamp(FIXED_NOW, tz=timezone.utc)

    def test_signed_at_respects_epoch(self):
        timed = TimestampSigner(Signer("k"), epoch=LEGACY_EPOCH, clock=FakeClock(1560181622))
        result = timed.unsign_with_timestamp(timed.sign(b"v"))
        assert result.timestamp == 1560181622 - LEGACY_EPOCH
        assert result.signed_at == datetime.fromtimestamp(1560181622, tz=timezone.utc)

    def test_from_secret(self, clock):
        timed = TimestampSigner.from_secret("secret", clock=clock, salt="x", digest="sha256")
        assert timed.signer.digest == "sha256"
        assert timed.unsign(timed.sign(b"v")) == b"v"

    def test_negative_epoch_rejected(self, signer):
        with pytest.raises(SignerConfigurationError):
            TimestampSigner(signer, epoch=-1)

    def test_clock_before_epoch(self, signer):
        timed = TimestampSigner(signer, epoch=FIXED_NOW + 10, clock=FakeClock(FIXED_NOW))
        with pytest.raises(SignerConfigurationError) as exc_info:
            timed.sign(b"payload")
        assert exc_info.value.context["timestamp"] == -10

    def test_negative_explicit_timestamp(self, timestamp_signer):
        with pytest.raises(SignerConfigurationError):
            timestamp_signer.sign_with_timestamp(b"payload", -1)

    def test_key_rotation(self, clock):
        old = TimestampSigner(Signer("old"), clock=clock)
        rotated = TimestampSigner(Signer(["new", "old"]), clock=clock)
        assert rotated.unsign(old.sign(b"value"), max_age=10) == b"value"


class TestExpiry:
    """Test maximum age enforcement."""

    T = 1_000_000

    def make_signer(self, now):
        return TimestampSigner(Signer("secret"), clock=FakeClock(now))

    def test_expired(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        with pytest.raises(SignatureExpired) as exc_info:
            self.make_signer(self.T + 61).unsign(signed, max_age=60)

        error = exc_info.value
        assert error.timestamp == self.T
        assert error.age == 61
        assert error.max_age == 60
        assert error.date_signed == datetime.fromtimestamp(self.T, tz=timezone.utc)

    def test_not_expired(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        assert self.make_signer(self.T + 59).unsign(signed, max_age=60) == b"payload"

    def test_exactly_max_age_is_valid(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        assert self.make_signer(self.T + 60).unsign(signed, max_age=60) == b"payload"

    def test_timedelta_max_age(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        with pytest.raises(SignatureExpired):
            self.make_signer(self.T + 61).unsign(signed, max_age=timedelta(minutes=1))

    def test_no_max_age_never_expires(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        assert self.make_signer(self.T + 10**9).unsign(signed) == b"payload"

    def test_future_timestamp_accepted(self):
        signer = self.make_signer(self.T)
        signed = signer.sign_with_timestamp(b"payload", self.T + 3600)
        assert signer.unsign(signed, max_age=10) == b"payload"

    def test_default_max_age(self, clock):
        timed = TimestampSigner(Signer("secret"), max_age=30, clock=clock)
        signed = timed.sign(b"payload")
        clock.advance(31)

        with pytest.raises(SignatureExpired):
            timed.unsign(signed)
        assert timed.unsign(signed, max_age=None) == b"payload"
        assert timed.unsign(signed, max_age=60) == b"payload"

    def test_invalid_max_age_type(self, timestamp_signer):
        signed = timestamp_signer.sign(b"payload")
        with pytest.raises(SignerConfigurationError):
            timestamp_signer.unsign(signed, max_age="60")

    def test_expired_is_a_signature_error(self):
        signed = self.make_signer(self.T).sign_with_timestamp(b"payload", self.T)
        with pytest.raises(BadSignature):
            self.make_signer(self.T + 100).unsign(signed, max_age=60)

    def test_validate(self, timestamp_signer, clock):
        signed = timestamp_signer.sign(b"payload")
        assert timestamp_signer.validate(signed, max_age=10)
        clock.advance(11)
        assert not timestamp_signer.validate(signed, max_age=10)
        assert timestamp_signer.validate(signed)


class TestMalformedInput:
    """Test failures for structurally or cryptographically bad values."""

    def test_plain_signed_value_is_bad_data(self, timestamp_signer):
        plain = timestamp_signer.signer.sign(b"payload")
        with pytest.raises(BadData) as exc_info:
            timestamp_signer.unsign(plain)
        assert not isinstance(exc_info.value, BadSignature)

    def test_no_separator(self, timestamp_signer):
        with pytest.raises(BadData) as exc_info:
            timestamp_signer.unsign("not-a-signed-value")
        assert not isinstance(exc_info.value, BadSignature)

    def test_timed_value_rejected_by_plain_signer(self, timestamp_signer):
        with pytest.raises(BadData):
            timestamp_signer.signer.unsign(timestamp_signer.sign(b"payload"))

    def test_tampered_timestamp(self, timestamp_signer):
        value, _, signature = timestamp_signer.sign(b"payload").split(".")
        tampered = f"{value}.{encode_int(FIXED_NOW + 1000)}.{signature}"
        with pytest.raises(BadSignature) as exc_info:
            timestamp_signer.unsign(tampered)
        assert not isinstance(exc_info.value, BadTimeSignature)

    def test_altered_unused_bits_of_signature(self, timestamp_signer):
        value, timestamp, signature = timestamp_signer.sign(b"payload").split(".")
        last = ALPHABET[ALPHABET.index(signature[-1]) ^ 0b10]
        tampered = f"{value}.{timestamp}.{signature[:-1]}{last}"
        with pytest.raises(BadData):
            timestamp_signer.unsign(tampered)
        assert not timestamp_signer.validate(tampered)

    def test_wrong_secret(self, timestamp_signer, clock):
        other = TimestampSigner(Signer("other"), clock=clock)
        with pytest.raises(BadSignature):
            other.unsign(timestamp_signer.sign(b"payload"))

    @pytest.mark.parametrize("timestamp_segment", ["a!b", "AAAAAAAAAAAA", "a"])
    def test_malformed_timestamp(self, timestamp_signer, timestamp_segment):
        signed = timestamp_signer.signer.sign_segments(encode(b"payload"), timestamp_segment)
        with pytest.raises(BadTimeSignature) as exc_info:
            timestamp_signer.unsign(signed)
        assert not isinstance(exc_info.value, SignatureExpired)

    def test_out_of_range_timestamp(self, timestamp_signer):
        signed = timestamp_signer.sign_with_timestamp(b"payload", 2**64 - 1)
        assert timestamp_signer.unsign(signed, max_age=60) == b"payload"
        with pytest.raises(BadTimeSignature):
            timestamp_signer.unsign_with_timestamp(signed)
