"""Tests for domain value objects (VersionNumber, Checksum)."""

import hashlib

import pytest

from app.domain.value_objects import Checksum, VersionNumber


class TestVersionNumber:
    def test_parse_dotted_triple(self) -> None:
        v = VersionNumber.parse("1.2.7")
        assert (v.major, v.minor, v.patch) == (1, 2, 7)
        assert str(v) == "1.2.7"

    def test_next_patch_increments_last_component(self) -> None:
        assert str(VersionNumber.parse("1.2.7").next_patch()) == "1.2.8"
        assert str(VersionNumber.parse("3.0.9").next_patch()) == "3.0.10"

    def test_initial_is_1_0_0(self) -> None:
        assert VersionNumber.INITIAL == "1.0.0"
        assert VersionNumber.initial() == VersionNumber(1, 0, 0)

    def test_ordering_is_numeric(self) -> None:
        assert VersionNumber.parse("1.10.0") > VersionNumber.parse("1.9.0")
        assert VersionNumber.parse("2.0.0") > VersionNumber.parse("1.99.99")
        assert VersionNumber.parse("1.0.1") == VersionNumber(1, 0, 1)

    @pytest.mark.parametrize(
        "label", ["", "1", "1.0", "1.0.0.0", "v1.0.0", "1.a.0", "01.0.0", "-1.0.0"]
    )
    def test_malformed_labels_raise(self, label: str) -> None:
        with pytest.raises(ValueError):
            VersionNumber.parse(label)
        assert VersionNumber.is_valid(label) is False

    def test_is_valid_none(self) -> None:
        assert VersionNumber.is_valid(None) is False

    def test_negative_component_rejected(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            VersionNumber(1, -1, 0)


class TestChecksum:
    def test_accepts_sha256_hex(self) -> None:
        digest = hashlib.sha256(b"payload").hexdigest()
        assert str(Checksum(digest)) == digest

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError, match="non-empty"):
            Checksum("")

    def test_rejects_uppercase_or_short(self) -> None:
        with pytest.raises(ValueError, match="SHA-256"):
            Checksum("ABC123")
        with pytest.raises(ValueError, match="SHA-256"):
            Checksum(hashlib.sha256(b"x").hexdigest().upper())
