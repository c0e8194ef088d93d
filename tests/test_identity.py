"""Tests for wallet identity ingestion."""

from __future__ import annotations

import base58
import pytest

from candy_allowlist.identity import MalformedIdentity, canonicalize, canonicalize_all


def _pubkey(seed: int) -> str:
    return base58.b58encode(bytes([seed]) * 32).decode()


class TestBase58:
    def test_valid_pubkey(self):
        addr = _pubkey(7)
        assert canonicalize(addr) == addr

    def test_strips_whitespace(self):
        addr = _pubkey(9)
        assert canonicalize(f"  {addr}\n") == addr

    def test_invalid_alphabet(self):
        with pytest.raises(MalformedIdentity):
            canonicalize("0OIl" * 11)

    def test_wrong_length(self):
        with pytest.raises(MalformedIdentity, match="expected 32"):
            canonicalize("abc")

    def test_empty(self):
        with pytest.raises(MalformedIdentity):
            canonicalize("   ")


class TestHexAndRaw:
    def test_hex_with_prefix(self):
        assert canonicalize("0xABcd", "hex") == "0xABcd"

    def test_hex_odd_length(self):
        with pytest.raises(MalformedIdentity):
            canonicalize("abc", "hex")

    def test_hex_bad_digits(self):
        with pytest.raises(MalformedIdentity):
            canonicalize("zz", "hex")

    def test_raw_accepts_any_text(self):
        assert canonicalize("alice", "raw") == "alice"

    def test_bytes_become_hex_text(self):
        assert canonicalize(b"\x01\xab", "raw") == "01ab"
        assert canonicalize(bytearray(b"\x01\xab"), "hex") == "01ab"

    def test_non_text_rejected(self):
        with pytest.raises(MalformedIdentity):
            canonicalize(42, "raw")  # type: ignore[arg-type]

    def test_unknown_encoding(self):
        with pytest.raises(ValueError, match="Unknown identity encoding"):
            canonicalize("alice", "bech32")

    def test_unknown_encoding_is_not_malformed_identity(self):
        try:
            canonicalize("alice", "bech32")
        except MalformedIdentity:
            pytest.fail("unknown encoding reported as a malformed identity")
        except ValueError:
            pass


class TestCanonicalizeAll:
    def test_preserves_order_and_duplicates(self):
        a, b = _pubkey(1), _pubkey(2)
        assert canonicalize_all([b, a, b]) == [b, a, b]

    def test_reports_position(self):
        with pytest.raises(MalformedIdentity, match="entry 1"):
            canonicalize_all([_pubkey(1), "not-base58-0OIl", _pubkey(2)])
