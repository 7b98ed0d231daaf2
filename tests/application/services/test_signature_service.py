"""Unit tests for SignatureService"""

from datetime import date

import pytest

from certportal.application.services.signature_service import (
    HMACSHA256Algorithm, SignatureService)


@pytest.fixture
def signer():
    return SignatureService("test-signing-key")


@pytest.fixture
def certificate_fields():
    return {
        "certificate_number": "CERT2026ABCDEFGHIJ",
        "application_id": "app_123",
        "certificate_type": "income",
        "issued_to": "Asha Verma",
        "issued_date": date(2026, 3, 1),
        "valid_until": date(2027, 3, 1),
    }


def test_sign_is_deterministic(signer, certificate_fields):
    assert signer.sign(**certificate_fields) == signer.sign(**certificate_fields)


def test_signature_is_hex_sha256(signer, certificate_fields):
    signature = signer.sign(**certificate_fields)

    assert len(signature) == 64
    int(signature, 16)


def test_verify_accepts_matching_signature(signer, certificate_fields):
    signature = signer.sign(**certificate_fields)

    assert signer.verify(signature, **certificate_fields) is True


def test_verify_detects_tampered_field(signer, certificate_fields):
    """
    GIVEN a signature over a certificate
    WHEN the holder name is changed
    THEN verification fails
    """
    signature = signer.sign(**certificate_fields)
    certificate_fields["issued_to"] = "Someone Else"

    assert signer.verify(signature, **certificate_fields) is False


def test_different_keys_produce_different_signatures(certificate_fields):
    first = SignatureService("key-one").sign(**certificate_fields)
    second = SignatureService("key-two").sign(**certificate_fields)

    assert first != second


def test_open_ended_validity_is_signed(signer, certificate_fields):
    certificate_fields["valid_until"] = None
    signature = signer.sign(**certificate_fields)

    assert signer.verify(signature, **certificate_fields) is True
    certificate_fields["valid_until"] = date(2030, 1, 1)
    assert signer.verify(signature, **certificate_fields) is False


def test_canonical_json_sorts_keys():
    assert SignatureService.canonical_json({"b": 1, "a": 2}) == '{"a":2,"b":1}'


def test_empty_key_is_rejected():
    with pytest.raises(ValueError):
        SignatureService("")


def test_hmac_algorithm_matches_known_vector():
    # Published HMAC-SHA256 value for this key and message
    digest = HMACSHA256Algorithm().sign(b"key", "The quick brown fox jumps over the lazy dog")
    assert digest == "f7bc83f430538424b13298e6aa6fb143ef4d59a14946175997479dbc2d1a3cd8"
