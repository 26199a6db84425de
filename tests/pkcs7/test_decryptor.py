"""Tests for pkcs7cryptographer.pkcs7.decryptor."""

from __future__ import annotations

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from pkcs7cryptographer.core.errors import DecryptionError, InvalidFormatError, VerificationError
from pkcs7cryptographer.core.structures import Unverified, Verified
from pkcs7cryptographer.core.types import ContentCipher
from pkcs7cryptographer.pkcs7.decryptor import decrypt, decrypt_and_verify, decrypt_and_verify_strict
from pkcs7cryptographer.pkcs7.enveloper import envelope
from pkcs7cryptographer.pkcs7.signer import sign
from pkcs7cryptographer.pkcs7.trust import CertificateStore

PAYLOAD = b"the eagle has landed"


@pytest.fixture(scope="module")
def signed(signer_key, signer_cert):
    return sign(PAYLOAD, signer_key, signer_cert)


@pytest.fixture(scope="module")
def enveloped(signed, recipient_cert):
    return envelope(signed, recipient_cert)


@pytest.fixture()
def store(signer_cert):
    return CertificateStore([signer_cert])


class TestDecrypt:
    def test_returns_inner_der(self, enveloped, signed, recipient_key, recipient_cert):
        assert decrypt(enveloped, recipient_key, recipient_cert) == signed.to_der()

    def test_aes128_envelope(self, signed, recipient_key, recipient_cert):
        enveloped = envelope(signed, recipient_cert, cipher=ContentCipher.AES_128_CBC)
        assert decrypt(enveloped.to_der(), recipient_key, recipient_cert) == signed.to_der()

    def test_accepts_pem(self, enveloped, signed, recipient_key, recipient_cert):
        assert decrypt(enveloped.to_pem(), recipient_key, recipient_cert) == signed.to_der()

    def test_wrong_recipient(self, enveloped, signer_key, signer_cert):
        with pytest.raises(DecryptionError, match="No recipient entry"):
            decrypt(enveloped, signer_key, signer_cert)

    def test_key_does_not_match_certificate(self, enveloped, signer_key, recipient_cert):
        with pytest.raises(DecryptionError, match="does not match"):
            decrypt(enveloped, signer_key, recipient_cert)

    def test_non_rsa_key(self, enveloped, recipient_cert):
        with pytest.raises(DecryptionError, match="RSA key"):
            decrypt(enveloped, ec.generate_private_key(ec.SECP256R1()), recipient_cert)

    def test_corrupted_ciphertext(self, enveloped, recipient_key, recipient_cert):
        # Content is AES-CBC with the ciphertext last; inverting the last byte
        # of the penultimate block inverts the padding length byte.
        der = bytearray(enveloped.to_der())
        der[-17] ^= 0xFF
        with pytest.raises(DecryptionError, match="Envelope decryption failed"):
            decrypt(bytes(der), recipient_key, recipient_cert)

    def test_malformed_input(self, recipient_key, recipient_cert):
        with pytest.raises(InvalidFormatError):
            decrypt(b"definitely not an envelope", recipient_key, recipient_cert)

    def test_signed_data_is_not_an_envelope(self, signed, recipient_key, recipient_cert):
        with pytest.raises(InvalidFormatError, match="Expected Enveloped-Data"):
            decrypt(signed.to_der(), recipient_key, recipient_cert)


class TestDecryptAndVerify:
    def test_round_trip(self, enveloped, recipient_key, recipient_cert, signer_cert, store):
        result = decrypt_and_verify(enveloped, recipient_key, recipient_cert, signer_cert, store)
        assert isinstance(result, Verified)
        assert result.payload == PAYLOAD

    def test_wrong_signer_is_unverified(self, enveloped, recipient_key, recipient_cert, store):
        result = decrypt_and_verify(enveloped, recipient_key, recipient_cert, recipient_cert, store)
        assert isinstance(result, Unverified)

    def test_plaintext_not_signed_data(self, recipient_key, recipient_cert, signer_cert, store):
        raw = envelope(b"just some bytes", recipient_cert)
        with pytest.raises(DecryptionError, match="not Signed-Data"):
            decrypt_and_verify(raw, recipient_key, recipient_cert, signer_cert, store)

    def test_wrong_recipient(self, enveloped, signer_key, signer_cert, store):
        with pytest.raises(DecryptionError):
            decrypt_and_verify(enveloped, signer_key, signer_cert, signer_cert, store)


class TestDecryptAndVerifyStrict:
    def test_returns_payload(self, enveloped, recipient_key, recipient_cert, signer_cert, store):
        assert decrypt_and_verify_strict(enveloped, recipient_key, recipient_cert, signer_cert, store) == PAYLOAD

    def test_raises_on_bad_signer(self, enveloped, recipient_key, recipient_cert, store):
        with pytest.raises(VerificationError):
            decrypt_and_verify_strict(enveloped, recipient_key, recipient_cert, recipient_cert, store)
