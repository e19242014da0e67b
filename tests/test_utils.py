"""
Tests for nonce replay protection and wallet signature helpers.
"""

import uuid

import pytest
from solders.keypair import Keypair

from poap_gateway.config import settings
from poap_gateway.utils import nonce
from poap_gateway.utils.signature import (
    construct_claim_message,
    is_timestamp_fresh,
    is_valid_public_key,
    short_key,
    verify_wallet_signature,
)


class TestNonce:

    def test_accepts_uuid4(self):
        assert nonce.is_valid_nonce(str(uuid.uuid4()))

    @pytest.mark.parametrize("value", ["", "abc", str(uuid.uuid1()), "{%s}" % uuid.uuid4(), None])
    def test_rejects_non_uuid4(self, value):
        assert not nonce.is_valid_nonce(value)

    def test_replay_rejected(self):
        value = str(uuid.uuid4())
        assert nonce.consume_nonce(value, now=100)
        assert not nonce.consume_nonce(value, now=101)
        assert not nonce.consume_nonce(value.upper(), now=102)

    def test_reusable_after_expiry(self):
        value = str(uuid.uuid4())
        assert nonce.consume_nonce(value, now=100)
        assert nonce.consume_nonce(value, now=100 + settings.NONCE_EXPIRY_SECONDS)


class TestSignature:

    def test_valid_signature(self):
        kp = Keypair()
        message = construct_claim_message("camp-1", str(kp.pubkey()), "n", 1700000000)
        signature = kp.sign_message(message.encode())
        assert verify_wallet_signature(message, str(signature), str(kp.pubkey()))

    def test_signature_by_other_wallet(self):
        signer, claimant = Keypair(), Keypair()
        message = construct_claim_message("camp-1", str(claimant.pubkey()), "n", 1700000000)
        signature = signer.sign_message(message.encode())
        assert not verify_wallet_signature(message, str(signature), str(claimant.pubkey()))

    def test_tampered_message(self):
        kp = Keypair()
        message = construct_claim_message("camp-1", str(kp.pubkey()), "n", 1700000000)
        signature = kp.sign_message(message.encode())
        tampered = construct_claim_message("camp-2", str(kp.pubkey()), "n", 1700000000)
        assert not verify_wallet_signature(tampered, str(signature), str(kp.pubkey()))

    def test_malformed_inputs(self):
        kp = Keypair()
        assert not verify_wallet_signature("msg", "not-a-signature", str(kp.pubkey()))
        assert not verify_wallet_signature("msg", str(kp.sign_message(b"msg")), "bad-key")

    def test_message_format(self):
        assert construct_claim_message("c", "pk", "n", 5) == "poap-claim|c|pk|n|5"

    def test_timestamp_window(self):
        tolerance = settings.SIGNATURE_TOLERANCE_SECONDS
        assert is_timestamp_fresh(1000, now=1000 + tolerance)
        assert not is_timestamp_fresh(1000, now=1000 + tolerance + 1)
        assert not is_timestamp_fresh(1000 + tolerance + 1, now=1000)

    def test_public_key_validation(self):
        assert is_valid_public_key(str(Keypair().pubkey()))
        assert not is_valid_public_key("1234")
        assert not is_valid_public_key("0" * 44)

    def test_short_key(self):
        assert short_key("ABCDEFGHIJKLMNOP") == "ABCD...MNOP"
        assert short_key("short") == "short"
