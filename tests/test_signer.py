"""
Tests for relay request signing.
"""
import re
from unittest.mock import MagicMock

import pytest
from eth_account import Account
from hypothesis import given, settings, strategies as st

from flashbot_sdk.config import Method
from flashbot_sdk.exceptions import SigningError
from flashbot_sdk.models import RequestEnvelope, UserStatsParams
from flashbot_sdk.signer import LocalSigner, RequestSigner, body_message
from tests.test_helpers import TEST_PRIV_KEY

SIGNATURE_RE = re.compile(r"^0x[0-9a-f]{130}$")

_signer = RequestSigner(LocalSigner(TEST_PRIV_KEY))


def test_token_recovers_to_signer_address(account):
    body = '{"jsonrpc":"2.0","id":1,"method":"eth_sendBundle","params":[]}'
    token = _signer.sign(body)

    address, signature = token.split(":", 1)
    assert address == account.address
    assert Account.recover_message(body_message(body), signature=signature) == account.address


def test_signature_binds_whole_body():
    params = [UserStatsParams(block_number=17_000_000).to_wire()]
    first = RequestEnvelope(id=1, method=Method.GET_USER_STATS_V2, params=params)
    second = RequestEnvelope(id=2, method=Method.GET_USER_STATS_V2, params=params)

    assert first.serialize() != second.serialize()
    assert _signer.sign(first.serialize()) != _signer.sign(second.serialize())


def test_signing_is_deterministic():
    body = '{"a":1}'
    assert _signer.sign(body) == _signer.sign(body)


def test_body_message_uses_hex_keccak_digest():
    message = body_message("hello")
    # EIP-191 personal message over the 66-char "0x..." digest text
    assert message.version == b"E"
    assert message.body == b"0x1c8aff950685c2ed4bc3174f3472287b56d9517b9c948127319a09a7a36deac8"


def test_signing_failure_is_wrapped():
    failing = MagicMock()
    failing.address = "0x1234567890123456789012345678901234567890"
    failing.sign_message.side_effect = RuntimeError("key store locked")

    with pytest.raises(SigningError, match="key store locked") as excinfo:
        RequestSigner(failing).sign("{}")

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    failing.sign_message.assert_called_once()


def test_custom_signer_returning_hex_string():
    custom = MagicMock()
    custom.address = "0x1234567890123456789012345678901234567890"
    custom.sign_message.return_value = MagicMock(signature="ab" * 65)

    token = RequestSigner(custom).sign("{}")

    assert token == f"{custom.address}:0x{'ab' * 65}"


def test_missing_signer_rejected():
    with pytest.raises(ValueError, match="signer must be provided"):
        RequestSigner(None)


@settings(max_examples=50, deadline=None)
@given(body=st.text(max_size=200))
def test_token_has_single_separator(body):
    """Bodies with arbitrary content, colons included, give address:signature"""
    token = _signer.sign(body)

    assert token.count(":") == 1
    address, signature = token.split(":")
    assert address == _signer.address
    assert SIGNATURE_RE.match(signature)
