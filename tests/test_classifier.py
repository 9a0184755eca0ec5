import pytest
from pydantic import ValidationError

from watcher.classifier import classify
from watcher.entities import Transaction, TransferType

from conftest import STRANGER, TOKEN, WATCHED, make_tx, transfer_data, transfer_from_data


class TestClassify:
    """
    Unit tests for transfer type classification.
    """

    @pytest.mark.parametrize("data", ["0x", "0x12", "0xd0e30db0"])
    def test_value_with_short_data_is_native_transfer(self, data: str):
        tx = make_tx(to=WATCHED, value=10**18, data=data)
        assert classify(tx) == TransferType.NATIVE_TRANSFER

    def test_native_transfer_without_recipient(self):
        tx = make_tx(to=None, value=1, data="0x")
        assert classify(tx) == TransferType.NATIVE_TRANSFER

    def test_token_transfer(self):
        tx = make_tx(data=transfer_data(WATCHED, 100))
        assert len(tx.data) == 138
        assert classify(tx) == TransferType.TOKEN_TRANSFER

    def test_token_transfer_with_value_is_still_token_transfer(self):
        tx = make_tx(value=5, data=transfer_data(WATCHED, 100))
        assert classify(tx) == TransferType.TOKEN_TRANSFER

    def test_token_transfer_from(self):
        tx = make_tx(data=transfer_from_data(STRANGER, WATCHED, 100))
        assert len(tx.data) == 202
        assert classify(tx) == TransferType.TOKEN_TRANSFER_FROM

    def test_transfer_selector_with_wrong_length_is_contract_interaction(self):
        tx = make_tx(data=transfer_data(WATCHED, 100) + "00")
        assert classify(tx) == TransferType.CONTRACT_INTERACTION

    def test_transfer_from_selector_with_transfer_length(self):
        data = "0x23b872dd" + transfer_data(WATCHED, 1)[10:]
        tx = make_tx(data=data)
        assert classify(tx) == TransferType.CONTRACT_INTERACTION

    def test_contract_interaction(self):
        tx = make_tx(data="0x095ea7b3" + "00" * 64)
        assert classify(tx) == TransferType.CONTRACT_INTERACTION

    def test_contract_creation_is_unknown(self):
        tx = make_tx(to=None, value=0, data="0x6080604052" + "00" * 40)
        assert classify(tx) == TransferType.UNKNOWN

    def test_zero_value_empty_data_is_unknown(self):
        tx = make_tx(to=WATCHED, value=0, data="0x")
        assert classify(tx) == TransferType.UNKNOWN

    def test_zero_value_bare_selector_is_unknown(self):
        tx = make_tx(to=TOKEN, value=0, data="0xd0e30db0")
        assert classify(tx) == TransferType.UNKNOWN

    def test_uppercase_calldata_is_normalized(self):
        tx = make_tx(data=transfer_data(WATCHED, 100).upper().replace("0X", "0x", 1))
        assert classify(tx) == TransferType.TOKEN_TRANSFER


class TestTransactionEntity:

    def test_rejects_unprefixed_calldata(self):
        with pytest.raises(ValidationError):
            make_tx(data="a9059cbb")

    def test_rejects_negative_value(self):
        with pytest.raises(ValidationError):
            make_tx(value=-1)

    def test_accepts_wire_field_name(self):
        tx = Transaction.model_validate({
            "hash": "0x" + "01" * 32,
            "from": STRANGER,
            "to": None,
            "value": 0,
            "data": "0x",
        })
        assert tx.from_address == STRANGER
        assert tx.to is None
