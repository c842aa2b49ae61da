"""Unit tests for transaction assembly and txID maintenance."""

from __future__ import annotations

import hashlib
import json

import pytest

from tronwire.errors import DecodeError, ParseError, SizeMismatchError, TransactionError
from tronwire.pneuma.tx import (
    build_deploy_request,
    build_trigger_request,
    check_result,
    set_fee_limit,
    transaction_id,
    update_hash,
)

OWNER = "TRGhNNfnmgLegT4zHNjEqDSADjgmnHvubJ"
OWNER_HEX = "41a7d8a35b260395c14aa456297662092ba3b76fc0"
USDT = "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"
USDT_HEX = "41a614f803b6fd780986a42c78ec9c7f77e6ded13c"

# ref_block_bytes (field 1) = abcd, timestamp (field 14) = 1
RAW_HEX = "0a02abcd7001"


def sha256_hex(hex_data: str) -> str:
    return hashlib.sha256(bytes.fromhex(hex_data)).hexdigest()


def make_tx(raw_hex: str = RAW_HEX) -> dict:
    return {
        "txID": "stale",
        "raw_data": {"ref_block_bytes": "abcd", "timestamp": 1},
        "raw_data_hex": raw_hex,
    }


class TestBuildTriggerRequest:
    """Tests for triggersmartcontract request bodies."""

    def test_body(self) -> None:
        body = build_trigger_request(
            OWNER,
            USDT,
            "transfer(address,uint256)",
            [{"address": OWNER}, {"uint256": "1000"}],
            call_value=5,
        )
        assert body["owner_address"] == OWNER_HEX
        assert body["contract_address"] == USDT_HEX
        assert body["data"].startswith("a9059cbb")
        assert len(bytes.fromhex(body["data"])) == 4 + 64
        assert body["call_value"] == 5
        assert body["visible"] is False
        assert "token_id" not in body

    def test_params_as_json(self) -> None:
        from_list = build_trigger_request(OWNER, USDT, "f(uint8)", [{"uint8": 1}])
        from_json = build_trigger_request(OWNER, USDT, "f(uint8)", '[{"uint8": 1}]')
        assert from_list == from_json

    def test_no_params(self) -> None:
        body = build_trigger_request(OWNER, USDT, "totalSupply()")
        assert body["data"] == "18160ddd"

    def test_token_fields(self) -> None:
        body = build_trigger_request(OWNER, USDT, "f()", token_id="1000001", token_value=10)
        assert body["token_id"] == 1000001
        assert body["call_token_value"] == 10

    def test_token_fields_need_positive_amount(self) -> None:
        body = build_trigger_request(OWNER, USDT, "f()", token_id="1000001", token_value=0)
        assert "token_id" not in body

    def test_bad_token_id(self) -> None:
        with pytest.raises(ParseError):
            build_trigger_request(OWNER, USDT, "f()", token_id="abc", token_value=1)

    def test_bad_sender(self) -> None:
        with pytest.raises(DecodeError, match="invalid sender address"):
            build_trigger_request("Tbad", USDT, "f()")

    def test_bad_contract(self) -> None:
        with pytest.raises(DecodeError, match="invalid contract address"):
            build_trigger_request(OWNER, "Tbad", "f()")

    def test_encoding_error_propagates(self) -> None:
        with pytest.raises(SizeMismatchError):
            build_trigger_request(OWNER, USDT, "f(address[2])", [{"address[2]": [OWNER]}])


class TestBuildDeployRequest:
    """Tests for deploycontract request bodies."""

    def test_body(self) -> None:
        abi = {"entrys": [{"type": "Function", "name": "f", "inputs": []}]}
        body = build_deploy_request(OWNER, "Demo", abi, "0x6080", 50, 1000)
        assert body["owner_address"] == OWNER_HEX
        assert body["bytecode"] == "6080"
        assert json.loads(body["abi"]) == abi["entrys"]
        assert body["consume_user_resource_percent"] == 50
        assert body["origin_energy_limit"] == 1000

    def test_percent_range(self) -> None:
        with pytest.raises(ValueError, match="between 0 and 100"):
            build_deploy_request(OWNER, "Demo", [], "6080", consume_user_resource_percent=101)

    def test_origin_energy_limit(self) -> None:
        with pytest.raises(ValueError, match="greater than 0"):
            build_deploy_request(OWNER, "Demo", [], "6080", origin_energy_limit=0)

    def test_bad_bytecode(self) -> None:
        with pytest.raises(DecodeError, match="invalid bytecode"):
            build_deploy_request(OWNER, "Demo", [], "608")


class TestTransactionId:
    """Tests for txID recomputation."""

    def test_transaction_id(self) -> None:
        assert transaction_id(RAW_HEX) == sha256_hex(RAW_HEX)

    def test_update_hash_bare(self) -> None:
        tx = update_hash(make_tx())
        assert tx["txID"] == sha256_hex(RAW_HEX)

    def test_update_hash_wrapped(self) -> None:
        response = {"result": {"result": True}, "transaction": make_tx()}
        update_hash(response)
        assert response["transaction"]["txID"] == sha256_hex(RAW_HEX)

    def test_update_hash_requires_raw(self) -> None:
        with pytest.raises(DecodeError):
            update_hash({"txID": "x"})


class TestSetFeeLimit:
    """Tests for rewriting fee_limit inside raw_data_hex."""

    def test_appends_field(self) -> None:
        tx = set_fee_limit(make_tx(), 1000)
        # key 18<<3 = 0x90 0x01, 1000 = 0xe8 0x07
        assert tx["raw_data_hex"] == RAW_HEX + "9001e807"
        assert tx["raw_data"]["fee_limit"] == 1000
        assert tx["txID"] == sha256_hex(tx["raw_data_hex"])

    def test_replaces_existing_field(self) -> None:
        tx = set_fee_limit(make_tx(RAW_HEX + "9001e807"), 5)
        assert tx["raw_data_hex"] == RAW_HEX + "900105"

    def test_zero_removes_field(self) -> None:
        tx = make_tx(RAW_HEX + "9001e807")
        tx["raw_data"]["fee_limit"] = 1000
        set_fee_limit(tx, 0)
        assert tx["raw_data_hex"] == RAW_HEX
        assert "fee_limit" not in tx["raw_data"]

    def test_keeps_field_order(self) -> None:
        # field 19 (varint 1) must stay after fee_limit
        tx = set_fee_limit(make_tx(RAW_HEX + "9801" + "01"), 1000)
        assert tx["raw_data_hex"] == RAW_HEX + "9001e807" + "980101"

    def test_wrapped_response(self) -> None:
        response = {"transaction": make_tx()}
        set_fee_limit(response, 1000)
        assert response["transaction"]["raw_data_hex"].endswith("9001e807")

    def test_truncated_raw(self) -> None:
        with pytest.raises(DecodeError):
            set_fee_limit(make_tx("0a05ab"), 1000)

    def test_negative(self) -> None:
        with pytest.raises(ValueError):
            set_fee_limit(make_tx(), -1)


class TestCheckResult:
    """Tests for node result validation."""

    def test_success_shapes(self) -> None:
        for response in (
            {"result": {"result": True}, "transaction": {}},
            {"result": True, "txid": "ab"},
            {"txID": "ab", "raw_data_hex": RAW_HEX},
        ):
            assert check_result(response) is response

    def test_result_code(self) -> None:
        response = {"result": {"code": "CONTRACT_VALIDATE_ERROR", "message": b"no energy".hex()}}
        with pytest.raises(TransactionError, match="no energy") as info:
            check_result(response)
        assert info.value.code == "CONTRACT_VALIDATE_ERROR"

    def test_top_level_code(self) -> None:
        with pytest.raises(TransactionError, match="SIGERROR"):
            check_result({"code": "SIGERROR", "message": "not hex"})

    def test_error_key(self) -> None:
        with pytest.raises(TransactionError, match="bad owner"):
            check_result({"Error": "bad owner"})

    def test_empty(self) -> None:
        with pytest.raises(TransactionError):
            check_result({})
