"""
HTTP client for the TRON full-node API.

Lightweight wrapper over the node's ``/wallet/*`` HTTP endpoints: uses httpx
for transport and the local ABI encoder for contract payloads. Addresses are
always sent as 41-prefixed hex (``visible=false``); responses are returned as
the node's JSON, untouched except for contract calls that need a fee limit
applied (see ``tx.set_fee_limit``).
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Iterable, Mapping, Optional, Sequence, Union

import httpx

from ..config import API_KEY_HEADER, ClientConfig
from ..errors import DecodeError, ParseError, RpcError, TransactionError
from ..sigil.address import TronAddress
from .abi import ParamLike, decode_result
from .tx import (
    AddressLike,
    build_deploy_request,
    build_trigger_request,
    check_result,
    set_fee_limit,
)

logger = logging.getLogger(__name__)

RESOURCE_BANDWIDTH = "BANDWIDTH"
RESOURCE_ENERGY = "ENERGY"

# Stake 1.0 only allows a 3-day freeze
FREEZE_DURATION_DAYS = 3

_DECIMAL_RE = re.compile(r"^[+-]?[0-9]+\Z")

Params = Union[str, Iterable[ParamLike], None]


def _hex(value: AddressLike, role: str = "account") -> str:
    try:
        return TronAddress.parse(value).to_hex()
    except DecodeError as exc:
        raise DecodeError(f"failed to decode {role} address: {exc}") from exc


def _text_hex(value: str) -> str:
    return value.encode("utf-8").hex()


def _frozen_int(value: Union[str, int], what: str, days: Union[str, int]) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    text = str(value)
    if not _DECIMAL_RE.match(text):
        raise ParseError(f"failed to parse frozen {what} for key {days}: {text!r}")
    return int(text, 10)


def _check_resource(resource: str) -> str:
    resource = resource.upper()
    if resource not in (RESOURCE_BANDWIDTH, RESOURCE_ENERGY):
        raise ValueError(f"resource must be BANDWIDTH or ENERGY, got {resource}")
    return resource


class TronClient:
    """
    Full-node HTTP API client.

    Usage::

        with TronClient(load_config()) as client:
            tx = client.trigger_contract(owner, token, "transfer(address,uint256)",
                                         [{"address": to}, {"uint256": "1000000"}])
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.config = config or ClientConfig()

        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.config.api_key:
            headers[API_KEY_HEADER] = self.config.api_key

        self._http = httpx.Client(
            base_url=self.config.endpoint.rstrip("/"),
            headers=headers,
            timeout=self.config.timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TronClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def post(self, method: str, payload: Optional[Mapping[str, Any]] = None) -> Any:
        """
        POST to ``/wallet/<method>`` and return the decoded JSON body.

        Transport errors, 429 and 5xx responses are retried with linear
        backoff up to ``config.max_retries`` attempts.

        Raises:
            RpcError: If the request ultimately fails or the body is not JSON
        """
        path = method if method.startswith("/") else f"/wallet/{method}"
        body = dict(payload or {})
        attempts = self.config.max_retries
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            logger.debug("POST %s attempt %d/%d", path, attempt, attempts)
            try:
                response = self._http.post(path, json=body)
            except httpx.TransportError as exc:
                last_error = exc
                if attempt < attempts:
                    logger.warning("%s failed (%s), retrying", path, exc)
                    time.sleep(self.config.backoff_seconds * attempt)
                    continue
                break

            if response.status_code == 429 or response.status_code >= 500:
                last_error = RpcError(f"HTTP {response.status_code} from {path}")
                if attempt < attempts:
                    logger.warning("%s returned HTTP %d, retrying", path, response.status_code)
                    time.sleep(self.config.backoff_seconds * attempt)
                    continue
                break

            if response.is_error:
                raise RpcError(f"HTTP {response.status_code} from {path}: {response.text}")

            try:
                return response.json()
            except ValueError as exc:
                raise RpcError(f"non-JSON response from {path}") from exc

        raise RpcError(f"{path} failed after {attempts} attempts: {last_error}") from last_error

    def _build(self, method: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST a transaction-building call and validate the node's result."""
        body = {**payload, "visible": False}
        return check_result(self.post(method, body))

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def get_account(self, address: AddressLike) -> dict[str, Any]:
        addr = _hex(address)
        account = self.post("getaccount", {"address": addr, "visible": False})
        if not account or str(account.get("address", "")).lower() != addr:
            raise RpcError("account not found")
        return account

    def get_account_balance(self, address: AddressLike) -> int:
        """Balance in sun."""
        return int(self.get_account(address).get("balance", 0))

    def get_account_resource(self, address: AddressLike) -> dict[str, Any]:
        return self.post("getaccountresource", {"address": _hex(address), "visible": False})

    def create_account(self, owner: AddressLike, address: AddressLike) -> dict[str, Any]:
        return self._build(
            "createaccount",
            {"owner_address": _hex(owner, "from"), "account_address": _hex(address, "target")},
        )

    def update_account(self, owner: AddressLike, account_name: str) -> dict[str, Any]:
        return self._build(
            "updateaccount",
            {"owner_address": _hex(owner, "from"), "account_name": _text_hex(account_name)},
        )

    def get_reward(self, address: AddressLike) -> int:
        result = self.post("getReward", {"address": _hex(address), "visible": False})
        return int(result.get("reward", 0))

    # ------------------------------------------------------------------
    # Transfers and transactions
    # ------------------------------------------------------------------

    def create_transaction(self, owner: AddressLike, to: AddressLike, amount: int) -> dict[str, Any]:
        """Build an unsigned TRX transfer of ``amount`` sun."""
        return self._build(
            "createtransaction",
            {"owner_address": _hex(owner, "from"), "to_address": _hex(to, "to"), "amount": amount},
        )

    def broadcast_transaction(self, signed_tx: Mapping[str, Any]) -> dict[str, Any]:
        result = check_result(self.post("broadcasttransaction", signed_tx))
        if result.get("result") is not True:
            raise TransactionError(f"broadcast failed: {result}")
        return result

    def get_transaction_by_id(self, tx_id: str) -> dict[str, Any]:
        tx = self.post("gettransactionbyid", {"value": tx_id})
        if not tx:
            raise RpcError(f"transaction {tx_id} not found")
        return tx

    def get_transaction_info_by_id(self, tx_id: str) -> dict[str, Any]:
        info = self.post("gettransactioninfobyid", {"value": tx_id})
        if not info:
            raise RpcError(f"transaction info {tx_id} not found")
        return info

    def get_pending_size(self) -> int:
        return int(self.post("getpendingsize").get("pendingSize", 0))

    # ------------------------------------------------------------------
    # Blocks and network
    # ------------------------------------------------------------------

    def get_now_block(self) -> dict[str, Any]:
        return self.post("getnowblock")

    def get_block_by_num(self, num: int) -> dict[str, Any]:
        return self.post("getblockbynum", {"num": num})

    def get_block_by_id(self, block_id: str) -> dict[str, Any]:
        block = self.post("getblockbyid", {"value": block_id})
        if not block:
            raise RpcError(f"block {block_id} not found")
        return block

    def get_next_maintenance_time(self) -> int:
        return int(self.post("getnextmaintenancetime").get("num", 0))

    def list_nodes(self) -> list[dict[str, Any]]:
        return self.post("listnodes").get("nodes", [])

    def get_bandwidth_prices(self) -> str:
        return self.post("getbandwidthprices").get("prices", "")

    def get_energy_prices(self) -> str:
        return self.post("getenergyprices").get("prices", "")

    def get_memo_fee(self) -> str:
        return self.post("getmemofee").get("prices", "")

    def get_burn_trx(self) -> int:
        return int(self.post("getburntrx").get("burnTrxAmount", 0))

    # ------------------------------------------------------------------
    # Assets (TRC-10)
    # ------------------------------------------------------------------

    def get_asset_issue_by_id(self, token_id: str) -> dict[str, Any]:
        return self.post("getassetissuebyid", {"value": token_id})

    def get_asset_issue_by_name(self, name: str) -> dict[str, Any]:
        return self.post("getassetissuebyname", {"value": _text_hex(name)})

    def get_asset_issue_by_account(self, address: AddressLike) -> list[dict[str, Any]]:
        result = self.post("getassetissuebyaccount", {"address": _hex(address), "visible": False})
        return result.get("assetIssue", [])

    def get_asset_issue_list(self, page: int = 0, limit: int = 20) -> list[dict[str, Any]]:
        if page < 0 or limit <= 0:
            raise ValueError("page must be >= 0 and limit > 0")
        result = self.post("getpaginatedassetissuelist", {"offset": page * limit, "limit": limit})
        return result.get("assetIssue", [])

    def create_asset_issue(
        self,
        owner: AddressLike,
        name: str,
        abbr: str,
        total_supply: int,
        trx_num: int,
        ico_num: int,
        start_time: int,
        end_time: int,
        precision: int = 0,
        description: str = "",
        url: str = "",
        free_asset_net_limit: int = 0,
        public_free_asset_net_limit: int = 0,
        vote_score: int = 0,
        frozen_supply: Optional[Mapping[Union[str, int], Union[str, int]]] = None,
    ) -> dict[str, Any]:
        """
        Issue a TRC-10 token.

        Args:
            owner: Issuer address
            name: Token name
            abbr: Token abbreviation
            total_supply: Total supply, > 0
            trx_num: TRX (sun) side of the ICO exchange rate, > 0
            ico_num: Token side of the ICO exchange rate, > 0
            start_time: ICO start in ms since epoch, must be in the future
            end_time: ICO end in ms since epoch, after ``start_time``
            precision: Decimal places, 0..6
            frozen_supply: Frozen days -> frozen amount

        Raises:
            ValueError: A numeric argument is out of range
            ParseError: A frozen-supply entry is not a base-10 integer
        """
        if not 0 <= precision <= 6:
            raise ValueError("precision must be between 0 and 6")
        if total_supply <= 0:
            raise ValueError("total supply must be > 0")
        if trx_num <= 0:
            raise ValueError("trx_num must be > 0")
        if ico_num <= 0:
            raise ValueError("ico_num must be > 0")
        if start_time <= int(time.time() * 1000):
            raise ValueError("start time must be greater than current time")
        if end_time <= start_time:
            raise ValueError("end time must be greater than start time")
        if free_asset_net_limit < 0:
            raise ValueError("free asset net limit must be >= 0")
        if public_free_asset_net_limit < 0:
            raise ValueError("public free asset net limit must be >= 0")

        frozen = [
            {
                "frozen_amount": _frozen_int(amount, "amount", days),
                "frozen_days": _frozen_int(days, "days", days),
            }
            for days, amount in (frozen_supply or {}).items()
        ]

        body: dict[str, Any] = {
            "owner_address": _hex(owner, "from"),
            "name": _text_hex(name),
            "abbr": _text_hex(abbr),
            "total_supply": total_supply,
            "trx_num": trx_num,
            "num": ico_num,
            "precision": precision,
            "start_time": start_time,
            "end_time": end_time,
            "description": _text_hex(description),
            "url": _text_hex(url),
            "free_asset_net_limit": free_asset_net_limit,
            "public_free_asset_net_limit": public_free_asset_net_limit,
            "vote_score": vote_score,
        }
        if frozen:
            body["frozen_supply"] = frozen
        return self._build("createassetissue", body)

    def update_asset(
        self,
        owner: AddressLike,
        description: str,
        url: str,
        new_limit: int,
        new_public_limit: int,
    ) -> dict[str, Any]:
        return self._build(
            "updateasset",
            {
                "owner_address": _hex(owner, "from"),
                "description": _text_hex(description),
                "url": _text_hex(url),
                "new_limit": new_limit,
                "new_public_limit": new_public_limit,
            },
        )

    def unfreeze_asset(self, owner: AddressLike) -> dict[str, Any]:
        return self._build("unfreezeasset", {"owner_address": _hex(owner, "from")})

    def transfer_asset(
        self, owner: AddressLike, to: AddressLike, token_id: str, amount: int
    ) -> dict[str, Any]:
        return self._build(
            "transferasset",
            {
                "owner_address": _hex(owner, "from"),
                "to_address": _hex(to, "to"),
                "asset_name": _text_hex(token_id),
                "amount": amount,
            },
        )

    def participate_asset_issue(
        self, owner: AddressLike, issuer: AddressLike, token_id: str, amount: int
    ) -> dict[str, Any]:
        return self._build(
            "participateassetissue",
            {
                "owner_address": _hex(owner, "from"),
                "to_address": _hex(issuer, "issuer"),
                "asset_name": _text_hex(token_id),
                "amount": amount,
            },
        )

    # ------------------------------------------------------------------
    # Witnesses and governance
    # ------------------------------------------------------------------

    def list_witnesses(self) -> list[dict[str, Any]]:
        return self.post("listwitnesses").get("witnesses", [])

    def create_witness(self, owner: AddressLike, url: str) -> dict[str, Any]:
        return self._build("createwitness", {"owner_address": _hex(owner, "from"), "url": _text_hex(url)})

    def update_witness(self, owner: AddressLike, url: str) -> dict[str, Any]:
        return self._build(
            "updatewitness", {"owner_address": _hex(owner, "from"), "update_url": _text_hex(url)}
        )

    def vote_witness_account(self, owner: AddressLike, votes: Mapping[str, int]) -> dict[str, Any]:
        """
        Vote for super representatives.

        Args:
            owner: Voter address
            votes: Witness address -> vote count
        """
        entries = [
            {"vote_address": _hex(witness, "witness"), "vote_count": count}
            for witness, count in votes.items()
        ]
        return self._build("votewitnessaccount", {"owner_address": _hex(owner, "from"), "votes": entries})

    def get_brokerage(self, witness: AddressLike) -> int:
        """Witness brokerage ratio in percent."""
        result = self.post("getBrokerage", {"address": _hex(witness, "witness"), "visible": False})
        return int(result.get("brokerage", 0))

    def update_brokerage(self, owner: AddressLike, brokerage: int) -> dict[str, Any]:
        if not 0 <= brokerage <= 100:
            raise ValueError("brokerage should be between 0 and 100")
        return self._build("updateBrokerage", {"owner_address": _hex(owner, "from"), "brokerage": brokerage})

    # ------------------------------------------------------------------
    # Staking and resources
    # ------------------------------------------------------------------

    def freeze_balance(
        self,
        owner: AddressLike,
        resource: str,
        amount: int,
        receiver: Optional[AddressLike] = None,
    ) -> dict[str, Any]:
        """Stake TRX the Stake 1.0 way, optionally for ``receiver``."""
        body: dict[str, Any] = {
            "owner_address": _hex(owner, "from"),
            "frozen_balance": amount,
            "frozen_duration": FREEZE_DURATION_DAYS,
            "resource": _check_resource(resource),
        }
        if receiver:
            body["receiver_address"] = _hex(receiver, "delegateTo")
        return self._build("freezebalance", body)

    def unfreeze_balance(
        self, owner: AddressLike, resource: str, receiver: Optional[AddressLike] = None
    ) -> dict[str, Any]:
        """Release TRX staked with ``freeze_balance``."""
        body: dict[str, Any] = {
            "owner_address": _hex(owner, "from"),
            "resource": _check_resource(resource),
        }
        if receiver:
            body["receiver_address"] = _hex(receiver, "delegateTo")
        return self._build("unfreezebalance", body)

    def freeze_balance_v2(self, owner: AddressLike, resource: str, amount: int) -> dict[str, Any]:
        return self._build(
            "freezebalancev2",
            {
                "owner_address": _hex(owner, "from"),
                "frozen_balance": amount,
                "resource": _check_resource(resource),
            },
        )

    def unfreeze_balance_v2(self, owner: AddressLike, resource: str, amount: int) -> dict[str, Any]:
        return self._build(
            "unfreezebalancev2",
            {
                "owner_address": _hex(owner, "from"),
                "unfreeze_balance": amount,
                "resource": _check_resource(resource),
            },
        )

    def withdraw_expire_unfreeze(self, owner: AddressLike) -> dict[str, Any]:
        return self._build("withdrawexpireunfreeze", {"owner_address": _hex(owner, "from")})

    def cancel_all_unfreeze_v2(self, owner: AddressLike) -> dict[str, Any]:
        return self._build("cancelallunfreezev2", {"owner_address": _hex(owner, "from")})

    def withdraw_balance(self, owner: AddressLike) -> dict[str, Any]:
        return self._build("withdrawbalance", {"owner_address": _hex(owner, "from")})

    def delegate_resource(
        self,
        owner: AddressLike,
        receiver: AddressLike,
        resource: str,
        amount: int,
        lock: bool = False,
        lock_period: int = 0,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "owner_address": _hex(owner, "from"),
            "receiver_address": _hex(receiver, "to"),
            "balance": amount,
            "resource": _check_resource(resource),
            "lock": lock,
        }
        if lock and lock_period > 0:
            body["lock_period"] = lock_period
        return self._build("delegateresource", body)

    def undelegate_resource(
        self, owner: AddressLike, receiver: AddressLike, resource: str, amount: int
    ) -> dict[str, Any]:
        return self._build(
            "undelegateresource",
            {
                "owner_address": _hex(owner, "owner"),
                "receiver_address": _hex(receiver, "receiver"),
                "balance": amount,
                "resource": _check_resource(resource),
            },
        )

    # ------------------------------------------------------------------
    # Market (on-chain DEX)
    # ------------------------------------------------------------------

    def get_market_order_by_account(self, address: AddressLike) -> list[dict[str, Any]]:
        result = self.post("getmarketorderbyaccount", {"value": _hex(address), "visible": False})
        return result.get("orders", [])

    def get_market_order_by_id(self, order_id: str) -> dict[str, Any]:
        return self.post("getmarketorderbyid", {"value": order_id})

    def get_market_pair_list(self) -> list[dict[str, Any]]:
        return self.post("getmarketpairlist").get("orderPair", [])

    def get_market_order_list_by_pair(self, sell_token_id: str, buy_token_id: str) -> list[dict[str, Any]]:
        result = self.post(
            "getmarketorderlistbypair",
            {"sell_token_id": _text_hex(sell_token_id), "buy_token_id": _text_hex(buy_token_id)},
        )
        return result.get("orders", [])

    def get_market_price_by_pair(self, sell_token_id: str, buy_token_id: str) -> dict[str, Any]:
        return self.post(
            "getmarketpricebypair",
            {"sell_token_id": _text_hex(sell_token_id), "buy_token_id": _text_hex(buy_token_id)},
        )

    # ------------------------------------------------------------------
    # Shielded key derivation
    # ------------------------------------------------------------------

    def get_spending_key(self) -> str:
        return self.post("getspendingkey").get("value", "")

    def get_expanded_spending_key(self, spending_key: str) -> dict[str, Any]:
        return self.post("getexpandedspendingkey", {"value": spending_key})

    def get_ak_from_ask(self, ask: str) -> str:
        return self.post("getakfromask", {"value": ask}).get("value", "")

    def get_nk_from_nsk(self, nsk: str) -> str:
        return self.post("getnkfromnsk", {"value": nsk}).get("value", "")

    def get_incoming_viewing_key(self, ak: str, nk: str) -> str:
        return self.post("getincomingviewingkey", {"ak": ak, "nk": nk}).get("ivk", "")

    def get_diversifier(self) -> str:
        return self.post("getdiversifier").get("d", "")

    def get_rcm(self) -> str:
        return self.post("getrcm").get("value", "")

    def get_new_shielded_address(self) -> dict[str, Any]:
        return self.post("getnewshieldedaddress")

    # ------------------------------------------------------------------
    # Smart contracts
    # ------------------------------------------------------------------

    def _fee_limit(self, fee_limit: Optional[int]) -> int:
        return self.config.default_fee_limit if fee_limit is None else fee_limit

    def trigger_contract(
        self,
        owner: AddressLike,
        contract: AddressLike,
        signature: str,
        params: Params = None,
        fee_limit: Optional[int] = None,
        call_value: int = 0,
        token_id: Optional[str] = None,
        token_value: int = 0,
    ) -> dict[str, Any]:
        """
        Build an unsigned contract-call transaction.

        Args:
            owner: Caller address
            contract: Contract address
            signature: Method signature, e.g. ``"transfer(address,uint256)"``
            params: JSON text or parsed ``[{type: value}, ...]`` list
            fee_limit: Max fee in sun (default: ``config.default_fee_limit``)
            call_value: TRX (sun) sent with the call
            token_id: TRC-10 token ID sent with the call
            token_value: TRC-10 amount

        Returns:
            The node's response; ``transaction`` carries the unsigned tx with
            the fee limit applied and ``txID`` recomputed

        Raises:
            TronwireError: Parameter encoding failed
            TransactionError: The node rejected the call
        """
        body = build_trigger_request(
            owner,
            contract,
            signature,
            params,
            call_value=call_value,
            token_id=token_id,
            token_value=token_value,
        )
        response = check_result(self.post("triggersmartcontract", body))

        fee = self._fee_limit(fee_limit)
        if fee > 0:
            set_fee_limit(response, fee)
        return response

    def trigger_constant_contract(
        self,
        owner: AddressLike,
        contract: AddressLike,
        signature: str,
        params: Params = None,
    ) -> dict[str, Any]:
        """Execute a read-only call; nothing is broadcast."""
        body = build_trigger_request(owner, contract, signature, params)
        return check_result(self.post("triggerconstantcontract", body))

    def call_contract(
        self,
        owner: AddressLike,
        contract: AddressLike,
        signature: str,
        params: Params = None,
        output_types: Sequence[str] = (),
    ) -> Any:
        """
        Read from a contract and decode the result.

        Returns:
            A single decoded value, a tuple for several outputs, or None
            when ``output_types`` is empty
        """
        response = self.trigger_constant_contract(owner, contract, signature, params)
        if not output_types:
            return None

        results = response.get("constant_result") or []
        if not results:
            raise RpcError(f"{signature} returned no data")

        decoded = decode_result(output_types, results[0])
        if len(decoded) == 1:
            return decoded[0]
        return decoded

    def deploy_contract(
        self,
        owner: AddressLike,
        name: str,
        abi: Any,
        bytecode: str,
        fee_limit: Optional[int] = None,
        consume_user_resource_percent: int = 100,
        origin_energy_limit: int = 10_000_000,
    ) -> dict[str, Any]:
        body = build_deploy_request(
            owner,
            name,
            abi,
            bytecode,
            consume_user_resource_percent=consume_user_resource_percent,
            origin_energy_limit=origin_energy_limit,
        )
        tx = check_result(self.post("deploycontract", body))

        fee = self._fee_limit(fee_limit)
        if fee > 0:
            set_fee_limit(tx, fee)
        return tx

    def get_contract_abi(self, contract: AddressLike) -> dict[str, Any]:
        """Return the contract's ABI as ``{"entrys": [...]}``."""
        result = self.post("getcontract", {"value": _hex(contract, "contract"), "visible": False})
        if not result or "abi" not in result:
            raise RpcError("contract ABI not found")
        return result["abi"]
