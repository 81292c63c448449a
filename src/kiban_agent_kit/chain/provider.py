"""Async Web3 client for a single EVM chain.

One :class:`ChainClient` is created by the kit facade and passed to every
service; it holds the RPC connection and the signing account.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.middleware import ExtraDataToPOAMiddleware

from kiban_agent_kit.chain.chains import Chain
from kiban_agent_kit.errors import (
    ConfigurationError,
    ContractCallError,
    ContractReadError,
    InvalidAddressError,
    KibanError,
)

logger = logging.getLogger("kiban_agent_kit.chain.provider")


@dataclass(frozen=True)
class TransactionReceipt:
    status: Literal["success", "failure"]
    hash: str
    block_number: int
    gas_used: int


def ensure_address(address: str) -> str:
    """Return the checksummed form of *address* or raise ``InvalidAddressError``."""
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidAddressError(str(address))
    return Web3.to_checksum_address(address)


class ChainClient:
    """Reads, writes and waits on one chain with one signing account."""

    def __init__(self, w3: AsyncWeb3, account: LocalAccount, chain: Chain) -> None:
        self.w3 = w3
        self.chain = chain
        self._account = account

    @classmethod
    def connect(cls, chain: Chain, rpc_url: str, private_key: str) -> ChainClient:
        """Create a client for *chain*.

        Injects POA middleware for non-mainnet chains. No network I/O happens
        here; the first RPC call opens the connection.
        """
        try:
            account = Account.from_key(private_key)
        except Exception as exc:
            raise ConfigurationError(
                f"Invalid private key: {exc}. Please ensure it's a valid "
                "32-byte hex string starting with '0x'."
            ) from exc

        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        if chain.chain_id != 1:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)

        logger.info(
            f"Connected to {chain.display_name} (Chain ID: {chain.chain_id}) "
            f"as {account.address}"
        )
        return cls(w3, account, chain)

    @property
    def address(self) -> str:
        return self._account.address

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_balance(self, address: str | None = None) -> int:
        """Native balance of *address* (default: own account) in wei."""
        target = ensure_address(address) if address else self.address
        try:
            return await self.w3.eth.get_balance(target)
        except Exception as exc:
            raise ContractReadError(f"Failed to read balance of {target}: {exc}") from exc

    async def get_transaction_count(self, address: str | None = None) -> int:
        target = ensure_address(address) if address else self.address
        try:
            return await self.w3.eth.get_transaction_count(target, "latest")
        except Exception as exc:
            raise ContractReadError(
                f"Failed to read transaction count of {target}: {exc}"
            ) from exc

    async def get_gas_price(self) -> int:
        try:
            return await self.w3.eth.gas_price
        except Exception as exc:
            raise ContractReadError(f"Failed to read gas price: {exc}") from exc

    async def estimate_gas(self, to: str, value: int = 0) -> int:
        target = ensure_address(to)
        try:
            return await self.w3.eth.estimate_gas(
                {"from": self.address, "to": target, "value": value}
            )
        except Exception as exc:
            raise ContractReadError(f"Failed to estimate gas to {target}: {exc}") from exc

    async def read_contract(
        self, address: str, abi: list[dict], function_name: str, *args: Any
    ) -> Any:
        """Call a view function and return its decoded result."""
        contract = self.w3.eth.contract(address=ensure_address(address), abi=abi)
        try:
            return await getattr(contract.functions, function_name)(*args).call()
        except KibanError:
            raise
        except Exception as exc:
            raise ContractReadError(
                f"Failed to read {function_name} from {address}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def _base_transaction(self, value: int) -> dict:
        """Sender, nonce, chain id and fee fields shared by every transaction.

        Uses EIP-1559 fee parameters when the latest block carries a base fee,
        otherwise a legacy gas price.
        """
        nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
        tx: dict = {
            "from": self.address,
            "value": value,
            "nonce": nonce,
            "chainId": self.chain.chain_id,
        }

        latest = await self.w3.eth.get_block("latest")
        base_fee = latest.get("baseFeePerGas")
        if base_fee is not None:
            max_priority = Web3.to_wei(Decimal("1.5"), "gwei")
            tx["maxFeePerGas"] = base_fee * 2 + max_priority
            tx["maxPriorityFeePerGas"] = max_priority
        else:
            tx["gasPrice"] = await self.w3.eth.gas_price
        return tx

    async def write_contract(
        self,
        address: str,
        abi: list[dict],
        function_name: str,
        *args: Any,
        value: int = 0,
    ) -> str:
        """Build, sign and broadcast a contract call. Returns the tx hash.

        The gas estimate runs first, so a call that would revert fails here
        before anything is broadcast.
        """
        contract = self.w3.eth.contract(address=ensure_address(address), abi=abi)
        try:
            func = getattr(contract.functions, function_name)(*args)
            tx = await self._base_transaction(value)
            tx["gas"] = await func.estimate_gas(tx)
            tx = await func.build_transaction(tx)
            tx_hash = await self._sign_and_send(tx)
        except KibanError:
            raise
        except Exception as exc:
            raise ContractCallError(
                f"{function_name} on {address} failed: {exc}"
            ) from exc
        logger.info(f"Sent {function_name} to {address}: tx={tx_hash}")
        return tx_hash

    async def send_transaction(self, to: str, value: int) -> str:
        """Build, sign, and send a native-token transfer."""
        checksum_to = ensure_address(to)
        try:
            tx = await self._base_transaction(value)
            tx["to"] = checksum_to
            tx["gas"] = await self.w3.eth.estimate_gas(tx)
            tx_hash = await self._sign_and_send(tx)
        except KibanError:
            raise
        except Exception as exc:
            raise ContractCallError(f"Transfer to {to} failed: {exc}") from exc
        logger.info(f"Sent {value} wei to {checksum_to}: tx={tx_hash}")
        return tx_hash

    async def wait_for_receipt(self, tx_hash: str) -> TransactionReceipt:
        """Block until *tx_hash* is mined (web3's own timeout applies)."""
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash)
        except Exception as exc:
            raise ContractCallError(
                f"Failed to get receipt for {tx_hash}: {exc}"
            ) from exc
        return TransactionReceipt(
            status="success" if receipt["status"] == 1 else "failure",
            hash=Web3.to_hex(receipt["transactionHash"]),
            block_number=receipt["blockNumber"],
            gas_used=receipt["gasUsed"],
        )

    async def _sign_and_send(self, tx: dict) -> str:
        signed = self._account.sign_transaction(tx)
        tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)
