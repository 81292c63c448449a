"""Tests for ChainClient on a real AsyncWeb3 whose RPC calls are mocked.

Contract encoding, transaction building and signing all run for real; only
the methods that would reach a node are replaced.
"""

from unittest.mock import AsyncMock

import pytest
from eth_account import Account
from web3 import AsyncWeb3
from web3.eth import AsyncEth

from kiban_agent_kit.chain.chains import CHAINS
from kiban_agent_kit.chain.provider import ChainClient
from kiban_agent_kit.config import KitConfig
from kiban_agent_kit.errors import ContractCallError, ContractReadError
from kiban_agent_kit.kit import KibanAgentKit
from kiban_agent_kit.tokens.abi import (
    ERC20_ABI,
    UNISWAP_V3_QUOTER,
    UNISWAP_V3_QUOTER_ABI,
    UNISWAP_V3_ROUTER,
)
from kiban_agent_kit.tokens.service import TokenInfo
from kiban_agent_kit.tokens.swap import SwapParams, SwapService

from conftest import OWNER, TEST_PRIVATE_KEY, USDC, WETH

GWEI = 10**9
TX_HASH = b"\xab" * 32
LINK = "0x514910771AF9Ca656af840dff83E8264EcF986CA"
RECIPIENT = "0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed"


@pytest.fixture
def w3():
    w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider("http://127.0.0.1:8545"))
    w3.eth.call = AsyncMock(return_value=w3.codec.encode(["uint256"], [250_000]))
    w3.eth.estimate_gas = AsyncMock(return_value=100_000)
    w3.eth.get_block = AsyncMock(return_value={"baseFeePerGas": 10 * GWEI})
    w3.eth.get_transaction_count = AsyncMock(return_value=3)
    w3.eth.get_balance = AsyncMock(return_value=10**18)
    w3.eth.send_raw_transaction = AsyncMock(return_value=TX_HASH)
    w3.eth.wait_for_transaction_receipt = AsyncMock(
        return_value={"status": 1, "transactionHash": TX_HASH, "blockNumber": 7, "gasUsed": 50_000}
    )
    return w3


@pytest.fixture
def client(w3) -> ChainClient:
    return ChainClient(w3, Account.from_key(TEST_PRIVATE_KEY), CHAINS["mainnet"])


def _sent_tx(w3) -> dict:
    """The transaction dict handed to the gas estimate."""
    return w3.eth.estimate_gas.await_args.args[0]


def _token_info(address: str) -> TokenInfo:
    decimals = 6 if address == USDC else 18
    return TokenInfo(address, "Token", "TKN", decimals, "0", 0)


# =============================================================================
# Reads
# =============================================================================


class TestReadContract:
    @pytest.mark.asyncio
    async def test_decodes_result(self, client, w3):
        result = await client.read_contract(
            UNISWAP_V3_QUOTER, UNISWAP_V3_QUOTER_ABI, "quoteExactInputSingle",
            WETH, USDC, 3000, 10**14, 0,
        )
        assert result == 250_000
        assert w3.eth.call.await_args.args[0]["to"] == UNISWAP_V3_QUOTER

    @pytest.mark.asyncio
    async def test_lowercase_contract_address_is_checksummed(self, client, w3):
        await client.read_contract(USDC.lower(), ERC20_ABI, "balanceOf", OWNER)
        assert w3.eth.call.await_args.args[0]["to"] == USDC

    @pytest.mark.asyncio
    async def test_lowercase_argument_is_rejected_and_wrapped(self, client, w3):
        with pytest.raises(ContractReadError, match="checksum"):
            await client.read_contract(USDC, ERC20_ABI, "balanceOf", RECIPIENT.lower())
        w3.eth.call.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_call_failure_is_wrapped(self, client, w3):
        w3.eth.call.side_effect = ValueError("execution reverted")
        with pytest.raises(ContractReadError, match="Failed to read balanceOf"):
            await client.read_contract(USDC, ERC20_ABI, "balanceOf", OWNER)


class TestRpcReads:
    @pytest.mark.asyncio
    async def test_balance_defaults_to_own_account(self, client, w3):
        assert await client.get_balance() == 10**18
        w3.eth.get_balance.assert_awaited_once_with(client.address)

    @pytest.mark.asyncio
    async def test_balance_failure_is_wrapped(self, client, w3):
        w3.eth.get_balance.side_effect = ConnectionError("connection refused")
        with pytest.raises(ContractReadError, match="connection refused"):
            await client.get_balance()

    @pytest.mark.asyncio
    async def test_transaction_count_failure_is_wrapped(self, client, w3):
        w3.eth.get_transaction_count.side_effect = ConnectionError("connection refused")
        with pytest.raises(ContractReadError):
            await client.get_transaction_count()

    @pytest.mark.asyncio
    async def test_gas_estimate_failure_is_wrapped(self, client, w3):
        w3.eth.estimate_gas.side_effect = ValueError("execution reverted")
        with pytest.raises(ContractReadError, match="estimate gas"):
            await client.estimate_gas(RECIPIENT, 1)

    @pytest.mark.asyncio
    async def test_gas_price_failure_is_wrapped(self, client, monkeypatch):
        async def _down():
            raise ConnectionError("connection refused")

        monkeypatch.setattr(AsyncEth, "gas_price", property(lambda self: _down()))
        with pytest.raises(ContractReadError, match="gas price"):
            await client.get_gas_price()

    @pytest.mark.asyncio
    async def test_unreachable_node_surfaces_as_kit_error(self, client, w3):
        w3.eth.get_balance.side_effect = ConnectionError("connection refused")
        kit = KibanAgentKit(KitConfig(private_key=TEST_PRIVATE_KEY), client=client)
        with pytest.raises(ContractReadError):
            await kit.get_wallet_info()


# =============================================================================
# Transactions
# =============================================================================


class TestSendTransaction:
    @pytest.mark.asyncio
    async def test_eip1559_fees_when_base_fee_present(self, client, w3):
        tx_hash = await client.send_transaction(RECIPIENT, 5)

        assert tx_hash == "0x" + "ab" * 32
        tx = _sent_tx(w3)
        assert tx["to"] == RECIPIENT
        assert tx["value"] == 5
        assert tx["nonce"] == 3
        assert tx["chainId"] == 1
        assert tx["maxPriorityFeePerGas"] == 1_500_000_000
        assert tx["maxFeePerGas"] == 2 * 10 * GWEI + 1_500_000_000
        assert "gasPrice" not in tx
        w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_legacy_gas_price_without_base_fee(self, client, w3, monkeypatch):
        async def _price():
            return 7 * GWEI

        monkeypatch.setattr(AsyncEth, "gas_price", property(lambda self: _price()))
        w3.eth.get_block.return_value = {}

        await client.send_transaction(RECIPIENT, 5)

        tx = _sent_tx(w3)
        assert tx["gasPrice"] == 7 * GWEI
        assert "maxFeePerGas" not in tx
        w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_broadcast_failure_is_wrapped(self, client, w3):
        w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas")
        with pytest.raises(ContractCallError, match="insufficient funds"):
            await client.send_transaction(RECIPIENT, 5)


class TestWriteContract:
    @pytest.mark.asyncio
    async def test_builds_signs_and_sends(self, client, w3):
        tx_hash = await client.write_contract(USDC, ERC20_ABI, "approve", RECIPIENT, 10)

        assert tx_hash == "0x" + "ab" * 32
        tx = _sent_tx(w3)
        assert tx["to"] == USDC
        assert tx["value"] == 0
        assert RECIPIENT[2:].lower() in tx["data"].lower()
        w3.eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_wrapped_before_broadcast(self, client, w3):
        w3.eth.estimate_gas.side_effect = ValueError("execution reverted: STF")
        with pytest.raises(ContractCallError, match="approve on"):
            await client.write_contract(USDC, ERC20_ABI, "approve", RECIPIENT, 10)
        w3.eth.send_raw_transaction.assert_not_awaited()


class TestWaitForReceipt:
    @pytest.mark.asyncio
    async def test_success(self, client):
        receipt = await client.wait_for_receipt("0x" + "ab" * 32)
        assert receipt.status == "success"
        assert receipt.hash == "0x" + "ab" * 32
        assert receipt.block_number == 7
        assert receipt.gas_used == 50_000

    @pytest.mark.asyncio
    async def test_reverted(self, client, w3):
        w3.eth.wait_for_transaction_receipt.return_value = {
            "status": 0, "transactionHash": TX_HASH, "blockNumber": 8, "gasUsed": 21_000,
        }
        receipt = await client.wait_for_receipt("0x" + "ab" * 32)
        assert receipt.status == "failure"

    @pytest.mark.asyncio
    async def test_timeout_is_wrapped(self, client, w3):
        w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("not mined")
        with pytest.raises(ContractCallError, match="not mined"):
            await client.wait_for_receipt("0x" + "ab" * 32)


# =============================================================================
# Swaps with lowercase addresses
# =============================================================================


class TestSwapAddressesOnRealClient:
    @pytest.fixture
    def tokens(self):
        tokens = AsyncMock()
        tokens.get_token_info.side_effect = _token_info
        tokens.get_allowance.return_value = 10**30
        return tokens

    @pytest.mark.asyncio
    async def test_quote_accepts_lowercase_token(self, client, w3, tokens):
        quote = await SwapService(client, tokens).get_swap_quote(
            SwapParams(LINK.lower(), "weth", "1")
        )

        assert quote.token_in.address == LINK
        quoter_tx = w3.eth.call.await_args.args[0]
        assert quoter_tx["to"] == UNISWAP_V3_QUOTER
        assert LINK[2:].lower() in quoter_tx["data"].lower()

    @pytest.mark.asyncio
    async def test_swap_accepts_lowercase_recipient(self, client, w3, tokens):
        result = await SwapService(client, tokens).swap_tokens(
            SwapParams("ETH", USDC.lower(), "0.0001", recipient=RECIPIENT.lower())
        )

        assert result.hash == "0x" + "ab" * 32
        tx = _sent_tx(w3)
        assert tx["to"] == UNISWAP_V3_ROUTER
        assert tx["value"] == 10**14
        assert RECIPIENT[2:].lower() in tx["data"].lower()
        w3.eth.send_raw_transaction.assert_awaited_once()
