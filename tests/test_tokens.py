"""Tests for ERC20 reads and writes through the kit facade."""

import pytest

from kiban_agent_kit.chain.provider import ensure_address
from kiban_agent_kit.errors import ContractReadError, InvalidAddressError

from conftest import OTHER, OWNER, USDC, WETH


class TestEnsureAddress:
    def test_checksums(self):
        assert ensure_address(USDC.lower()) == USDC

    @pytest.mark.parametrize("bad", ["0x123", "USDC", "", "0xZZ6B175474E89094C44Da98b954EedeAC495271d"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(InvalidAddressError, match="Invalid address"):
            ensure_address(bad)


class TestTokenInfo:
    @pytest.mark.asyncio
    async def test_reads_four_fields(self, kit, chain):
        chain.balances[USDC] = 12_345_678
        info = await kit.get_token_info("usdc")

        assert info.address == USDC
        assert info.name == "USD Coin"
        assert info.symbol == "USDC"
        assert info.decimals == 6
        assert info.balance_raw == 12_345_678
        assert info.balance == "12.345678"
        names = sorted(c.args[2] for c in chain.read_contract.await_args_list)
        assert names == ["balanceOf", "decimals", "name", "symbol"]

    @pytest.mark.asyncio
    async def test_balance_of_defaults_to_own_account(self, kit, chain):
        await kit.get_token_info(WETH)
        (balance_call,) = [c for c in chain.read_contract.await_args_list if c.args[2] == "balanceOf"]
        assert balance_call.args[3] == OWNER

    @pytest.mark.asyncio
    async def test_balance_of_other_owner(self, kit, chain):
        await kit.get_token_info(WETH, OTHER)
        (balance_call,) = [c for c in chain.read_contract.await_args_list if c.args[2] == "balanceOf"]
        assert balance_call.args[3] == OTHER

    @pytest.mark.asyncio
    async def test_read_error_propagates(self, kit, chain):
        chain.read_contract.side_effect = ContractReadError("no contract code")
        with pytest.raises(ContractReadError):
            await kit.get_token_info(WETH)

    @pytest.mark.asyncio
    async def test_invalid_address_rejected_before_call(self, kit, chain):
        with pytest.raises(InvalidAddressError):
            await kit.get_token_info("not-a-token")
        chain.read_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_metadata(self, kit, chain):
        meta = await kit.get_token_metadata("DAI")
        assert meta.symbol == "DAI"
        assert meta.decimals == 18
        assert meta.total_supply == 10**30


class TestAllowance:
    @pytest.mark.asyncio
    async def test_never_approved_is_zero(self, kit, chain):
        assert await kit.get_allowance("USDC", OWNER, OTHER) == 0

    @pytest.mark.asyncio
    async def test_returns_int(self, kit, chain):
        chain.allowance = 5_000_000
        assert await kit.get_allowance(USDC, OWNER, OTHER) == 5_000_000
        (call,) = chain.read_contract.await_args_list
        assert call.args[2:] == ("allowance", OWNER, OTHER)


class TestTransfers:
    @pytest.mark.asyncio
    async def test_send_eth_uses_native_transfer(self, kit, chain):
        tx_hash = await kit.send_tokens("ETH", OTHER, "0.5")
        assert tx_hash.startswith("0x")
        chain.send_transaction.assert_awaited_once_with(OTHER, 5 * 10**17)
        chain.write_contract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_send_erc20_scales_by_decimals(self, kit, chain):
        await kit.send_tokens("USDC", OTHER, "2.5")
        (call,) = chain.write_contract.await_args_list
        assert call.args[0] == USDC
        assert call.args[2:] == ("transfer", OTHER, 2_500_000)

    @pytest.mark.asyncio
    async def test_approve_exact_amount(self, kit, chain):
        await kit.approve_spending(USDC, OTHER, "10")
        (call,) = chain.write_contract.await_args_list
        assert call.args[2:] == ("approve", OTHER, 10_000_000)

    @pytest.mark.asyncio
    async def test_wait_for_transaction(self, kit, chain):
        receipt = await kit.wait_for_transaction("0xabc")
        assert receipt.status == "success"
        assert receipt.block_number == 100
        assert receipt.gas_used == 150_000
