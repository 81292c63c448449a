"""Token swaps through Uniswap V3 (single pool, 0.3% fee tier).

Quotes come from the V3 quoter via ``eth_call``; swaps go through the V3
router's ``exactInputSingle``. Native ETH is swapped as WETH: the router is
paid with ``msg.value`` on the way in, and ETH output is delivered as WETH to
the caller (there is no unwrap step).
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from kiban_agent_kit.chain.provider import ChainClient, ensure_address
from kiban_agent_kit.errors import (
    ContractCallError,
    InsufficientFundsError,
    KibanError,
    SwapExecutionError,
    SwapQuoteError,
)
from kiban_agent_kit.tokens.abi import (
    ERC20_ABI,
    UNISWAP_V3_QUOTER,
    UNISWAP_V3_QUOTER_ABI,
    UNISWAP_V3_ROUTER,
    UNISWAP_V3_ROUTER_ABI,
)
from kiban_agent_kit.tokens.service import TokenService
from kiban_agent_kit.tokens.symbols import (
    ETH_SENTINEL,
    WETH_ADDRESS,
    is_eth,
    normalize,
    to_base_units,
    to_human_units,
)

logger = logging.getLogger("kiban_agent_kit.tokens.swap")

FEE_TIER = 3000  # 0.3% pool
DEADLINE_SECONDS = 20 * 60
DEFAULT_SLIPPAGE = 0.5
PRICE_IMPACT_PLACEHOLDER = "< 1%"


@dataclass(frozen=True)
class SwapParams:
    token_in: str
    token_out: str
    amount: str
    slippage_percentage: float = DEFAULT_SLIPPAGE
    recipient: str | None = None

    def __post_init__(self) -> None:
        try:
            value = Decimal(str(self.amount).strip())
        except InvalidOperation as exc:
            raise ValueError(f"Invalid amount '{self.amount}'") from exc
        if not value.is_finite() or value < 0:
            raise ValueError(f"Amount must be a non-negative decimal: '{self.amount}'")
        if not 0 <= self.slippage_percentage < 100:
            raise ValueError(
                f"Slippage must be in [0, 100), got {self.slippage_percentage}"
            )


@dataclass(frozen=True)
class QuoteSide:
    address: str
    symbol: str
    decimals: int
    amount: str


@dataclass(frozen=True)
class SwapQuote:
    token_in: QuoteSide
    token_out: QuoteSide
    execution_price: str
    minimum_amount_out: str
    price_impact: str


@dataclass(frozen=True)
class SwapResult:
    hash: str
    token_in: str
    token_out: str
    amount_in: str
    expected_amount_out: str  # pre-trade estimate from the quote


def slippage_bps(slippage_percentage: float) -> int:
    """Slippage as whole basis points, rounded half-up (0.5% -> 50)."""
    bps = Decimal(str(slippage_percentage)) * 100
    return int(bps.to_integral_value(rounding=ROUND_HALF_UP))


def minimum_amount_out(amount_out: int, slippage_percentage: float) -> int:
    """Lower bound on output after deducting slippage, in base units."""
    return amount_out * (10000 - slippage_bps(slippage_percentage)) // 10000


def execution_price(
    amount_in: int, amount_out: int, decimals_in: int, decimals_out: int
) -> str:
    """``amount_out / amount_in`` in human units, six fractional digits."""
    if amount_in == 0:
        return f"{Decimal(0):.6f}"
    price = (Decimal(amount_out) / Decimal(amount_in)).scaleb(decimals_in - decimals_out)
    return f"{price:.6f}"


def _resolve_token(ref: str) -> str:
    """Known symbol or address to a checksummed address; ETH stays the sentinel."""
    address = normalize(ref)
    return ETH_SENTINEL if is_eth(address) else ensure_address(address)


def _router_token(address: str) -> str:
    return WETH_ADDRESS if is_eth(address) else address


class SwapService:
    """Quotes and executes swaps for the kit's account."""

    def __init__(self, client: ChainClient, tokens: TokenService) -> None:
        self.client = client
        self.tokens = tokens

    async def get_swap_quote(self, params: SwapParams) -> SwapQuote:
        """Quote *params* against the current pool state. Never cached."""
        logger.info(
            f"Getting quote for swap: {params.amount} {params.token_in} -> {params.token_out}"
        )
        try:
            address_in = _resolve_token(params.token_in)
            address_out = _resolve_token(params.token_out)
            info_in = await self.tokens.get_token_info(_router_token(address_in))
            info_out = await self.tokens.get_token_info(_router_token(address_out))
            amount_in = to_base_units(params.amount, info_in.decimals)

            amount_out = int(
                await self.client.read_contract(
                    UNISWAP_V3_QUOTER,
                    UNISWAP_V3_QUOTER_ABI,
                    "quoteExactInputSingle",
                    _router_token(address_in),
                    _router_token(address_out),
                    FEE_TIER,
                    amount_in,
                    0,
                )
            )
        except (KibanError, ValueError) as exc:
            raise SwapQuoteError(f"Failed to get swap quote: {exc}") from exc

        eth_in = is_eth(address_in)
        eth_out = is_eth(address_out)
        symbol_in = "ETH" if eth_in else info_in.symbol
        symbol_out = "ETH" if eth_out else info_out.symbol
        min_out = minimum_amount_out(amount_out, params.slippage_percentage)
        price = execution_price(amount_in, amount_out, info_in.decimals, info_out.decimals)

        return SwapQuote(
            token_in=QuoteSide(
                address=address_in,
                symbol=symbol_in,
                decimals=info_in.decimals,
                amount=to_human_units(amount_in, info_in.decimals),
            ),
            token_out=QuoteSide(
                address=address_out,
                symbol=symbol_out,
                decimals=info_out.decimals,
                amount=to_human_units(amount_out, info_out.decimals),
            ),
            execution_price=f"1 {symbol_in} = {price} {symbol_out}",
            minimum_amount_out=to_human_units(min_out, info_out.decimals),
            price_impact=PRICE_IMPACT_PLACEHOLDER,
        )

    async def swap_tokens(self, params: SwapParams) -> SwapResult:
        """Quote, approve the router if needed, swap, and wait for the receipt.

        If the approval succeeds but the swap then fails, the approval stays
        on-chain.
        """
        recipient = ensure_address(params.recipient) if params.recipient else None
        quote = await self.get_swap_quote(params)

        address_in = quote.token_in.address
        address_out = quote.token_out.address
        eth_in = is_eth(address_in)
        eth_out = is_eth(address_out)
        owner = self.client.address

        amount_in = to_base_units(params.amount, quote.token_in.decimals)
        min_out = to_base_units(quote.minimum_amount_out, quote.token_out.decimals)

        try:
            if not eth_in:
                await self._ensure_allowance(address_in, owner, amount_in, params.amount)

            swap_args = (
                _router_token(address_in),
                _router_token(address_out),
                FEE_TIER,
                owner if eth_out else (recipient or owner),
                int(time.time()) + DEADLINE_SECONDS,
                amount_in,
                min_out,
                0,
            )
            if eth_in:
                logger.info(f"Swapping {params.amount} ETH for {quote.token_out.symbol}")
                tx_hash = await self.client.write_contract(
                    UNISWAP_V3_ROUTER,
                    UNISWAP_V3_ROUTER_ABI,
                    "exactInputSingle",
                    swap_args,
                    value=amount_in,
                )
            else:
                logger.info(
                    f"Swapping {params.amount} {quote.token_in.symbol} "
                    f"for {quote.token_out.symbol}"
                )
                tx_hash = await self.client.write_contract(
                    UNISWAP_V3_ROUTER,
                    UNISWAP_V3_ROUTER_ABI,
                    "exactInputSingle",
                    swap_args,
                )

            receipt = await self.client.wait_for_receipt(tx_hash)
            if receipt.status != "success":
                raise ContractCallError(f"transaction {tx_hash} reverted")
        except Exception as exc:
            if "insufficient funds" in str(exc).lower():
                raise await self._insufficient_funds(params, quote) from exc
            raise SwapExecutionError(f"Failed to execute swap: {exc}") from exc

        logger.info(f"Swap confirmed: tx={tx_hash} block={receipt.block_number}")
        return SwapResult(
            hash=tx_hash,
            token_in=quote.token_in.symbol,
            token_out=quote.token_out.symbol,
            amount_in=quote.token_in.amount,
            expected_amount_out=quote.token_out.amount,
        )

    async def _ensure_allowance(
        self, token: str, owner: str, amount_in: int, amount: str
    ) -> None:
        allowance = await self.tokens.get_allowance(token, owner, UNISWAP_V3_ROUTER)
        if allowance >= amount_in:
            return
        logger.info(
            f"Allowance {allowance} below {amount_in}; approving router for {amount}"
        )
        approve_hash = await self.client.write_contract(
            token, ERC20_ABI, "approve", UNISWAP_V3_ROUTER, amount_in
        )
        receipt = await self.client.wait_for_receipt(approve_hash)
        if receipt.status != "success":
            raise ContractCallError(f"approval {approve_hash} reverted")

    async def _insufficient_funds(
        self, params: SwapParams, quote: SwapQuote
    ) -> InsufficientFundsError:
        try:
            balance = to_human_units(await self.client.get_balance(), 18)
        except KibanError as exc:
            logger.warning(f"Could not read balance after failed swap: {exc}")
            balance = "unknown"
        required = f"{params.amount} {quote.token_in.symbol}"
        logger.warning(f"Insufficient funds for swap: have {balance} ETH, need {required}")
        return InsufficientFundsError(
            f"Insufficient funds for swap. You have {balance} ETH but the "
            f"transaction requires {required} plus gas fees.",
            balance=balance,
            required=params.amount,
        )
