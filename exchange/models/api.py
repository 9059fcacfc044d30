"""Pydantic models for the exchange HTTP API.

Amounts are accepted as ints or decimal strings and returned as decimal
strings, since 18-decimal amounts overflow JSON number precision in most
clients.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from exchange.models.types import Address, Uint256
from exchange.pools.pool import PoolState


class ApiModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = {"populate_by_name": True}


# =============================================================================
# Accounts and assets
# =============================================================================


class FundRequest(ApiModel):
    """Credit native currency to an account."""

    amount: Uint256


class AccountResponse(ApiModel):
    account: Address
    native_balance: str = Field(alias="nativeBalance")


class IssueAssetRequest(ApiModel):
    """Issue a new asset."""

    symbol: str = Field(min_length=1, max_length=32)
    owner: Address
    supply: Uint256 = 0
    decimals: int = Field(default=18, ge=0, le=77)


class AssetResponse(ApiModel):
    address: Address
    symbol: str
    decimals: int
    total_supply: str = Field(alias="totalSupply")


class MintRequest(ApiModel):
    account: Address
    amount: Uint256


class ApproveRequest(ApiModel):
    owner: Address
    spender: Address
    amount: Uint256


class BalanceResponse(ApiModel):
    asset: Address
    account: Address
    balance: str


# =============================================================================
# Exchanges
# =============================================================================


class CreateExchangeRequest(ApiModel):
    asset: Address


class ExchangeResponse(ApiModel):
    """Reserves and share supply of one pool."""

    address: Address
    asset: Address
    native_reserve: str = Field(alias="nativeReserve")
    asset_reserve: str = Field(alias="assetReserve")
    total_shares: str = Field(alias="totalShares")
    funded: bool

    @classmethod
    def from_state(cls, state: PoolState) -> ExchangeResponse:
        return cls(
            address=state.address,
            asset=state.asset,
            native_reserve=str(state.native_reserve),
            asset_reserve=str(state.asset_reserve),
            total_shares=str(state.total_shares),
            funded=state.is_funded,
        )


class GetExchangeResponse(ApiModel):
    """Lookup result; ``exchange`` is null when the asset has no pool."""

    exchange: ExchangeResponse | None = None


class QuoteKind(str, Enum):
    """Which price quote to compute."""

    ETH_TO_TOKEN_INPUT = "ethToTokenInput"
    ETH_TO_TOKEN_OUTPUT = "ethToTokenOutput"
    TOKEN_TO_ETH_INPUT = "tokenToEthInput"
    TOKEN_TO_ETH_OUTPUT = "tokenToEthOutput"


class QuoteResponse(ApiModel):
    kind: QuoteKind
    amount: str
    price: str


# =============================================================================
# Liquidity
# =============================================================================


class CallRequest(ApiModel):
    """Fields common to every state-changing call."""

    sender: Address
    deadline: Uint256


class AddLiquidityRequest(CallRequest):
    value: Uint256
    min_shares: Uint256 = Field(alias="minShares")
    max_asset_in: Uint256 = Field(alias="maxAssetIn")


class AddLiquidityResponse(ApiModel):
    shares_minted: str = Field(alias="sharesMinted")
    exchange: ExchangeResponse


class RemoveLiquidityRequest(CallRequest):
    shares_in: Uint256 = Field(alias="sharesIn")
    min_native_out: Uint256 = Field(alias="minNativeOut")
    min_asset_out: Uint256 = Field(alias="minAssetOut")


class RemoveLiquidityResponse(ApiModel):
    native_out: str = Field(alias="nativeOut")
    asset_out: str = Field(alias="assetOut")
    exchange: ExchangeResponse


# =============================================================================
# Swaps
# =============================================================================


class SwapRequest(CallRequest):
    recipient: Address | None = None


class EthToTokenSwapInputRequest(SwapRequest):
    value: Uint256
    min_tokens: Uint256 = Field(alias="minTokens")


class TokenToEthSwapInputRequest(SwapRequest):
    tokens_sold: Uint256 = Field(alias="tokensSold")
    min_eth: Uint256 = Field(alias="minEth")


class TokenToTokenSwapInputRequest(SwapRequest):
    tokens_sold: Uint256 = Field(alias="tokensSold")
    min_tokens_bought: Uint256 = Field(alias="minTokensBought")
    min_eth_bought: Uint256 = Field(alias="minEthBought")
    other_asset: Address = Field(alias="otherAsset")


class EthToTokenSwapOutputRequest(SwapRequest):
    value: Uint256
    tokens_bought: Uint256 = Field(alias="tokensBought")


class TokenToEthSwapOutputRequest(SwapRequest):
    eth_bought: Uint256 = Field(alias="ethBought")
    max_tokens: Uint256 = Field(alias="maxTokens")


class TokenToTokenSwapOutputRequest(SwapRequest):
    tokens_bought: Uint256 = Field(alias="tokensBought")
    max_tokens_sold: Uint256 = Field(alias="maxTokensSold")
    max_eth_sold: Uint256 = Field(alias="maxEthSold")
    other_asset: Address = Field(alias="otherAsset")


class SwapResponse(ApiModel):
    """Amounts that moved in a swap.

    For exact-input swaps ``amount_in`` is the caller's input and
    ``amount_out`` the computed output; for exact-output swaps it is the
    other way round.
    """

    amount_in: str = Field(alias="amountIn")
    amount_out: str = Field(alias="amountOut")
    exchange: ExchangeResponse


class ErrorResponse(ApiModel):
    error: str
    detail: str
