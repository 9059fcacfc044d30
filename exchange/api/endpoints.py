"""API endpoints for the exchange.

Handlers are plain functions: the engine is synchronous and serializes
state-changing calls itself, so FastAPI runs them in its threadpool.
Domain errors propagate to the exception handler installed in main.py.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException

from exchange.deployment import Deployment, get_default_deployment
from exchange.errors import NoExchangeForAsset
from exchange.ledger.token import Token
from exchange.models.api import (
    AccountResponse,
    AddLiquidityRequest,
    AddLiquidityResponse,
    ApproveRequest,
    AssetResponse,
    BalanceResponse,
    CreateExchangeRequest,
    EthToTokenSwapInputRequest,
    EthToTokenSwapOutputRequest,
    ExchangeResponse,
    FundRequest,
    GetExchangeResponse,
    IssueAssetRequest,
    MintRequest,
    QuoteKind,
    QuoteResponse,
    RemoveLiquidityRequest,
    RemoveLiquidityResponse,
    SwapResponse,
    TokenToEthSwapInputRequest,
    TokenToEthSwapOutputRequest,
    TokenToTokenSwapInputRequest,
    TokenToTokenSwapOutputRequest,
)
from exchange.models.types import normalize_address, validate_uint256
from exchange.pools.pool import LiquidityPool

logger = structlog.get_logger()

router = APIRouter()


def get_deployment() -> Deployment:
    """Dependency provider for the deployment.

    Override this in tests to inject a fresh deployment:
        app.dependency_overrides[get_deployment] = lambda: deployment

    Returns:
        The deployment to serve.
    """
    return get_default_deployment()


def _account(value: str) -> str:
    try:
        return normalize_address(value, validate=True)
    except ValueError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err


def _asset_or_404(deployment: Deployment, asset: str) -> Token:
    token = deployment.get_asset(asset)
    if token is None:
        raise HTTPException(status_code=404, detail=f"Unknown asset {asset}")
    return token


def _exchange_or_404(deployment: Deployment, asset: str) -> LiquidityPool:
    pool = deployment.registry.get_exchange(asset)
    if pool is None:
        raise NoExchangeForAsset(f"No exchange for asset {asset}")
    return pool


def _asset_response(token: Token) -> AssetResponse:
    return AssetResponse(
        address=token.address,
        symbol=token.symbol,
        decimals=token.decimals,
        total_supply=str(token.total_supply),
    )


def _swap_response(pool: LiquidityPool, amount_in: int, amount_out: int) -> SwapResponse:
    return SwapResponse(
        amount_in=str(amount_in),
        amount_out=str(amount_out),
        exchange=ExchangeResponse.from_state(pool.state()),
    )


# =============================================================================
# Accounts and assets
# =============================================================================


@router.post("/accounts/{account}/fund")
def fund_account(
    account: str,
    request: FundRequest,
    deployment: Deployment = Depends(get_deployment),
) -> AccountResponse:
    """Credit native currency to an account (development faucet)."""
    account = _account(account)
    balance = deployment.fund(account, request.amount)
    logger.info("account_funded", account=account, amount=request.amount)
    return AccountResponse(account=account, native_balance=str(balance))


@router.get("/accounts/{account}")
def get_account(
    account: str,
    deployment: Deployment = Depends(get_deployment),
) -> AccountResponse:
    account = _account(account)
    balance = deployment.runtime.native.balance_of(account)
    return AccountResponse(account=account, native_balance=str(balance))


@router.post("/assets")
def issue_asset(
    request: IssueAssetRequest,
    deployment: Deployment = Depends(get_deployment),
) -> AssetResponse:
    """Issue a new asset with its initial supply minted to the owner."""
    token = deployment.issue_asset(
        request.symbol,
        owner=request.owner,
        supply=request.supply,
        decimals=request.decimals,
    )
    return _asset_response(token)


@router.post("/assets/{asset}/mint")
def mint_asset(
    asset: str,
    request: MintRequest,
    deployment: Deployment = Depends(get_deployment),
) -> BalanceResponse:
    token = _asset_or_404(deployment, asset)
    token.mint(request.account, request.amount)
    return BalanceResponse(
        asset=token.address,
        account=request.account,
        balance=str(token.balance_of(request.account)),
    )


@router.post("/assets/{asset}/approve")
def approve_asset(
    asset: str,
    request: ApproveRequest,
    deployment: Deployment = Depends(get_deployment),
) -> BalanceResponse:
    """Set an allowance; the response reports the new allowance as balance."""
    token = _asset_or_404(deployment, asset)
    token.approve(request.owner, request.spender, request.amount)
    return BalanceResponse(
        asset=token.address,
        account=request.spender,
        balance=str(token.allowance(request.owner, request.spender)),
    )


@router.get("/assets/{asset}/balances/{account}")
def get_asset_balance(
    asset: str,
    account: str,
    deployment: Deployment = Depends(get_deployment),
) -> BalanceResponse:
    token = _asset_or_404(deployment, asset)
    return BalanceResponse(
        asset=token.address,
        account=_account(account),
        balance=str(token.balance_of(account)),
    )


# =============================================================================
# Exchanges
# =============================================================================


@router.post("/exchanges")
def create_exchange(
    request: CreateExchangeRequest,
    deployment: Deployment = Depends(get_deployment),
) -> ExchangeResponse:
    pool = deployment.registry.create_exchange(request.asset)
    return ExchangeResponse.from_state(pool.state())


@router.get("/exchanges/{asset}")
def get_exchange(
    asset: str,
    deployment: Deployment = Depends(get_deployment),
) -> GetExchangeResponse:
    pool = deployment.registry.get_exchange(asset)
    if pool is None:
        return GetExchangeResponse(exchange=None)
    return GetExchangeResponse(exchange=ExchangeResponse.from_state(pool.state()))


@router.get("/exchanges/{asset}/quote")
def quote(
    asset: str,
    kind: QuoteKind,
    amount: str,
    deployment: Deployment = Depends(get_deployment),
) -> QuoteResponse:
    """Price quote without executing a trade."""
    pool = _exchange_or_404(deployment, asset)
    try:
        quoted = validate_uint256(amount)
    except ValueError as err:
        raise HTTPException(status_code=422, detail=str(err)) from err
    if kind is QuoteKind.ETH_TO_TOKEN_INPUT:
        price = pool.get_eth_to_token_input_price(quoted)
    elif kind is QuoteKind.ETH_TO_TOKEN_OUTPUT:
        price = pool.get_eth_to_token_output_price(quoted)
    elif kind is QuoteKind.TOKEN_TO_ETH_INPUT:
        price = pool.get_token_to_eth_input_price(quoted)
    else:
        price = pool.get_token_to_eth_output_price(quoted)
    return QuoteResponse(kind=kind, amount=str(quoted), price=str(price))


@router.post("/exchanges/{asset}/add-liquidity")
def add_liquidity(
    asset: str,
    request: AddLiquidityRequest,
    deployment: Deployment = Depends(get_deployment),
) -> AddLiquidityResponse:
    pool = _exchange_or_404(deployment, asset)
    shares = pool.add_liquidity(
        request.min_shares,
        request.max_asset_in,
        request.deadline,
        sender=request.sender,
        value=request.value,
    )
    return AddLiquidityResponse(
        shares_minted=str(shares),
        exchange=ExchangeResponse.from_state(pool.state()),
    )


@router.post("/exchanges/{asset}/remove-liquidity")
def remove_liquidity(
    asset: str,
    request: RemoveLiquidityRequest,
    deployment: Deployment = Depends(get_deployment),
) -> RemoveLiquidityResponse:
    pool = _exchange_or_404(deployment, asset)
    native_out, asset_out = pool.remove_liquidity(
        request.shares_in,
        request.min_native_out,
        request.min_asset_out,
        request.deadline,
        sender=request.sender,
    )
    return RemoveLiquidityResponse(
        native_out=str(native_out),
        asset_out=str(asset_out),
        exchange=ExchangeResponse.from_state(pool.state()),
    )


@router.post("/exchanges/{asset}/eth-to-token-swap-input")
def eth_to_token_swap_input(
    asset: str,
    request: EthToTokenSwapInputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    tokens_bought = pool.eth_to_token_swap_input(
        request.min_tokens,
        request.deadline,
        sender=request.sender,
        value=request.value,
        recipient=request.recipient,
    )
    return _swap_response(pool, request.value, tokens_bought)


@router.post("/exchanges/{asset}/token-to-eth-swap-input")
def token_to_eth_swap_input(
    asset: str,
    request: TokenToEthSwapInputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    eth_bought = pool.token_to_eth_swap_input(
        request.tokens_sold,
        request.min_eth,
        request.deadline,
        sender=request.sender,
        recipient=request.recipient,
    )
    return _swap_response(pool, request.tokens_sold, eth_bought)


@router.post("/exchanges/{asset}/token-to-token-swap-input")
def token_to_token_swap_input(
    asset: str,
    request: TokenToTokenSwapInputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    tokens_bought = pool.token_to_token_swap_input(
        request.tokens_sold,
        request.min_tokens_bought,
        request.min_eth_bought,
        request.deadline,
        request.other_asset,
        sender=request.sender,
        recipient=request.recipient,
    )
    return _swap_response(pool, request.tokens_sold, tokens_bought)


@router.post("/exchanges/{asset}/eth-to-token-swap-output")
def eth_to_token_swap_output(
    asset: str,
    request: EthToTokenSwapOutputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    eth_sold = pool.eth_to_token_swap_output(
        request.tokens_bought,
        request.deadline,
        sender=request.sender,
        value=request.value,
        recipient=request.recipient,
    )
    return _swap_response(pool, eth_sold, request.tokens_bought)


@router.post("/exchanges/{asset}/token-to-eth-swap-output")
def token_to_eth_swap_output(
    asset: str,
    request: TokenToEthSwapOutputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    tokens_sold = pool.token_to_eth_swap_output(
        request.eth_bought,
        request.max_tokens,
        request.deadline,
        sender=request.sender,
        recipient=request.recipient,
    )
    return _swap_response(pool, tokens_sold, request.eth_bought)


@router.post("/exchanges/{asset}/token-to-token-swap-output")
def token_to_token_swap_output(
    asset: str,
    request: TokenToTokenSwapOutputRequest,
    deployment: Deployment = Depends(get_deployment),
) -> SwapResponse:
    pool = _exchange_or_404(deployment, asset)
    tokens_sold = pool.token_to_token_swap_output(
        request.tokens_bought,
        request.max_tokens_sold,
        request.max_eth_sold,
        request.deadline,
        request.other_asset,
        sender=request.sender,
        recipient=request.recipient,
    )
    return _swap_response(pool, tokens_sold, request.tokens_bought)
