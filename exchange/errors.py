"""Exchange error classes.

Each error carries a stable ``kind`` string. The HTTP layer reports the kind
to callers so they can decide whether to resubmit with looser bounds or a
fresh deadline.
"""


class ExchangeError(Exception):
    """Base error for registry, pool and ledger operations."""

    kind = "ExchangeError"


class Expired(ExchangeError):
    """The request deadline is earlier than the current time."""

    kind = "Expired"


class AlreadyExists(ExchangeError):
    """An exchange is already registered for this asset."""

    kind = "AlreadyExists"


class InvalidAsset(ExchangeError):
    """Asset is the native currency, the null identity, or otherwise unusable."""

    kind = "InvalidAsset"


class NotFunded(ExchangeError):
    """Operation requires a pool with outstanding liquidity shares."""

    kind = "NotFunded"


class InsufficientShares(ExchangeError):
    """Share balance is lower than the amount requested."""

    kind = "InsufficientShares"


class InvalidAmount(ExchangeError):
    """Zero or otherwise unusable amount."""

    kind = "InvalidAmount"


class ExcessiveInputAmount(ExchangeError):
    """Required input exceeds the caller's maximum."""

    kind = "ExcessiveInputAmount"


class InsufficientLiquidityMinted(ExchangeError):
    """Deposit would mint fewer shares than the caller's minimum."""

    kind = "InsufficientLiquidityMinted"


class InsufficientOutputAmount(ExchangeError):
    """Output is below the caller's minimum."""

    kind = "InsufficientOutputAmount"


# Liquidity removal reports its slippage failures under the same kind
InsufficientOutput = InsufficientOutputAmount


class InsufficientLiquidity(ExchangeError):
    """Requested output is not smaller than the output reserve."""

    kind = "InsufficientLiquidity"


class NoExchangeForAsset(ExchangeError):
    """No exchange is registered for the requested asset."""

    kind = "NoExchangeForAsset"


class Reentrancy(ExchangeError):
    """A pool mutator was invoked while another one is in progress."""

    kind = "Reentrancy"


class LedgerError(ExchangeError):
    """Base error for asset and native ledger transfers."""

    kind = "LedgerError"


class InsufficientBalance(LedgerError):
    """Account balance is lower than the transfer amount."""

    kind = "InsufficientBalance"


class InsufficientAllowance(LedgerError):
    """Spender allowance is lower than the transfer amount."""

    kind = "InsufficientAllowance"


class TransferFailed(LedgerError):
    """Ledger reported an unsuccessful transfer."""

    kind = "TransferFailed"
