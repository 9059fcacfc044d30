"""Protocol constants for the exchange engine.

Centralizes well-known identities and protocol parameters.
"""

from exchange.models.types import is_valid_address


def _validate_identity(name: str, address: str) -> str:
    """Validate and return a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Identity of the native currency when it has to be named as an asset
NATIVE_ASSET = _validate_identity("native", "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee")

# Null identity, never a valid asset or recipient
NULL_ADDRESS = _validate_identity("null", "0x0000000000000000000000000000000000000000")

# Trading fee taken on the input side: 0.3% => 997/1000 of the input is priced
FEE_NUMERATOR = 997
FEE_DENOMINATOR = 1000

# Liquidity share token metadata
SHARE_NAME = "Exchange Liquidity Share"
SHARE_SYMBOL = "ELS"
SHARE_DECIMALS = 18
