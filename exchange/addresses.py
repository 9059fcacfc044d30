"""Deterministic account addresses for deployed objects.

Pools and issued assets need account identities on the ledgers. They are
derived the way contract addresses are: the keccak-256 hash of the
ABI-encoded (deployer, nonce) pair, keeping the low 20 bytes. The same
deployer and nonce always yield the same address.
"""

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from exchange.models.types import normalize_address


def derive_address(deployer: str, nonce: int) -> str:
    """Derive the address of the ``nonce``-th object created by ``deployer``.

    Args:
        deployer: Creating account (0x-prefixed hex)
        nonce: Creation counter of the deployer

    Returns:
        Lowercase 0x-prefixed address
    """
    deployer = normalize_address(deployer, validate=True)
    digest = keccak(encode(["address", "uint256"], [deployer, nonce]))
    return "0x" + digest[-20:].hex()
