"""Shared types and HTTP models for the exchange."""

from exchange.models.types import (
    UINT256_MAX,
    Address,
    Uint256,
    is_valid_address,
    normalize_address,
    validate_uint256,
)

__all__ = [
    "UINT256_MAX",
    "Address",
    "Uint256",
    "is_valid_address",
    "normalize_address",
    "validate_uint256",
]
