"""Asset and native-currency ledgers consumed by the exchange."""

from exchange.ledger.base import AssetLedger, Attachable, Journaled
from exchange.ledger.native import NativeLedger
from exchange.ledger.token import Token

__all__ = ["AssetLedger", "Attachable", "Journaled", "NativeLedger", "Token"]
