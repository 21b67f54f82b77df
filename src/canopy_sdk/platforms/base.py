from __future__ import annotations

from dataclasses import dataclass

from ..constants import WITHDRAW_MIN_AMOUNT_OUT, WITHDRAW_MIN_AMOUNT_OUT_EXTERNAL_PROOF


@dataclass(frozen=True)
class PlatformSpec:
    """A strategy platform recognised by its concrete implementation address.

    Attributes:
        name: Display name (also used in generated vault names)
        concrete_address: Concrete address of the platform's strategy module
        requires_external_proof: Deposits/withdrawals need signed packets
        coin_entry_point: Transactions go through the native-coin router
            entry points instead of the fungible-asset ones
    """

    name: str
    concrete_address: str = ""
    requires_external_proof: bool = False
    coin_entry_point: bool = False

    @property
    def withdraw_min_amount_out(self) -> str:
        if self.requires_external_proof:
            return WITHDRAW_MIN_AMOUNT_OUT_EXTERNAL_PROOF
        return WITHDRAW_MIN_AMOUNT_OUT
