"""
Fee parameter derivation for UserOperations
"""

from dataclasses import dataclass
from typing import Dict

# tip + tip / 1300 (~0.077% padding) on the network priority fee suggestion
FEE_BUFFER_DIVISOR = 100 * 13


def pad_priority_fee(tip: int) -> int:
    """Add the fixed safety buffer to a priority fee suggestion"""
    return tip + tip // FEE_BUFFER_DIVISOR


@dataclass(frozen=True)
class GasPrice:
    """maxFeePerGas / maxPriorityFeePerGas pair, in wei"""

    max_fee_per_gas: int
    max_priority_fee_per_gas: int

    @classmethod
    def from_priority_fee(cls, tip: int) -> "GasPrice":
        padded = pad_priority_fee(tip)
        return cls(max_fee_per_gas=padded, max_priority_fee_per_gas=padded)

    @classmethod
    def from_legacy_price(cls, price: int) -> "GasPrice":
        return cls(max_fee_per_gas=price, max_priority_fee_per_gas=price)

    def to_dict(self) -> Dict[str, int]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }
