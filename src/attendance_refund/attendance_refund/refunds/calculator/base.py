from __future__ import annotations

from abc import ABC, abstractmethod

from ..model import DepositCalculationInput, RefundDecision


class RefundCalculator(ABC):
    """Calculator interface (Strategy Pattern for deposit refunds)."""

    @abstractmethod
    def evaluate(self, data: DepositCalculationInput) -> RefundDecision:
        raise NotImplementedError
