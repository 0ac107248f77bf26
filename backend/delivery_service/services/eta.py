"""
Delivery time estimation.
"""
from typing import Protocol

from delivery_service.core.config import settings


class EtaEstimator(Protocol):
    """Returns an ETA in minutes at delivery creation time."""

    def estimate(self, pickup_address: str, delivery_address: str) -> float:
        ...


class FixedEtaEstimator:
    """Constant ETA until a routing-based estimator is plugged in."""

    def __init__(self, minutes: float = settings.DEFAULT_ESTIMATED_DELIVERY_MINUTES):
        self.minutes = minutes

    def estimate(self, pickup_address: str, delivery_address: str) -> float:
        return self.minutes


default_estimator = FixedEtaEstimator()
