"""Interfaces of the external collaborators the pipeline consumes.

Provider clients, the KOL tracker, the rug registry, the position tracker
and the delivery layer live outside this package. Anything with matching
async methods can be plugged in (tests use small fakes).
"""

from __future__ import annotations

from typing import Protocol

from src.models.kol import KolWalletActivity
from src.models.signal import BuySignal, DiscoverySignal
from src.models.social import SocialMetrics
from src.models.token import (
    BundleAnalysis,
    ContractAnalysis,
    DevWalletBehaviour,
    HoneypotResult,
    TokenMetrics,
    VolumeAuthenticityScore,
)


class TokenDataSource(Protocol):
    """Market, on-chain and security data for a token."""

    async def get_token_metrics(self, address: str) -> TokenMetrics | None: ...

    async def analyze_contract(self, address: str) -> ContractAnalysis: ...

    async def analyze_bundles(self, address: str) -> BundleAnalysis: ...

    async def analyze_dev_wallet(self, address: str) -> DevWalletBehaviour | None: ...

    async def check_honeypot(self, address: str) -> HoneypotResult | None: ...

    async def get_top_holders(self, address: str, limit: int = 20) -> list[str]: ...

    async def get_volume_authenticity(self, address: str) -> VolumeAuthenticityScore: ...


class SocialDataSource(Protocol):
    async def get_social_metrics(self, address: str) -> SocialMetrics: ...


class KolActivitySource(Protocol):
    """KOL tracker: recent KOL buys plus its own weighting rules."""

    async def get_kol_activity(
        self, address: str, window_ms: int
    ) -> list[KolWalletActivity]: ...

    def calculate_signal_weight(self, activity: KolWalletActivity) -> float: ...

    def meets_signal_requirements(self, activity: KolWalletActivity) -> bool: ...


class RugRegistry(Protocol):
    async def is_rug_wallet(self, address: str) -> bool: ...


class PositionTracker(Protocol):
    async def has_open_position(self, address: str) -> bool: ...


class SignalSink(Protocol):
    """Delivery layer (Telegram, auto-trader, outcome recorder...)."""

    async def deliver(self, signal: BuySignal | DiscoverySignal) -> None: ...
