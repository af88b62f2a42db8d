"""Trade signals handed to the delivery layer.

Built only by SignalBuilder after the decision gate approved the score.
Frozen: a signal never changes once emitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from src.models.kol import KolWalletActivity
from src.models.score import ScamFilterOutput, TokenScore
from src.models.social import SocialMetrics
from src.models.token import TokenMetrics, VolumeAuthenticityScore


class SignalType(str, Enum):
    BUY = "BUY"
    DISCOVERY = "DISCOVERY"  # metrics-only, no KOL yet
    KOL_VALIDATION = "KOL_VALIDATION"  # KOL bought a previously discovered token


@dataclass(frozen=True)
class PriceLevel:
    price: float
    percent: float  # distance from current price, always positive


@dataclass(frozen=True)
class EntryZone:
    low: float
    high: float


@dataclass(frozen=True)
class _TradeParameters:
    id: str
    token_address: str
    token_ticker: str
    token_name: str

    score: TokenScore
    token_metrics: TokenMetrics
    social_metrics: SocialMetrics
    volume_authenticity: VolumeAuthenticityScore
    scam_filter: ScamFilterOutput

    entry_zone: EntryZone
    position_size_percent: float
    stop_loss: PriceLevel
    take_profit_1: PriceLevel
    take_profit_2: PriceLevel
    time_limit_hours: int

    generated_at: datetime
    signal_type: SignalType

    @property
    def expires_at(self) -> datetime:
        return self.generated_at + timedelta(hours=self.time_limit_hours)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(frozen=True)
class BuySignal(_TradeParameters):
    kol_activity: KolWalletActivity | None = None


@dataclass(frozen=True)
class DiscoverySignal(_TradeParameters):
    kol_activity: KolWalletActivity | None = None
    risk_warnings: tuple[str, ...] = ()
