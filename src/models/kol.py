"""KOL wallet activity as supplied by the KOL tracker."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class KolTier(str, Enum):
    TIER_1 = "TIER_1"
    TIER_2 = "TIER_2"
    TIER_3 = "TIER_3"


class WalletType(str, Enum):
    MAIN = "MAIN"
    SIDE = "SIDE"


class AttributionConfidence(str, Enum):
    """How sure we are that a side wallet belongs to the KOL."""

    HIGH = "HIGH"
    MEDIUM_HIGH = "MEDIUM_HIGH"
    MEDIUM = "MEDIUM"
    LOW_MEDIUM = "LOW_MEDIUM"
    LOW = "LOW"


class Kol(BaseModel):
    id: str
    handle: str
    follower_count: int = 0
    tier: KolTier = KolTier.TIER_2

    model_config = {"frozen": True, "extra": "ignore"}


class KolWallet(BaseModel):
    id: str
    kol_id: str
    address: str
    wallet_type: WalletType
    attribution_confidence: AttributionConfidence = AttributionConfidence.HIGH
    verified: bool = False

    model_config = {"frozen": True, "extra": "ignore"}


class KolPerformance(BaseModel):
    kol_id: str
    total_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0.0  # 0-1
    avg_roi: float = 0.0
    median_roi: float = 0.0

    model_config = {"frozen": True, "extra": "ignore"}


class KolTransaction(BaseModel):
    signature: str
    sol_amount: float
    usd_value: float = 0.0
    tokens_acquired: float = 0.0
    supply_percent: float = 0.0
    timestamp: datetime

    model_config = {"frozen": True, "extra": "ignore"}


class KolWalletActivity(BaseModel):
    """One KOL buy of the evaluated token."""

    kol: Kol
    wallet: KolWallet
    performance: KolPerformance
    transaction: KolTransaction

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def wallet_type(self) -> WalletType:
        return self.wallet.wallet_type
