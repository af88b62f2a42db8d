"""Immutable per-evaluation token snapshots supplied by upstream analyzers."""

from enum import Enum

from pydantic import BaseModel, computed_field


class TokenMetrics(BaseModel):
    """Market + holder snapshot for one token at evaluation time."""

    address: str
    ticker: str = ""
    name: str = ""
    price: float = 0.0
    market_cap: float = 0.0
    volume_24h: float = 0.0
    holder_count: int = 0
    holder_change_1h: float = 0.0  # % change
    top10_concentration: float = 0.0  # % of supply held by top 10
    liquidity_pool: float = 0.0  # USD
    token_age: float = 0.0  # minutes since launch
    lp_locked: bool = False
    lp_lock_duration: int | None = None

    model_config = {"frozen": True, "extra": "ignore"}

    @computed_field
    @property
    def volume_market_cap_ratio(self) -> float:
        if self.market_cap <= 0:
            return 0.0
        return self.volume_24h / self.market_cap


class ContractAnalysis(BaseModel):
    mint_authority_revoked: bool = False
    freeze_authority_revoked: bool = False
    metadata_mutable: bool = True
    is_known_scam_template: bool = False

    model_config = {"frozen": True, "extra": "ignore"}


class BundleRiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class BundleAnalysis(BaseModel):
    """Insider / coordinated-launch analysis of early holders."""

    bundle_detected: bool = False
    bundled_supply_percent: float = 0.0
    clustered_wallet_count: int = 0
    funding_overlap_detected: bool = False
    has_rug_history: bool = False
    risk_level: BundleRiskLevel = BundleRiskLevel.LOW

    model_config = {"frozen": True, "extra": "ignore"}


class DevWalletBehaviour(BaseModel):
    deployer_address: str
    sold_percent_48h: float = 0.0
    transferred_to_cex: bool = False
    cex_addresses: list[str] = []
    bridge_activity: bool = False

    model_config = {"frozen": True, "extra": "ignore"}


class HoneypotResult(BaseModel):
    """Sellability check result.

    is_honeypot: confirmed unsellable (sell simulation or failed-sell ratio).
    is_suspected: elevated failed-sell ratio, not conclusive.
    """

    is_honeypot: bool = False
    is_suspected: bool = False
    failed_ratio: float = 0.0  # 0.0 - 1.0

    model_config = {"frozen": True, "extra": "ignore"}


class VolumeAuthenticityScore(BaseModel):
    score: float = 0.0  # 0-100, higher = more organic
    unique_wallet_ratio: float = 0.0
    size_distribution_score: float = 0.0
    temporal_pattern_score: float = 0.0
    is_wash_trading_suspected: bool = False

    model_config = {"frozen": True, "extra": "ignore"}
