from src.models.kol import (
    AttributionConfidence,
    Kol,
    KolPerformance,
    KolTier,
    KolTransaction,
    KolWallet,
    KolWalletActivity,
    WalletType,
)
from src.models.score import (
    Confidence,
    RiskLevel,
    ScamFilterOutput,
    ScamFilterResult,
    ScoreFactors,
    TokenScore,
)
from src.models.signal import BuySignal, DiscoverySignal, EntryZone, PriceLevel, SignalType
from src.models.social import KolMention, SocialMetrics
from src.models.token import (
    BundleAnalysis,
    BundleRiskLevel,
    ContractAnalysis,
    DevWalletBehaviour,
    HoneypotResult,
    TokenMetrics,
    VolumeAuthenticityScore,
)

__all__ = [
    "TokenMetrics",
    "ContractAnalysis",
    "BundleAnalysis",
    "BundleRiskLevel",
    "DevWalletBehaviour",
    "HoneypotResult",
    "VolumeAuthenticityScore",
    "SocialMetrics",
    "KolMention",
    "Kol",
    "KolWallet",
    "KolPerformance",
    "KolTransaction",
    "KolWalletActivity",
    "KolTier",
    "WalletType",
    "AttributionConfidence",
    "ScamFilterResult",
    "ScamFilterOutput",
    "RiskLevel",
    "Confidence",
    "ScoreFactors",
    "TokenScore",
    "SignalType",
    "PriceLevel",
    "EntryZone",
    "BuySignal",
    "DiscoverySignal",
]
