"""Default KOL signal weighting.

Reference rules for how much a single KOL buy counts. A KOL tracker
collaborator may supply its own; the scorer and the gate only need the two
callables below.
"""

from src.models.kol import AttributionConfidence, KolTier, KolWalletActivity, WalletType

MAIN_WALLET_WEIGHT = 1.0
SIDE_WALLET_WEIGHT = 0.7

# Side wallets only, main wallets are attributed with certainty
CONFIDENCE_WEIGHTS: dict[AttributionConfidence, float] = {
    AttributionConfidence.HIGH: 0.85,
    AttributionConfidence.MEDIUM_HIGH: 0.70,
    AttributionConfidence.MEDIUM: 0.50,
    AttributionConfidence.LOW_MEDIUM: 0.30,
    AttributionConfidence.LOW: 0.10,
}

TIER_WEIGHTS: dict[KolTier, float] = {
    KolTier.TIER_1: 1.0,
    KolTier.TIER_2: 0.7,
    KolTier.TIER_3: 0.4,
}

# Below this many closed trades the win rate is noise
MIN_TRADES_FOR_WIN_RATE = 10
DEFAULT_ACCURACY = 0.5

MIN_SIGNAL_CONFIDENCE = AttributionConfidence.MEDIUM

_CONFIDENCE_ORDER = [
    AttributionConfidence.HIGH,
    AttributionConfidence.MEDIUM_HIGH,
    AttributionConfidence.MEDIUM,
    AttributionConfidence.LOW_MEDIUM,
    AttributionConfidence.LOW,
]


def calculate_signal_weight(activity: KolWalletActivity) -> float:
    """Weight of one KOL buy: wallet x attribution x tier x accuracy."""
    is_main = activity.wallet.wallet_type is WalletType.MAIN
    wallet_weight = MAIN_WALLET_WEIGHT if is_main else SIDE_WALLET_WEIGHT
    confidence_weight = (
        1.0 if is_main else CONFIDENCE_WEIGHTS[activity.wallet.attribution_confidence]
    )
    tier_weight = TIER_WEIGHTS[activity.kol.tier]

    perf = activity.performance
    accuracy = perf.win_rate if perf.total_trades >= MIN_TRADES_FOR_WIN_RATE else DEFAULT_ACCURACY

    return wallet_weight * confidence_weight * tier_weight * accuracy


def meets_signal_requirements(
    activity: KolWalletActivity,
    *,
    min_confidence: AttributionConfidence = MIN_SIGNAL_CONFIDENCE,
) -> bool:
    """Main wallets always qualify; side wallets need enough attribution confidence."""
    if activity.wallet.wallet_type is WalletType.MAIN:
        return True
    wallet_rank = _CONFIDENCE_ORDER.index(activity.wallet.attribution_confidence)
    return wallet_rank <= _CONFIDENCE_ORDER.index(min_confidence)
