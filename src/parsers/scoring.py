"""Composite token scoring.

Two paths:
- validated: KOL buys present, weighted factors + narrative + timing, 0-150
- discovery: no KOL buys yet, on-chain / social / safety weights + narrative
  + timing, 0-100

A discovery score can later be upgraded with apply_kol_multiplier() once
KOL buys arrive.

Factor budget (validated):
- on-chain health    x0.25
- social momentum    x0.10
- KOL conviction     x0.25 main + x0.15 side
- scam risk inverse  x0.25
- narrative bonus    0-25, timing bonus 0-20 (added unweighted)

All functions here are pure and deterministic for the same inputs and
the same MetaThemes.
"""

from __future__ import annotations

import bisect
from collections.abc import Callable, Sequence

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.models.kol import KolWalletActivity, WalletType
from src.models.score import (
    Confidence,
    RiskLevel,
    ScamFilterOutput,
    ScamFilterResult,
    ScoreFactors,
    TokenScore,
)
from src.models.social import SocialMetrics
from src.models.token import TokenMetrics, VolumeAuthenticityScore
from src.parsers.kol_weighting import calculate_signal_weight
from src.parsers.narrative import MetaThemes, detect_narrative

FACTOR_WEIGHTS = {
    "on_chain_health": 0.25,
    "social_momentum": 0.10,
    "kol_conviction_main": 0.25,
    "kol_conviction_side": 0.15,
    "scam_risk_inverse": 0.25,
}

DISCOVERY_WEIGHTS = {
    "on_chain_health": 0.40,
    "social_momentum": 0.15,
    "scam_risk_inverse": 0.45,
}

KOL_MULTIPLIERS = {
    "NO_KOL": 1.0,
    "SINGLE_SIDE": 1.15,
    "SINGLE_MAIN": 1.25,
    "MULTI_SIDE": 1.30,
    "MIXED": 1.40,
    "MULTI_MAIN": 1.45,
    "HIGH_CONVICTION": 1.60,  # 3+ main wallets
}

MAX_VALIDATED_SCORE = 150
MAX_DISCOVERY_SCORE = 100

# Token age (minutes) -> timing bonus. Linear between anchors, flat after the last.
# Rises to a peak at 3-12h, then decays as the token goes stale.
TIMING_CURVE: list[tuple[float, float]] = [
    (0, 8),
    (30, 12),
    (60, 15),
    (180, 20),
    (720, 20),
    (1440, 17),
    (4320, 10),
]

RISK_BANDS: list[tuple[int, RiskLevel]] = [
    (85, RiskLevel.VERY_LOW),
    (75, RiskLevel.LOW),
    (65, RiskLevel.MEDIUM),
    (55, RiskLevel.HIGH),
]

DISCOVERY_RISK_BANDS: list[tuple[int, RiskLevel]] = [
    (90, RiskLevel.VERY_LOW),
    (80, RiskLevel.LOW),
    (65, RiskLevel.MEDIUM),
    (50, RiskLevel.HIGH),
]

# Scam risk inverse penalties
FLAG_PENALTY = 7
RUG_HISTORY_PENALTY = 25
BUNDLE_HEAVY_PENALTY = 15  # > 25% bundled
BUNDLE_LIGHT_PENALTY = 8  # > 15% bundled
DEV_CEX_PENALTY = 35
FLAGGED_CAP = 75

# Confidence / builder flags
FLAG_NEW_TOKEN = "NEW_TOKEN"
FLAG_VERY_NEW_TOKEN = "VERY_NEW_TOKEN"
FLAG_LOW_LIQUIDITY = "LOW_LIQUIDITY"
FLAG_LOW_HOLDER_COUNT = "LOW_HOLDER_COUNT"
FLAG_NO_KOL = "NO_KOL"
FLAG_SINGLE_KOL = "SINGLE_KOL"
FLAG_SIDE_ONLY = "SIDE_ONLY"
FLAG_LOW_SAMPLE_KOL = "LOW_SAMPLE_KOL"
FLAG_DISCOVERY = "DISCOVERY_SIGNAL"
FLAG_KOL_VALIDATED = "KOL_VALIDATED"

_CONFIDENCE_ORDER = [Confidence.LOW, Confidence.MEDIUM, Confidence.HIGH]

SignalWeightFn = Callable[[KolWalletActivity], float]


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _cap_confidence(current: Confidence, ceiling: Confidence) -> Confidence:
    return min(current, ceiling, key=_CONFIDENCE_ORDER.index)


def _bump_confidence(current: Confidence) -> Confidence:
    idx = _CONFIDENCE_ORDER.index(current)
    return _CONFIDENCE_ORDER[min(idx + 1, len(_CONFIDENCE_ORDER) - 1)]


def timing_bonus(token_age_minutes: float) -> float:
    """Bonus for entering early but not too early. Continuous, 8-20."""
    age = max(0.0, token_age_minutes)
    ages = [a for a, _ in TIMING_CURVE]
    if age >= ages[-1]:
        return float(TIMING_CURVE[-1][1])
    i = bisect.bisect_right(ages, age)
    (a0, b0), (a1, b1) = TIMING_CURVE[i - 1], TIMING_CURVE[i]
    return b0 + (b1 - b0) * (age - a0) / (a1 - a0)


def kol_multiplier(activities: Sequence[KolWalletActivity]) -> float:
    """Score multiplier for the mix of KOL wallets that bought."""
    main = sum(1 for a in activities if a.wallet_type is WalletType.MAIN)
    side = len(activities) - main

    if main >= 3:
        return KOL_MULTIPLIERS["HIGH_CONVICTION"]
    if main and side:
        return KOL_MULTIPLIERS["MIXED"]
    if main >= 2:
        return KOL_MULTIPLIERS["MULTI_MAIN"]
    if main == 1:
        return KOL_MULTIPLIERS["SINGLE_MAIN"]
    if side >= 2:
        return KOL_MULTIPLIERS["MULTI_SIDE"]
    if side == 1:
        return KOL_MULTIPLIERS["SINGLE_SIDE"]
    return KOL_MULTIPLIERS["NO_KOL"]


def _band_risk(score: float, bands: list[tuple[int, RiskLevel]]) -> RiskLevel:
    for threshold, level in bands:
        if score >= threshold:
            return level
    return RiskLevel.VERY_HIGH


def validated_risk_level(
    score: float,
    scam_result: ScamFilterResult,
    activities: Sequence[KolWalletActivity],
) -> RiskLevel:
    """Risk for a KOL-validated score. Flagged or side-only tokens are never below MEDIUM."""
    risk = _band_risk(score, RISK_BANDS)
    has_main = any(a.wallet_type is WalletType.MAIN for a in activities)
    if scam_result is ScamFilterResult.FLAG or not has_main:
        risk = max(risk, RiskLevel.MEDIUM)
    return risk


def discovery_risk_level(score: float, scam_result: ScamFilterResult) -> RiskLevel:
    # No KOL validation, so never better than MEDIUM
    risk = max(_band_risk(score, DISCOVERY_RISK_BANDS), RiskLevel.MEDIUM)
    if scam_result is ScamFilterResult.FLAG:
        risk = max(risk, RiskLevel.HIGH)
    return risk


class ScoringEngine:
    """Computes TokenScore for validated and discovery signals."""

    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        meta_themes: MetaThemes | None = None,
        signal_weight: SignalWeightFn = calculate_signal_weight,
    ) -> None:
        self._cfg = cfg or default_settings
        self._themes = meta_themes or MetaThemes.from_settings(self._cfg)
        self._signal_weight = signal_weight

    # --- Factors ---

    def on_chain_health(
        self, metrics: TokenMetrics, volume_authenticity: VolumeAuthenticityScore
    ) -> float:
        cfg = self._cfg
        ratio = metrics.volume_market_cap_ratio
        volume_pts = _clamp(ratio / cfg.ideal_volume_mcap_ratio * 20, 0, 20)
        holder_pts = _clamp(metrics.holder_count / cfg.ideal_holder_count * 40, 0, 40)
        concentration_pts = _clamp(
            20 - (metrics.top10_concentration - cfg.ideal_top10_concentration) / 2, 0, 20
        )
        authenticity_pts = _clamp(volume_authenticity.score * 0.2, 0, 20)
        return _clamp(volume_pts + holder_pts + concentration_pts + authenticity_pts, 0, 100)

    def social_momentum(self, social: SocialMetrics) -> float:
        velocity_pts = _clamp(
            social.mention_velocity_1h / self._cfg.ideal_mention_velocity * 25, 0, 25
        )
        engagement_pts = _clamp(social.engagement_quality, 0, 1) * 20
        authenticity_pts = _clamp(social.account_authenticity, 0, 1) * 20
        sentiment_pts = (_clamp(social.sentiment_polarity, -1, 1) + 1) / 2 * 15

        kol_pts = 0.0
        if social.kol_mention_detected:
            mentions = social.kol_mentions
            kol_pts = 10 + min(10, 3 * len(mentions))
            if any(m.tier in ("S", "A") for m in mentions):
                kol_pts += 5
            kol_pts = min(20, kol_pts)

        total = velocity_pts + engagement_pts + authenticity_pts + sentiment_pts + kol_pts
        return _clamp(total, 0, 100)

    def kol_conviction(
        self, activities: Sequence[KolWalletActivity], wallet_type: WalletType
    ) -> float:
        """Weighted buy size of one wallet type. 10 SOL at weight 1.0 = 50 pts."""
        total = 0.0
        for activity in activities:
            if activity.wallet_type is not wallet_type:
                continue
            size_factor = min(2.0, activity.transaction.sol_amount / 10)
            total += self._signal_weight(activity) * size_factor
        return _clamp(total * 50, 0, 100)

    def scam_risk_inverse(self, scam_filter: ScamFilterOutput) -> float:
        if scam_filter.result is ScamFilterResult.REJECT:
            return 0.0

        score = 100.0 - FLAG_PENALTY * len(scam_filter.flags)

        bundle = scam_filter.bundle_analysis
        if bundle.has_rug_history or scam_filter.rug_history_wallet_count > 0:
            score -= RUG_HISTORY_PENALTY
        if bundle.bundled_supply_percent > 25:
            score -= BUNDLE_HEAVY_PENALTY
        elif bundle.bundled_supply_percent > 15:
            score -= BUNDLE_LIGHT_PENALTY

        dev = scam_filter.dev_behaviour
        if dev is not None and dev.transferred_to_cex:
            score -= DEV_CEX_PENALTY

        if scam_filter.result is ScamFilterResult.FLAG:
            score = min(score, FLAGGED_CAP)
        return max(0.0, score)

    def narrative_bonus(self, metrics: TokenMetrics, social: SocialMetrics) -> float:
        narrative = social.narrative_fit or detect_narrative(metrics.name, metrics.ticker)
        if not narrative:
            return 0.0
        if self._themes.matches(narrative, metrics.name, metrics.ticker):
            return 25.0
        if social.kol_mention_detected:
            return 15.0
        return 5.0

    # --- Confidence ---

    def _validated_confidence(
        self,
        metrics: TokenMetrics,
        activities: Sequence[KolWalletActivity],
        scam_filter: ScamFilterOutput,
    ) -> tuple[Confidence, int, list[str]]:
        cfg = self._cfg
        confidence = Confidence.HIGH
        band = 5
        flags: list[str] = []

        if metrics.token_age < cfg.confidence_very_new_token_minutes:
            flags += [FLAG_VERY_NEW_TOKEN, FLAG_NEW_TOKEN]
            confidence = Confidence.LOW
            band = 20
        elif metrics.token_age < cfg.confidence_new_token_minutes:
            flags.append(FLAG_NEW_TOKEN)
            confidence = _cap_confidence(confidence, Confidence.MEDIUM)
            band = 15

        if metrics.liquidity_pool < cfg.confidence_min_liquidity_usd:
            flags.append(FLAG_LOW_LIQUIDITY)
            confidence = _cap_confidence(confidence, Confidence.MEDIUM)
            band = max(band, 10)

        if not activities:
            flags.append(FLAG_NO_KOL)
            confidence = _cap_confidence(confidence, Confidence.MEDIUM)
            band = max(band, 10)
        elif len(activities) < cfg.confidence_min_kol_count:
            flags.append(FLAG_SINGLE_KOL)
            band = max(band, 8)

        if activities and all(a.wallet_type is WalletType.SIDE for a in activities):
            flags.append(FLAG_SIDE_ONLY)
            confidence = _cap_confidence(confidence, Confidence.MEDIUM)

        if any(a.performance.total_trades < cfg.confidence_min_kol_trades for a in activities):
            flags.append(FLAG_LOW_SAMPLE_KOL)
            confidence = _cap_confidence(confidence, Confidence.MEDIUM)
            band = max(band, 10)

        flags.extend(scam_filter.flags)
        return confidence, band, flags

    def _discovery_confidence(
        self, metrics: TokenMetrics, scam_filter: ScamFilterOutput
    ) -> tuple[Confidence, int, list[str]]:
        cfg = self._cfg
        confidence = Confidence.MEDIUM
        band = 12
        flags: list[str] = []

        if metrics.token_age < cfg.confidence_very_new_token_minutes:
            flags += [FLAG_VERY_NEW_TOKEN, FLAG_NEW_TOKEN]
            confidence = Confidence.LOW
            band = 20
        elif metrics.token_age < cfg.confidence_new_token_minutes:
            flags.append(FLAG_NEW_TOKEN)
            band = 15

        if metrics.liquidity_pool < cfg.confidence_min_liquidity_usd:
            flags.append(FLAG_LOW_LIQUIDITY)
            band = max(band, 15)

        if metrics.holder_count < cfg.confidence_min_holder_count:
            flags.append(FLAG_LOW_HOLDER_COUNT)

        flags.extend(scam_filter.flags)
        flags.append(FLAG_DISCOVERY)
        return confidence, band, flags

    # --- Public API ---

    def calculate_score(
        self,
        token_address: str,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_authenticity: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
        kol_activities: Sequence[KolWalletActivity],
    ) -> TokenScore:
        """Score a token with KOL buy activity (possibly empty)."""
        factors = ScoreFactors(
            on_chain_health=self.on_chain_health(metrics, volume_authenticity),
            social_momentum=self.social_momentum(social),
            kol_conviction_main=self.kol_conviction(kol_activities, WalletType.MAIN),
            kol_conviction_side=self.kol_conviction(kol_activities, WalletType.SIDE),
            scam_risk_inverse=self.scam_risk_inverse(scam_filter),
            narrative_bonus=self.narrative_bonus(metrics, social),
            timing_bonus=timing_bonus(metrics.token_age),
        )

        weighted = sum(getattr(factors, name) * w for name, w in FACTOR_WEIGHTS.items())
        raw = weighted + factors.narrative_bonus + factors.timing_bonus
        composite = round(_clamp(raw, 0, MAX_VALIDATED_SCORE))

        confidence, band, flags = self._validated_confidence(metrics, kol_activities, scam_filter)
        risk = validated_risk_level(composite, scam_filter.result, kol_activities)

        logger.debug(
            f"[SCORE] {token_address[:12]} composite={composite} "
            f"onchain={factors.on_chain_health:.0f} social={factors.social_momentum:.0f} "
            f"main={factors.kol_conviction_main:.0f} side={factors.kol_conviction_side:.0f} "
            f"safety={factors.scam_risk_inverse:.0f} narr={factors.narrative_bonus:.0f} "
            f"timing={factors.timing_bonus:.1f} risk={risk.name} conf={confidence.value}"
        )

        return TokenScore(
            token_address=token_address,
            composite_score=composite,
            factors=factors,
            confidence=confidence,
            confidence_band=band,
            flags=tuple(flags),
            risk_level=risk,
            scam_filter_result=scam_filter.result,
        )

    def calculate_discovery_score(
        self,
        token_address: str,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_authenticity: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
    ) -> TokenScore:
        """Score a token with no KOL activity. KOL factors stay at 0."""
        factors = ScoreFactors(
            on_chain_health=self.on_chain_health(metrics, volume_authenticity),
            social_momentum=self.social_momentum(social),
            scam_risk_inverse=self.scam_risk_inverse(scam_filter),
            narrative_bonus=self.narrative_bonus(metrics, social),
            timing_bonus=timing_bonus(metrics.token_age),
        )

        weighted = sum(getattr(factors, name) * w for name, w in DISCOVERY_WEIGHTS.items())
        raw = weighted + factors.narrative_bonus + factors.timing_bonus
        composite = round(_clamp(raw, 0, MAX_DISCOVERY_SCORE))

        confidence, band, flags = self._discovery_confidence(metrics, scam_filter)
        risk = discovery_risk_level(composite, scam_filter.result)

        logger.debug(
            f"[SCORE] {token_address[:12]} discovery={composite} "
            f"onchain={factors.on_chain_health:.0f} social={factors.social_momentum:.0f} "
            f"safety={factors.scam_risk_inverse:.0f} narr={factors.narrative_bonus:.0f} "
            f"timing={factors.timing_bonus:.1f} risk={risk.name}"
        )

        return TokenScore(
            token_address=token_address,
            composite_score=composite,
            factors=factors,
            confidence=confidence,
            confidence_band=band,
            flags=tuple(flags),
            risk_level=risk,
            scam_filter_result=scam_filter.result,
        )

    def apply_kol_multiplier(
        self, score: TokenScore, kol_activities: Sequence[KolWalletActivity]
    ) -> TokenScore:
        """Upgrade a discovery score once KOL buys are seen.

        The multiplier scales the stored composite, so a discovery score of 0
        stays 0 however many wallets bought.
        """
        multiplier = kol_multiplier(kol_activities)
        boosted = round(_clamp(score.composite_score * multiplier, 0, MAX_VALIDATED_SCORE))

        factors = ScoreFactors(
            on_chain_health=score.factors.on_chain_health,
            social_momentum=score.factors.social_momentum,
            kol_conviction_main=self.kol_conviction(kol_activities, WalletType.MAIN),
            kol_conviction_side=self.kol_conviction(kol_activities, WalletType.SIDE),
            scam_risk_inverse=score.factors.scam_risk_inverse,
            narrative_bonus=score.factors.narrative_bonus,
            timing_bonus=score.factors.timing_bonus,
        )

        flags = [f for f in score.flags if f != FLAG_DISCOVERY]
        if FLAG_KOL_VALIDATED not in flags:
            flags.append(FLAG_KOL_VALIDATED)

        confidence = score.confidence
        if any(a.wallet_type is WalletType.MAIN for a in kol_activities):
            confidence = _bump_confidence(confidence)

        risk = validated_risk_level(boosted, score.scam_filter_result, kol_activities)

        logger.info(
            f"[SCORE] {score.token_address[:12]} KOL validated: "
            f"{score.composite_score} x{multiplier:.2f} -> {boosted} "
            f"({len(kol_activities)} wallets)"
        )

        return TokenScore(
            token_address=score.token_address,
            composite_score=boosted,
            factors=factors,
            confidence=confidence,
            confidence_band=score.confidence_band,
            flags=tuple(flags),
            risk_level=risk,
            scam_filter_result=score.scam_filter_result,
        )
