"""Turns an approved TokenScore into concrete trade parameters.

Levels are fixed percentage offsets from the current price. Position size
starts from the configured default, scales up for very high scores, down
for caution flags, then is hard-capped.
"""

import uuid
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.models.kol import KolWalletActivity
from src.models.score import ScamFilterOutput, TokenScore
from src.models.signal import BuySignal, DiscoverySignal, EntryZone, PriceLevel, SignalType
from src.models.social import SocialMetrics
from src.models.token import TokenMetrics, VolumeAuthenticityScore
from src.parsers.scoring import (
    FLAG_LOW_HOLDER_COUNT,
    FLAG_LOW_LIQUIDITY,
    FLAG_NEW_TOKEN,
    FLAG_SIDE_ONLY,
    FLAG_VERY_NEW_TOKEN,
)

# (min score, multiplier), first match wins
SCORE_SIZE_TIERS: list[tuple[int, float]] = [(90, 1.5), (80, 1.25)]

# Caution flag -> size multiplier
CAUTION_SIZE_FACTORS: dict[str, float] = {
    FLAG_LOW_LIQUIDITY: 0.5,
    FLAG_NEW_TOKEN: 0.75,
    FLAG_SIDE_ONLY: 0.75,
}


def _new_id(prefix: str, address: str, now: datetime) -> str:
    return f"{prefix}_{int(now.timestamp() * 1000)}_{uuid.uuid4().hex[:6]}_{address[:8]}"


class SignalBuilder:
    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cfg = cfg or default_settings
        self._clock = clock or (lambda: datetime.now(UTC))

    # --- Position sizing ---

    def _apply_caution(self, size: float, score: TokenScore) -> float:
        for flag, factor in CAUTION_SIZE_FACTORS.items():
            if score.has_flag(flag):
                size *= factor
        return size

    def position_size(self, score: TokenScore) -> float:
        cfg = self._cfg
        size = cfg.default_position_size_pct
        for min_score, multiplier in SCORE_SIZE_TIERS:
            if score.composite_score >= min_score:
                size *= multiplier
                break
        size = self._apply_caution(size, score)
        return round(min(size, cfg.max_position_size_pct), 1)

    def discovery_position_size(self, score: TokenScore) -> float:
        cfg = self._cfg
        size = cfg.default_position_size_pct * cfg.discovery_position_size_factor
        size = self._apply_caution(size, score)
        return round(min(size, cfg.max_discovery_position_size_pct), 1)

    # --- Price levels ---

    def _levels(self, price: float) -> dict:
        cfg = self._cfg
        band = cfg.entry_zone_pct / 100
        return {
            "entry_zone": EntryZone(low=price * (1 - band), high=price * (1 + band)),
            "stop_loss": PriceLevel(
                price=price * (1 - cfg.stop_loss_pct / 100), percent=cfg.stop_loss_pct
            ),
            "take_profit_1": PriceLevel(
                price=price * (1 + cfg.take_profit_1_pct / 100), percent=cfg.take_profit_1_pct
            ),
            "take_profit_2": PriceLevel(
                price=price * (1 + cfg.take_profit_2_pct / 100), percent=cfg.take_profit_2_pct
            ),
        }

    # --- Builders ---

    def build_buy_signal(
        self,
        score: TokenScore,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_authenticity: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
        kol_activities: Sequence[KolWalletActivity],
        *,
        signal_type: SignalType = SignalType.BUY,
    ) -> BuySignal:
        """BUY (or KOL_VALIDATION) signal. First KOL activity is the primary one."""
        now = self._clock()
        prefix = "kolv" if signal_type is SignalType.KOL_VALIDATION else "sig"
        signal = BuySignal(
            id=_new_id(prefix, metrics.address, now),
            token_address=metrics.address,
            token_ticker=metrics.ticker,
            token_name=metrics.name,
            score=score,
            token_metrics=metrics,
            social_metrics=social,
            volume_authenticity=volume_authenticity,
            scam_filter=scam_filter,
            position_size_percent=self.position_size(score),
            time_limit_hours=self._cfg.signal_time_limit_hours,
            generated_at=now,
            signal_type=signal_type,
            kol_activity=kol_activities[0] if kol_activities else None,
            **self._levels(metrics.price),
        )
        logger.info(
            f"[BUILD] {signal.signal_type.value} ${metrics.ticker} score={score.composite_score} "
            f"size={signal.position_size_percent}% id={signal.id}"
        )
        return signal

    def build_discovery_signal(
        self,
        score: TokenScore,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_authenticity: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
    ) -> DiscoverySignal:
        now = self._clock()
        signal = DiscoverySignal(
            id=_new_id("disc", metrics.address, now),
            token_address=metrics.address,
            token_ticker=metrics.ticker,
            token_name=metrics.name,
            score=score,
            token_metrics=metrics,
            social_metrics=social,
            volume_authenticity=volume_authenticity,
            scam_filter=scam_filter,
            position_size_percent=self.discovery_position_size(score),
            time_limit_hours=self._cfg.discovery_time_limit_hours,
            generated_at=now,
            signal_type=SignalType.DISCOVERY,
            risk_warnings=tuple(self.discovery_risk_warnings(score, scam_filter)),
            **self._levels(metrics.price),
        )
        logger.info(
            f"[BUILD] DISCOVERY ${metrics.ticker} score={score.composite_score} "
            f"size={signal.position_size_percent}% warnings={len(signal.risk_warnings)}"
        )
        return signal

    def build_signal(
        self,
        score: TokenScore,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_authenticity: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
        kol_activities: Sequence[KolWalletActivity] = (),
        *,
        signal_type: SignalType | None = None,
    ) -> BuySignal | DiscoverySignal:
        """Dispatch on signal type; defaults to BUY with KOL activity, DISCOVERY without."""
        if signal_type is None:
            signal_type = SignalType.BUY if kol_activities else SignalType.DISCOVERY
        if signal_type is SignalType.DISCOVERY:
            return self.build_discovery_signal(
                score, metrics, social, volume_authenticity, scam_filter
            )
        return self.build_buy_signal(
            score,
            metrics,
            social,
            volume_authenticity,
            scam_filter,
            kol_activities,
            signal_type=signal_type,
        )

    @staticmethod
    def discovery_risk_warnings(score: TokenScore, scam_filter: ScamFilterOutput) -> list[str]:
        warnings = ["No KOL validation - metrics-only signal"]
        if score.has_flag(FLAG_VERY_NEW_TOKEN):
            warnings.append("Very new token (< 1 hour old)")
        elif score.has_flag(FLAG_NEW_TOKEN):
            warnings.append("New token (< 2 hours old)")
        if score.has_flag(FLAG_LOW_LIQUIDITY):
            warnings.append("Low liquidity - expect slippage")
        if score.has_flag(FLAG_LOW_HOLDER_COUNT):
            warnings.append("Low holder count")

        contract = scam_filter.contract_analysis
        if not contract.mint_authority_revoked:
            warnings.append("Mint authority not revoked")
        if not contract.freeze_authority_revoked:
            warnings.append("Freeze authority not revoked")
        if scam_filter.bundle_analysis.bundled_supply_percent > 10:
            warnings.append(
                f"Bundled supply {scam_filter.bundle_analysis.bundled_supply_percent:.0f}%"
            )
        return warnings
