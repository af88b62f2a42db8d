"""Token evaluation pipeline.

One evaluation is a short sequential pipeline:

    open position? -> quick check -> metrics -> screening
      -> [scam filter | social | volume authenticity | KOL activity] (parallel)
      -> KOL path (buy / KOL validation) or discovery path
      -> gate -> builder -> sink

Every collaborator call carries its own timeout. A failed fetch falls back
to a conservative default, it never aborts the evaluation. Tokens are
independent: evaluate_batch() runs them concurrently, bounded by a
semaphore, and isolates per-token errors.
"""

import asyncio
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.models.kol import KolWalletActivity
from src.models.score import ScamFilterOutput, TokenScore
from src.models.signal import SignalType
from src.models.social import SocialMetrics
from src.models.token import TokenMetrics, VolumeAuthenticityScore
from src.parsers.collaborators import (
    KolActivitySource,
    PositionTracker,
    RugRegistry,
    SignalSink,
    SocialDataSource,
    TokenDataSource,
)
from src.parsers.evaluation_types import EvalResult, Evaluation, validate_token_address
from src.parsers.fetch_guard import guarded_fetch
from src.parsers.narrative import MetaThemes
from src.parsers.quick_screen import quick_check
from src.parsers.scam_filter import ScamFilter
from src.parsers.screening import failed_screening_criteria
from src.parsers.scoring import ScoringEngine
from src.parsers.signal_builder import SignalBuilder
from src.parsers.signals import SignalGate

NEUTRAL_VOLUME_AUTHENTICITY = VolumeAuthenticityScore(score=50.0)

# Social data unavailable: on-chain proxy never counts for more than this
SOCIAL_PROXY_CAP = 0.6


def social_proxy(metrics: TokenMetrics, cfg: Settings | None = None) -> SocialMetrics:
    """Stand-in social metrics derived from on-chain activity."""
    cfg = cfg or default_settings
    holder_signal = metrics.holder_count / cfg.ideal_holder_count
    volume_signal = metrics.volume_market_cap_ratio / cfg.ideal_volume_mcap_ratio
    return SocialMetrics(
        engagement_quality=min(SOCIAL_PROXY_CAP, max(0.0, volume_signal)),
        account_authenticity=min(SOCIAL_PROXY_CAP, max(0.0, holder_signal)),
    )


class TokenEvaluator:
    def __init__(
        self,
        token_source: TokenDataSource,
        social_source: SocialDataSource,
        kol_source: KolActivitySource,
        rug_registry: RugRegistry,
        position_tracker: PositionTracker,
        sink: SignalSink,
        *,
        cfg: Settings | None = None,
        meta_themes: MetaThemes | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._cfg = cfg or default_settings
        self._tokens = token_source
        self._social = social_source
        self._kols = kol_source
        self._positions = position_tracker
        self._sink = sink

        self.scam_filter = ScamFilter(token_source, rug_registry, cfg=self._cfg)
        self.scorer = ScoringEngine(
            self._cfg,
            meta_themes=meta_themes,
            signal_weight=kol_source.calculate_signal_weight,
        )
        self.gate = SignalGate(self._cfg, kol_predicate=kol_source.meets_signal_requirements)
        self.builder = SignalBuilder(self._cfg, clock=clock)

    async def _fetch(self, awaitable, label: str, address: str):
        return await guarded_fetch(
            awaitable, label=label, address=address, timeout=self._cfg.fetch_timeout_sec
        )

    async def evaluate_token(
        self, address: str, *, previous_discovery: TokenScore | None = None
    ) -> Evaluation:
        """Run the full pipeline for one token.

        previous_discovery: discovery score emitted earlier for this token.
        When KOL buys show up now, it is re-scored with the KOL multiplier
        instead of from scratch and emitted as KOL_VALIDATION.

        Raises InvalidTokenAddressError for malformed addresses.
        """
        validate_token_address(address)

        has_position = await self._fetch(
            self._positions.has_open_position(address), "position_tracker", address
        )
        if has_position is None:
            return Evaluation(address, EvalResult.SKIPPED, "Position check failed")
        if has_position:
            logger.debug(f"[EVAL] {address[:12]} skipped: open position")
            return Evaluation(address, EvalResult.SKIPPED, "Open position")

        quick = await quick_check(address, self._tokens, cfg=self._cfg)
        if not quick.passed:
            return Evaluation(address, EvalResult.QUICK_CHECK_FAILED, quick.reason)

        metrics = await self._fetch(self._tokens.get_token_metrics(address), "metrics", address)
        if metrics is None:
            logger.debug(f"[EVAL] {address[:12]} no metrics")
            return Evaluation(address, EvalResult.NO_METRICS, "Metrics unavailable")

        failed = failed_screening_criteria(metrics, self._cfg)
        if failed:
            logger.debug(f"[EVAL] {address[:12]} screening failed: {'; '.join(failed)}")
            return Evaluation(address, EvalResult.SCREENING_FAILED, "; ".join(failed))

        scam_filter, social, volume_auth, kol_activities = await asyncio.gather(
            self.scam_filter.filter_token(address, metrics),
            self._fetch(self._social.get_social_metrics(address), "social", address),
            self._fetch(
                self._tokens.get_volume_authenticity(address), "volume_authenticity", address
            ),
            self._fetch(
                self._kols.get_kol_activity(address, self._cfg.kol_activity_window_ms),
                "kol_activity",
                address,
            ),
        )

        if scam_filter.is_rejected:
            return Evaluation(
                address,
                EvalResult.SCAM_REJECTED,
                scam_filter.flags[-1] if scam_filter.flags else "Scam filter reject",
                scam_filter=scam_filter,
            )

        if social is None:
            social = social_proxy(metrics, self._cfg)
        if volume_auth is None:
            volume_auth = NEUTRAL_VOLUME_AUTHENTICITY
        kol_activities = list(kol_activities or [])

        if kol_activities:
            return await self._kol_path(
                metrics, social, volume_auth, scam_filter, kol_activities, previous_discovery
            )
        return await self._discovery_path(metrics, social, volume_auth, scam_filter)

    async def _kol_path(
        self,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_auth: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
        kol_activities: Sequence[KolWalletActivity],
        previous_discovery: TokenScore | None,
    ) -> Evaluation:
        address = metrics.address
        signal_type = SignalType.BUY if previous_discovery is None else SignalType.KOL_VALIDATION
        try:
            if previous_discovery is None:
                score = self.scorer.calculate_score(
                    address, metrics, social, volume_auth, scam_filter, kol_activities
                )
            else:
                score = self.scorer.apply_kol_multiplier(previous_discovery, kol_activities)
        except Exception as e:
            logger.error(f"[EVAL] {address[:12]} scoring failed: {e}")
            return Evaluation(address, EvalResult.SCORING_FAILED, str(e), scam_filter=scam_filter)

        decision = self.gate.meets_buy_requirements(score, kol_activities)
        if not decision.meets:
            watch = self.gate.meets_watch_requirements(score)
            result = EvalResult.WATCH if watch.meets else EvalResult.GATE_REJECTED
            logger.info(
                f"[EVAL] {address[:12]} {result.value}: {decision.reason} "
                f"(score={score.composite_score})"
            )
            return Evaluation(address, result, decision.reason, scam_filter, score)

        signal = self.builder.build_buy_signal(
            score,
            metrics,
            social,
            volume_auth,
            scam_filter,
            kol_activities,
            signal_type=signal_type,
        )
        sent = (
            EvalResult.SIGNAL_SENT
            if signal_type is SignalType.BUY
            else EvalResult.KOL_VALIDATION_SENT
        )
        return await self._deliver(signal, sent, scam_filter, score)

    async def _discovery_path(
        self,
        metrics: TokenMetrics,
        social: SocialMetrics,
        volume_auth: VolumeAuthenticityScore,
        scam_filter: ScamFilterOutput,
    ) -> Evaluation:
        address = metrics.address
        try:
            score = self.scorer.calculate_discovery_score(
                address, metrics, social, volume_auth, scam_filter
            )
        except Exception as e:
            logger.error(f"[EVAL] {address[:12]} discovery scoring failed: {e}")
            return Evaluation(address, EvalResult.SCORING_FAILED, str(e), scam_filter=scam_filter)

        decision = self.gate.meets_discovery_requirements(score, scam_filter)
        if not decision.meets:
            logger.debug(f"[EVAL] {address[:12]} discovery rejected: {decision.reason}")
            return Evaluation(
                address, EvalResult.DISCOVERY_FAILED, decision.reason, scam_filter, score
            )

        signal = self.builder.build_discovery_signal(
            score, metrics, social, volume_auth, scam_filter
        )
        return await self._deliver(signal, EvalResult.DISCOVERY_SENT, scam_filter, score)

    async def _deliver(self, signal, sent: EvalResult, scam_filter, score) -> Evaluation:
        address = signal.token_address
        try:
            await asyncio.wait_for(self._sink.deliver(signal), timeout=self._cfg.fetch_timeout_sec)
        except Exception as e:
            logger.error(f"[EVAL] {address[:12]} delivery of {signal.id} failed: {e!r}")
            return Evaluation(
                address, EvalResult.DELIVERY_FAILED, str(e), scam_filter, score, signal
            )
        logger.info(
            f"[EVAL] {address[:12]} {sent.value} ${signal.token_ticker} "
            f"score={score.composite_score} risk={score.risk_level.name}"
        )
        return Evaluation(address, sent, None, scam_filter, score, signal)

    async def evaluate_batch(
        self,
        addresses: Iterable[str],
        *,
        previous_discoveries: dict[str, TokenScore] | None = None,
    ) -> list[Evaluation]:
        """Evaluate many tokens concurrently. One bad token never halts the batch."""
        previous_discoveries = previous_discoveries or {}
        sem = asyncio.Semaphore(self._cfg.scan_concurrency)

        async def _one(address: str) -> Evaluation:
            async with sem:
                try:
                    return await self.evaluate_token(
                        address, previous_discovery=previous_discoveries.get(address)
                    )
                except Exception as e:
                    logger.exception(f"[EVAL] {str(address)[:12]} evaluation error: {e}")
                    return Evaluation(str(address), EvalResult.ERROR, str(e))

        results = await asyncio.gather(*(_one(a) for a in addresses))
        sent = sum(1 for r in results if r.signal_sent)
        logger.info(f"[EVAL] Batch done: {len(results)} tokens, {sent} signals")
        return list(results)
