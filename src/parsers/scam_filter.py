"""Scam filter: ordered cascade of risk stages.

Stages run strictly in order:
  1. honeypot: confirmed unsellable => REJECT
  2. contract: scam template / mint authority / freeze / metadata
  3. bundle: bundled supply, funding overlap, rug-history insiders
  4. dev wallet: deployer dumping or moving funds to CEX / bridges
  5. rug history: top holders found in the rug registry

Each stage returns a StageOutcome (CONTINUE / FLAG / REJECT). Outcomes are
folded left to right: PASS is raised to FLAG by any flagging stage, and the
first REJECT is final, later stages never run.

Fetch failures fail open with neutral data, except the honeypot and mint
authority checks: those cannot be skipped silently, they append an
"analysis unavailable" FLAG instead.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.models.score import ScamFilterOutput, ScamFilterResult, unrevoked_contract
from src.models.token import (
    BundleAnalysis,
    BundleRiskLevel,
    ContractAnalysis,
    DevWalletBehaviour,
    HoneypotResult,
    TokenMetrics,
)
from src.parsers.collaborators import RugRegistry, TokenDataSource
from src.parsers.fetch_guard import guarded_fetch

# Flag prefixes other components key on
FLAG_HONEYPOT = "HONEYPOT"
FLAG_SCAM_TEMPLATE = "SCAM_TEMPLATE"
FLAG_MINT_AUTHORITY = "MINT_AUTHORITY"
FLAG_FREEZE_AUTHORITY = "FREEZE_AUTHORITY"
FLAG_ANALYSIS_UNAVAILABLE = "ANALYSIS_UNAVAILABLE"


class StageVerdict(str, Enum):
    CONTINUE = "CONTINUE"
    FLAG = "FLAG"
    REJECT = "REJECT"


@dataclass(frozen=True)
class StageOutcome:
    """What one stage concluded, with the flags it wants recorded."""

    verdict: StageVerdict
    flags: tuple[str, ...] = ()

    @classmethod
    def proceed(cls) -> StageOutcome:
        return cls(StageVerdict.CONTINUE)

    @classmethod
    def flag(cls, *reasons: str) -> StageOutcome:
        return cls(StageVerdict.FLAG, tuple(reasons))

    @classmethod
    def reject(cls, reason: str) -> StageOutcome:
        return cls(StageVerdict.REJECT, (reason,))


@dataclass(frozen=True)
class CascadeState:
    result: ScamFilterResult = ScamFilterResult.PASS
    flags: tuple[str, ...] = ()
    rejected_at: str | None = None

    @property
    def rejected(self) -> bool:
        return self.result is ScamFilterResult.REJECT


def advance(state: CascadeState, outcome: StageOutcome) -> CascadeState:
    """Fold one stage outcome into the running state.

    Permissiveness only ever decreases: PASS -> FLAG -> REJECT.
    """
    if state.rejected:
        return state
    flags = state.flags + outcome.flags
    if outcome.verdict is StageVerdict.REJECT:
        return CascadeState(ScamFilterResult.REJECT, flags)
    if outcome.verdict is StageVerdict.FLAG or state.result is ScamFilterResult.FLAG:
        return CascadeState(ScamFilterResult.FLAG, flags)
    return CascadeState(ScamFilterResult.PASS, flags)


Stage = tuple[str, Callable[[Any], Awaitable[StageOutcome]]]


async def fold_stages(stages: Sequence[Stage], ctx: Any) -> CascadeState:
    """Run stages in order against ctx, folding each outcome left to right.

    Stops at the first REJECT, so later stages are never awaited.
    """
    state = CascadeState()
    for name, stage in stages:
        state = advance(state, await stage(ctx))
        if state.rejected:
            return replace(state, rejected_at=name)
    return state


# --- Stage evaluators (pure) ---


def evaluate_honeypot(result: HoneypotResult | None) -> StageOutcome:
    if result is None:
        return StageOutcome.flag(
            f"{FLAG_ANALYSIS_UNAVAILABLE}: honeypot analysis unavailable - sellability unverified"
        )
    if result.is_honeypot:
        return StageOutcome.reject(f"{FLAG_HONEYPOT}: token cannot be sold - confirmed honeypot")
    if result.is_suspected:
        return StageOutcome.flag(
            f"{FLAG_HONEYPOT}_SUSPECTED: {result.failed_ratio:.0%} of sells failing"
        )
    return StageOutcome.proceed()


def evaluate_contract(
    analysis: ContractAnalysis | None,
    token_age_minutes: float | None,
    *,
    grace_minutes: float = 30.0,
) -> StageOutcome:
    """Contract stage.

    Unrevoked mint authority is tolerated (FLAG) inside the grace window or
    when the age is unknown, and rejected once the token is older.
    Freeze authority and mutable metadata only ever FLAG.
    """
    if analysis is None:
        return StageOutcome.flag(
            f"{FLAG_ANALYSIS_UNAVAILABLE}: mint authority analysis unavailable - authority unverified"
        )

    if analysis.is_known_scam_template:
        return StageOutcome.reject(f"{FLAG_SCAM_TEMPLATE}: contract matches known scam pattern")

    flags: list[str] = []
    if not analysis.mint_authority_revoked:
        if token_age_minutes is not None and token_age_minutes > grace_minutes:
            return StageOutcome.reject(
                f"{FLAG_MINT_AUTHORITY}: not revoked after {token_age_minutes:.0f} mins - "
                f"supply can still be minted"
            )
        flags.append(f"{FLAG_MINT_AUTHORITY}: not yet revoked - new token, monitoring")

    if not analysis.freeze_authority_revoked:
        flags.append(f"{FLAG_FREEZE_AUTHORITY}: not revoked - holders can be frozen")

    if analysis.metadata_mutable:
        flags.append("METADATA_MUTABLE: token metadata can be changed")

    return StageOutcome.flag(*flags) if flags else StageOutcome.proceed()


def evaluate_bundles(
    analysis: BundleAnalysis,
    *,
    high_risk_pct: float = 25.0,
    medium_risk_pct: float = 10.0,
) -> StageOutcome:
    pct = analysis.bundled_supply_percent
    high_supply = analysis.risk_level is BundleRiskLevel.HIGH or pct >= high_risk_pct

    if high_supply and analysis.has_rug_history:
        return StageOutcome.reject(
            f"BUNDLE_RUG: {pct:.1f}% bundled supply held by wallets with rug history"
        )
    if pct >= high_risk_pct:
        return StageOutcome.flag(f"BUNDLE_HIGH: {pct:.1f}% of supply in bundled wallets")
    if pct >= medium_risk_pct or analysis.funding_overlap_detected:
        return StageOutcome.flag(
            f"BUNDLE_MEDIUM: {pct:.1f}% bundled, funding overlap: "
            f"{analysis.funding_overlap_detected}"
        )
    return StageOutcome.proceed()


def evaluate_dev_behaviour(
    behaviour: DevWalletBehaviour | None,
    *,
    flag_pct: float = 5.0,
    high_risk_pct: float = 10.0,
    hard_reject_pct: float = 30.0,
) -> StageOutcome:
    """Dev wallet stage. Skipped when the deployer is unknown."""
    if behaviour is None or not behaviour.deployer_address:
        return StageOutcome.proceed()

    sold = behaviour.sold_percent_48h
    if behaviour.transferred_to_cex and sold >= high_risk_pct:
        return StageOutcome.reject(f"DEV_RUG_PATTERN: dev sold {sold:.1f}% and transferred to CEX")
    if behaviour.transferred_to_cex:
        return StageOutcome.flag("DEV_CEX_TRANSFER: dev wallet transferred to CEX")
    if sold >= hard_reject_pct:
        return StageOutcome.reject(f"DEV_DUMP_HARD: dev sold {sold:.1f}% within 48h - likely rug")
    if sold >= high_risk_pct:
        return StageOutcome.flag(f"DEV_DUMP: dev sold {sold:.1f}% within 48h")
    if sold >= flag_pct:
        return StageOutcome.flag(f"DEV_SELLING: dev sold {sold:.1f}% within 48h")
    if behaviour.bridge_activity:
        return StageOutcome.flag("DEV_BRIDGE: dev wallet has bridge activity")
    return StageOutcome.proceed()


def evaluate_rug_history(
    rug_wallet_count: int,
    *,
    reject_count: int = 3,
    flag_count: int = 1,
) -> StageOutcome:
    if rug_wallet_count >= reject_count:
        return StageOutcome.reject(
            f"RUG_HISTORY_HIGH: {rug_wallet_count} top holders with prior rug involvement"
        )
    if rug_wallet_count >= flag_count:
        return StageOutcome.flag(
            f"RUG_HISTORY: {rug_wallet_count} top holder(s) with prior rug involvement"
        )
    return StageOutcome.proceed()


# --- Async pipeline ---


@dataclass
class _FilterContext:
    """Working set of one filter run; owned by that run only."""

    address: str
    token_age: float | None = None
    contract: ContractAnalysis | None = None
    bundle: BundleAnalysis | None = None
    dev: DevWalletBehaviour | None = None
    rug_count: int = 0


class ScamFilter:
    """Runs the staged scam filter for one token at a time.

    Holds only collaborators and read-only settings, so one instance can
    serve concurrent evaluations.
    """

    def __init__(
        self,
        source: TokenDataSource,
        rug_registry: RugRegistry,
        *,
        cfg: Settings | None = None,
    ) -> None:
        self._source = source
        self._rugs = rug_registry
        self._cfg = cfg or default_settings

    async def filter_token(
        self, address: str, metrics: TokenMetrics | None = None
    ) -> ScamFilterOutput:
        """Run all stages for a token and return the aggregated output.

        metrics, when already fetched by the caller, saves a round trip for
        the token age used by the mint authority grace window.
        """
        logger.debug(f"[SCAM] Running scam filter for {address[:12]}")
        ctx = _FilterContext(address=address)

        if metrics is None:
            metrics = await self._fetch(self._source.get_token_metrics(address), "metrics", address)
        if metrics is not None:
            ctx.token_age = metrics.token_age

        stages: list[Stage] = [
            ("honeypot", self._honeypot_stage),
            ("contract", self._contract_stage),
            ("bundle", self._bundle_stage),
            ("dev_wallet", self._dev_stage),
            ("rug_history", self._rug_history_stage),
        ]

        state = await fold_stages(stages, ctx)

        if state.rejected:
            logger.info(
                f"[SCAM] {address[:12]} REJECTED at {state.rejected_at}: {state.flags[-1]}"
            )
        elif state.result is ScamFilterResult.FLAG:
            logger.info(f"[SCAM] {address[:12]} FLAGGED: {'; '.join(state.flags)}")
        elif state.result is ScamFilterResult.PASS:
            logger.debug(f"[SCAM] {address[:12]} PASS")

        return ScamFilterOutput(
            result=state.result,
            flags=state.flags,
            contract_analysis=ctx.contract or unrevoked_contract(),
            bundle_analysis=ctx.bundle or BundleAnalysis(),
            dev_behaviour=ctx.dev,
            rug_history_wallet_count=ctx.rug_count,
        )

    async def _fetch(self, awaitable, label: str, address: str):
        return await guarded_fetch(
            awaitable, label=label, address=address, timeout=self._cfg.fetch_timeout_sec
        )

    async def _honeypot_stage(self, ctx: _FilterContext) -> StageOutcome:
        result = await self._fetch(self._source.check_honeypot(ctx.address), "honeypot", ctx.address)
        return evaluate_honeypot(result)

    async def _contract_stage(self, ctx: _FilterContext) -> StageOutcome:
        ctx.contract = await self._fetch(
            self._source.analyze_contract(ctx.address), "contract", ctx.address
        )
        return evaluate_contract(
            ctx.contract, ctx.token_age, grace_minutes=self._cfg.mint_authority_grace_minutes
        )

    async def _bundle_stage(self, ctx: _FilterContext) -> StageOutcome:
        bundle = await self._fetch(self._source.analyze_bundles(ctx.address), "bundles", ctx.address)
        ctx.bundle = bundle or BundleAnalysis()
        return evaluate_bundles(
            ctx.bundle,
            high_risk_pct=self._cfg.bundle_high_risk_supply_pct,
            medium_risk_pct=self._cfg.bundle_medium_risk_supply_pct,
        )

    async def _dev_stage(self, ctx: _FilterContext) -> StageOutcome:
        ctx.dev = await self._fetch(
            self._source.analyze_dev_wallet(ctx.address), "dev_wallet", ctx.address
        )
        return evaluate_dev_behaviour(
            ctx.dev,
            flag_pct=self._cfg.dev_sell_flag_pct,
            high_risk_pct=self._cfg.dev_sell_high_risk_pct,
            hard_reject_pct=self._cfg.dev_sell_hard_reject_pct,
        )

    async def _rug_history_stage(self, ctx: _FilterContext) -> StageOutcome:
        ctx.rug_count = await self._count_rug_holders(ctx.address)
        return evaluate_rug_history(
            ctx.rug_count,
            reject_count=self._cfg.rug_history_reject_count,
            flag_count=self._cfg.rug_history_flag_count,
        )

    async def _count_rug_holders(self, address: str) -> int:
        holders = await self._fetch(
            self._source.get_top_holders(address, self._cfg.rug_history_top_holders),
            "top_holders",
            address,
        )
        if not holders:
            return 0
        checks = await asyncio.gather(
            *(self._fetch(self._rugs.is_rug_wallet(h), "rug_registry", h) for h in holders)
        )
        failed = sum(1 for c in checks if c is None)
        if failed:
            logger.debug(f"[SCAM] {address[:12]}: {failed} rug registry lookups failed, counted clean")
        return sum(1 for c in checks if c is True)
