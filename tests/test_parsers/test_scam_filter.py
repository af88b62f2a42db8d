"""Tests for the staged scam filter."""

import pytest

from src.models.score import ScamFilterResult
from src.models.token import (
    BundleAnalysis,
    BundleRiskLevel,
    ContractAnalysis,
    DevWalletBehaviour,
    HoneypotResult,
)
from src.parsers.scam_filter import (
    FLAG_ANALYSIS_UNAVAILABLE,
    FLAG_HONEYPOT,
    FLAG_MINT_AUTHORITY,
    FLAG_SCAM_TEMPLATE,
    CascadeState,
    ScamFilter,
    StageOutcome,
    StageVerdict,
    advance,
    evaluate_bundles,
    evaluate_contract,
    evaluate_dev_behaviour,
    evaluate_honeypot,
    evaluate_rug_history,
    fold_stages,
)

MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"

REVOKED = ContractAnalysis(
    mint_authority_revoked=True, freeze_authority_revoked=True, metadata_mutable=False
)


def _dev(**kwargs) -> DevWalletBehaviour:
    defaults = {"deployer_address": "deployer111"}
    defaults.update(kwargs)
    return DevWalletBehaviour(**defaults)


def _starts_with(flags, prefix: str) -> bool:
    return any(f.startswith(prefix) for f in flags)


# --- Fold combinator ---


def _stage(outcome: StageOutcome, name: str, seen: list[str]):
    async def run(ctx):
        seen.append(name)
        return outcome

    return (name, run)


class TestAdvance:
    def test_flag_is_not_downgraded_by_later_continue(self):
        state = advance(CascadeState(), StageOutcome.flag("A"))
        state = advance(state, StageOutcome.proceed())
        assert state.result is ScamFilterResult.FLAG
        assert state.flags == ("A",)

    def test_rejected_state_is_final(self):
        state = advance(CascadeState(), StageOutcome.reject("BOOM"))
        assert advance(state, StageOutcome.flag("LATE")) == state


class TestFoldStages:
    @pytest.mark.asyncio
    async def test_all_continue_is_pass(self):
        seen = []
        stages = [_stage(StageOutcome.proceed(), n, seen) for n in ("one", "two")]
        state = await fold_stages(stages, None)
        assert state.result is ScamFilterResult.PASS
        assert state.flags == ()
        assert state.rejected_at is None

    @pytest.mark.asyncio
    async def test_flag_escalates_and_keeps_order(self):
        seen = []
        state = await fold_stages(
            [
                _stage(StageOutcome.flag("A"), "one", seen),
                _stage(StageOutcome.proceed(), "two", seen),
                _stage(StageOutcome.flag("B", "C"), "three", seen),
            ],
            None,
        )
        assert state.result is ScamFilterResult.FLAG
        assert state.flags == ("A", "B", "C")
        assert seen == ["one", "two", "three"]

    @pytest.mark.asyncio
    async def test_reject_stops_later_stages(self):
        seen = []
        state = await fold_stages(
            [
                _stage(StageOutcome.flag("EARLY"), "one", seen),
                _stage(StageOutcome.reject("STOP"), "two", seen),
                _stage(StageOutcome.flag("LATE"), "three", seen),
            ],
            None,
        )
        assert state.result is ScamFilterResult.REJECT
        assert state.flags == ("EARLY", "STOP")
        assert state.rejected_at == "two"
        assert seen == ["one", "two"]

    @pytest.mark.asyncio
    async def test_stages_share_context(self):
        ctx = {"calls": 0}

        async def bump(c):
            c["calls"] += 1
            return StageOutcome.proceed()

        await fold_stages([("a", bump), ("b", bump)], ctx)
        assert ctx["calls"] == 2


# --- Pure stage evaluators ---


class TestHoneypotStage:
    def test_clean(self):
        assert evaluate_honeypot(HoneypotResult()).verdict is StageVerdict.CONTINUE

    def test_confirmed_rejects(self):
        outcome = evaluate_honeypot(HoneypotResult(is_honeypot=True, failed_ratio=0.8))
        assert outcome.verdict is StageVerdict.REJECT
        assert outcome.flags[0].startswith(FLAG_HONEYPOT)

    def test_suspected_flags(self):
        outcome = evaluate_honeypot(HoneypotResult(is_suspected=True, failed_ratio=0.2))
        assert outcome.verdict is StageVerdict.FLAG
        assert "20%" in outcome.flags[0]

    def test_unavailable_flags(self):
        outcome = evaluate_honeypot(None)
        assert outcome.verdict is StageVerdict.FLAG
        assert outcome.flags[0].startswith(FLAG_ANALYSIS_UNAVAILABLE)


class TestContractStage:
    def test_fully_revoked_passes(self):
        assert evaluate_contract(REVOKED, 90).verdict is StageVerdict.CONTINUE

    def test_scam_template_rejects(self):
        analysis = REVOKED.model_copy(update={"is_known_scam_template": True})
        outcome = evaluate_contract(analysis, 90)
        assert outcome.verdict is StageVerdict.REJECT
        assert outcome.flags[0].startswith(FLAG_SCAM_TEMPLATE)

    def test_mint_authority_inside_grace_flags(self):
        analysis = REVOKED.model_copy(update={"mint_authority_revoked": False})
        outcome = evaluate_contract(analysis, 10, grace_minutes=30)
        assert outcome.verdict is StageVerdict.FLAG
        assert outcome.flags[0].startswith(FLAG_MINT_AUTHORITY)

    def test_mint_authority_at_grace_boundary_flags(self):
        analysis = REVOKED.model_copy(update={"mint_authority_revoked": False})
        outcome = evaluate_contract(analysis, 30, grace_minutes=30)
        assert outcome.verdict is StageVerdict.FLAG

    def test_mint_authority_past_grace_rejects(self):
        analysis = REVOKED.model_copy(update={"mint_authority_revoked": False})
        outcome = evaluate_contract(analysis, 31, grace_minutes=30)
        assert outcome.verdict is StageVerdict.REJECT

    def test_mint_authority_unknown_age_flags(self):
        analysis = REVOKED.model_copy(update={"mint_authority_revoked": False})
        assert evaluate_contract(analysis, None).verdict is StageVerdict.FLAG

    def test_freeze_and_metadata_only_flag(self):
        analysis = ContractAnalysis(
            mint_authority_revoked=True, freeze_authority_revoked=False, metadata_mutable=True
        )
        outcome = evaluate_contract(analysis, 600)
        assert outcome.verdict is StageVerdict.FLAG
        assert len(outcome.flags) == 2

    def test_unavailable_flags(self):
        outcome = evaluate_contract(None, 90)
        assert outcome.verdict is StageVerdict.FLAG
        assert outcome.flags[0].startswith(FLAG_ANALYSIS_UNAVAILABLE)


class TestBundleStage:
    def test_clean(self):
        assert evaluate_bundles(BundleAnalysis()).verdict is StageVerdict.CONTINUE

    def test_high_risk_with_rug_history_rejects(self):
        bundle = BundleAnalysis(risk_level=BundleRiskLevel.HIGH, has_rug_history=True)
        outcome = evaluate_bundles(bundle)
        assert outcome.verdict is StageVerdict.REJECT
        assert outcome.flags[0].startswith("BUNDLE_RUG")

    def test_high_supply_without_history_flags(self):
        outcome = evaluate_bundles(BundleAnalysis(bundled_supply_percent=30))
        assert outcome.verdict is StageVerdict.FLAG
        assert outcome.flags[0].startswith("BUNDLE_HIGH")

    def test_medium_supply_flags(self):
        outcome = evaluate_bundles(BundleAnalysis(bundled_supply_percent=12))
        assert outcome.flags[0].startswith("BUNDLE_MEDIUM")

    def test_funding_overlap_flags(self):
        outcome = evaluate_bundles(BundleAnalysis(funding_overlap_detected=True))
        assert outcome.verdict is StageVerdict.FLAG

    def test_thresholds_are_configurable(self):
        bundle = BundleAnalysis(bundled_supply_percent=12)
        outcome = evaluate_bundles(bundle, high_risk_pct=40, medium_risk_pct=20)
        assert outcome.verdict is StageVerdict.CONTINUE


class TestDevStage:
    def test_unknown_deployer_continues(self):
        assert evaluate_dev_behaviour(None).verdict is StageVerdict.CONTINUE
        assert evaluate_dev_behaviour(_dev(deployer_address="")).verdict is StageVerdict.CONTINUE

    def test_cex_plus_selling_is_rug_pattern(self):
        outcome = evaluate_dev_behaviour(_dev(sold_percent_48h=12, transferred_to_cex=True))
        assert outcome.verdict is StageVerdict.REJECT
        assert outcome.flags[0].startswith("DEV_RUG_PATTERN")

    def test_cex_alone_flags(self):
        outcome = evaluate_dev_behaviour(_dev(transferred_to_cex=True))
        assert outcome.verdict is StageVerdict.FLAG
        assert outcome.flags[0].startswith("DEV_CEX_TRANSFER")

    @pytest.mark.parametrize(
        ("sold", "verdict", "prefix"),
        [
            (2.0, StageVerdict.CONTINUE, None),
            (5.0, StageVerdict.FLAG, "DEV_SELLING"),
            (10.0, StageVerdict.FLAG, "DEV_DUMP"),
            (30.0, StageVerdict.REJECT, "DEV_DUMP_HARD"),
        ],
    )
    def test_sell_tiers(self, sold, verdict, prefix):
        outcome = evaluate_dev_behaviour(_dev(sold_percent_48h=sold))
        assert outcome.verdict is verdict
        if prefix:
            assert outcome.flags[0].startswith(prefix)

    def test_bridge_activity_flags(self):
        outcome = evaluate_dev_behaviour(_dev(bridge_activity=True))
        assert outcome.flags[0].startswith("DEV_BRIDGE")


class TestRugHistoryStage:
    def test_none(self):
        assert evaluate_rug_history(0).verdict is StageVerdict.CONTINUE

    def test_one_flags(self):
        assert evaluate_rug_history(1).verdict is StageVerdict.FLAG

    def test_three_rejects(self):
        assert evaluate_rug_history(3).verdict is StageVerdict.REJECT


# --- Async pipeline ---


@pytest.mark.asyncio
async def test_clean_token_passes(token_source, rug_registry):
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.PASS
    assert out.flags == ()
    assert out.contract_analysis == token_source.contract
    assert out.rug_history_wallet_count == 0


@pytest.mark.asyncio
async def test_scenario_mint_authority_in_grace_flags(token_source, rug_registry, token_metrics):
    """Unrevoked mint at 10 minutes old is tolerated with a warning."""
    token_source.contract = REVOKED.model_copy(update={"mint_authority_revoked": False})
    out = await ScamFilter(token_source, rug_registry).filter_token(
        MINT, token_metrics(token_age=10)
    )
    assert out.result is ScamFilterResult.FLAG
    assert _starts_with(out.flags, FLAG_MINT_AUTHORITY)


@pytest.mark.asyncio
async def test_scenario_mint_authority_past_grace_rejects(
    token_source, rug_registry, token_metrics
):
    token_source.contract = REVOKED.model_copy(update={"mint_authority_revoked": False})
    out = await ScamFilter(token_source, rug_registry).filter_token(
        MINT, token_metrics(token_age=120)
    )
    assert out.result is ScamFilterResult.REJECT
    assert out.flags[-1].startswith(FLAG_MINT_AUTHORITY)


@pytest.mark.asyncio
async def test_metrics_fetched_for_age_when_not_given(token_source, rug_registry, token_metrics):
    token_source.metrics = token_metrics(token_age=120)
    token_source.contract = REVOKED.model_copy(update={"mint_authority_revoked": False})
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert "get_token_metrics" in token_source.calls
    assert out.is_rejected


@pytest.mark.asyncio
async def test_scenario_bundle_rug_rejects_regardless(token_source, rug_registry):
    """HIGH bundle risk with rug history rejects even with everything else clean."""
    token_source.bundle = BundleAnalysis(risk_level=BundleRiskLevel.HIGH, has_rug_history=True)
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.REJECT
    assert out.flags[-1].startswith("BUNDLE_RUG")


@pytest.mark.asyncio
async def test_reject_skips_later_stages(token_source, rug_registry):
    token_source.honeypot = HoneypotResult(is_honeypot=True)
    token_source.dev = _dev(bridge_activity=True)
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)

    assert out.result is ScamFilterResult.REJECT
    assert len(out.flags) == 1
    assert out.flags[0].startswith(FLAG_HONEYPOT)
    for later in ("analyze_contract", "analyze_bundles", "analyze_dev_wallet", "get_top_holders"):
        assert later not in token_source.calls
    # Stages that never ran leave worst-case defaults
    assert not out.contract_analysis.mint_authority_revoked
    assert out.dev_behaviour is None


@pytest.mark.asyncio
async def test_adding_reject_condition_keeps_earlier_flags(token_source, rug_registry):
    token_source.contract = REVOKED.model_copy(update={"metadata_mutable": True})
    flagged = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert flagged.result is ScamFilterResult.FLAG

    token_source.dev = _dev(sold_percent_48h=40)
    rejected = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert rejected.result is ScamFilterResult.REJECT
    assert rejected.flags[: len(flagged.flags)] == flagged.flags


@pytest.mark.asyncio
async def test_rug_history_counts_registry_hits(token_source, rug_registry):
    token_source.holders = ["h1", "h2", "h3", "h4"]
    rug_registry.rug_wallets = {"h1", "h3"}
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.FLAG
    assert out.rug_history_wallet_count == 2
    assert _starts_with(out.flags, "RUG_HISTORY")


@pytest.mark.asyncio
async def test_rug_history_three_hits_rejects(token_source, rug_registry):
    token_source.holders = ["h1", "h2", "h3"]
    rug_registry.rug_wallets = {"h1", "h2", "h3"}
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.REJECT


# --- Fail open / fail closed ---


@pytest.mark.asyncio
async def test_honeypot_failure_flags_unavailable(token_source, rug_registry):
    token_source.fail.add("check_honeypot")
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.FLAG
    assert _starts_with(out.flags, FLAG_ANALYSIS_UNAVAILABLE)


@pytest.mark.asyncio
async def test_contract_timeout_flags_unavailable(token_source, rug_registry, fast_settings):
    token_source.hang.add("analyze_contract")
    out = await ScamFilter(token_source, rug_registry, cfg=fast_settings).filter_token(MINT)
    assert out.result is ScamFilterResult.FLAG
    assert _starts_with(out.flags, FLAG_ANALYSIS_UNAVAILABLE)
    # Unknown contract state is reported as worst case
    assert not out.contract_analysis.mint_authority_revoked
    assert not out.contract_analysis.freeze_authority_revoked


@pytest.mark.asyncio
async def test_bundle_and_dev_failures_fail_open(token_source, rug_registry):
    token_source.fail.update({"analyze_bundles", "analyze_dev_wallet", "get_top_holders"})
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.PASS
    assert out.bundle_analysis == BundleAnalysis()
    assert out.dev_behaviour is None


@pytest.mark.asyncio
async def test_rug_registry_failures_count_as_clean(token_source, rug_registry):
    token_source.holders = ["h1", "h2"]
    rug_registry.rug_wallets = {"h1", "h2"}
    rug_registry.fail.add("is_rug_wallet")
    out = await ScamFilter(token_source, rug_registry).filter_token(MINT)
    assert out.result is ScamFilterResult.PASS
    assert out.rug_history_wallet_count == 0
