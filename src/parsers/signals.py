"""Signal decision gate.

Decides whether a scored token may be emitted as a BUY, DISCOVERY or
WATCH signal. Pure: no IO, never raises. A rejection carries a
human-readable reason for the logs.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.models.kol import KolWalletActivity
from src.models.score import ScamFilterOutput, ScamFilterResult, TokenScore
from src.parsers.kol_weighting import meets_signal_requirements
from src.parsers.scam_filter import FLAG_SCAM_TEMPLATE

KolPredicate = Callable[[KolWalletActivity], bool]


@dataclass(frozen=True)
class GateDecision:
    meets: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.meets


_APPROVED = GateDecision(meets=True)


def _has_scam_template_flag(flags: Sequence[str]) -> bool:
    return any(f.startswith(FLAG_SCAM_TEMPLATE) for f in flags)


class SignalGate:
    """Minimum-score and minimum-evidence thresholds for signal emission.

    The KOL predicate is the KOL collaborator's own minimum-evidence rule;
    the default accepts main wallets and well-attributed side wallets.
    """

    def __init__(
        self,
        cfg: Settings | None = None,
        *,
        kol_predicate: KolPredicate = meets_signal_requirements,
    ) -> None:
        self._cfg = cfg or default_settings
        self._kol_predicate = kol_predicate

    def _qualifies(self, activity: KolWalletActivity) -> bool:
        try:
            return bool(self._kol_predicate(activity))
        except Exception as e:
            logger.warning(f"[GATE] KOL predicate failed for {activity.kol.handle}: {e}")
            return False

    def meets_buy_requirements(
        self, score: TokenScore, kol_activities: Sequence[KolWalletActivity]
    ) -> GateDecision:
        threshold = self._cfg.min_score_buy
        if score.composite_score < threshold:
            return GateDecision(False, f"Score {score.composite_score} below minimum {threshold}")
        if not kol_activities:
            return GateDecision(False, "No KOL activity detected")
        if not any(self._qualifies(a) for a in kol_activities):
            return GateDecision(False, "No KOL activity meets signal requirements")
        return _APPROVED

    def meets_discovery_requirements(
        self, score: TokenScore, scam_filter: ScamFilterOutput
    ) -> GateDecision:
        threshold = self._cfg.min_score_discovery
        if score.composite_score < threshold:
            return GateDecision(
                False, f"Discovery score {score.composite_score} below minimum {threshold}"
            )
        if scam_filter.result is ScamFilterResult.REJECT:
            return GateDecision(False, "Failed scam filter")

        contract = scam_filter.contract_analysis
        if not contract.mint_authority_revoked and not contract.freeze_authority_revoked:
            return GateDecision(False, "Both mint and freeze authority active - too risky")
        if contract.is_known_scam_template or _has_scam_template_flag(scam_filter.flags):
            return GateDecision(False, "Known scam template detected")
        return _APPROVED

    def meets_watch_requirements(self, score: TokenScore) -> GateDecision:
        """Below buy level but worth keeping an eye on."""
        if score.scam_filter_result is ScamFilterResult.REJECT:
            return GateDecision(False, "Failed scam filter")
        threshold = self._cfg.min_score_watch
        if score.composite_score < threshold:
            return GateDecision(False, f"Score {score.composite_score} below watch level {threshold}")
        return _APPROVED
