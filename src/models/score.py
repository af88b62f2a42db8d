"""Results computed by the scam filter and the scorer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

from src.models.token import BundleAnalysis, ContractAnalysis, DevWalletBehaviour


class ScamFilterResult(str, Enum):
    PASS = "PASS"
    FLAG = "FLAG"
    REJECT = "REJECT"


class RiskLevel(IntEnum):
    """Higher value = riskier. Comparisons use the integer order."""

    VERY_LOW = 1
    LOW = 2
    MEDIUM = 3
    HIGH = 4
    VERY_HIGH = 5


class Confidence(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


def unrevoked_contract() -> ContractAnalysis:
    """Worst-case contract state used when the stage never ran."""
    return ContractAnalysis(
        mint_authority_revoked=False,
        freeze_authority_revoked=False,
        metadata_mutable=True,
        is_known_scam_template=False,
    )


@dataclass(frozen=True)
class ScamFilterOutput:
    """Outcome of one scam filter run.

    flags keeps stage order. Fields of stages that never ran (after a
    REJECT) hold safe defaults.
    """

    result: ScamFilterResult
    flags: tuple[str, ...] = ()
    contract_analysis: ContractAnalysis = field(default_factory=unrevoked_contract)
    bundle_analysis: BundleAnalysis = field(default_factory=BundleAnalysis)
    dev_behaviour: DevWalletBehaviour | None = None
    rug_history_wallet_count: int = 0

    @property
    def is_rejected(self) -> bool:
        return self.result is ScamFilterResult.REJECT


@dataclass(frozen=True)
class ScoreFactors:
    on_chain_health: float = 0.0  # 0-100
    social_momentum: float = 0.0  # 0-100
    kol_conviction_main: float = 0.0  # 0-100
    kol_conviction_side: float = 0.0  # 0-100
    scam_risk_inverse: float = 0.0  # 0-100
    narrative_bonus: float = 0.0  # 0-30
    timing_bonus: float = 0.0  # 0-20


@dataclass(frozen=True)
class TokenScore:
    token_address: str
    composite_score: int
    factors: ScoreFactors
    confidence: Confidence
    confidence_band: int  # ± points
    flags: tuple[str, ...]
    risk_level: RiskLevel
    scam_filter_result: ScamFilterResult = ScamFilterResult.PASS

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags
