"""Types for the token evaluation pipeline."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from src.models.score import ScamFilterOutput, TokenScore
from src.models.signal import BuySignal, DiscoverySignal

# Solana addresses: base58 (no 0, O, I, l), 32-44 chars
_BASE58_ADDRESS = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


class InvalidTokenAddressError(ValueError):
    """Address is empty, the wrong length, or not base58."""


def validate_token_address(address: str) -> str:
    if not isinstance(address, str) or not _BASE58_ADDRESS.match(address):
        raise InvalidTokenAddressError(f"Invalid token address: {address!r}")
    return address


class EvalResult(str, Enum):
    """Where an evaluation ended."""

    SKIPPED = "SKIPPED"  # open position (or position check failed)
    QUICK_CHECK_FAILED = "QUICK_CHECK_FAILED"
    NO_METRICS = "NO_METRICS"
    SCREENING_FAILED = "SCREENING_FAILED"
    SCAM_REJECTED = "SCAM_REJECTED"
    SCORING_FAILED = "SCORING_FAILED"
    GATE_REJECTED = "GATE_REJECTED"  # KOL path, below buy requirements
    WATCH = "WATCH"  # below buy level, above watch level
    DISCOVERY_FAILED = "DISCOVERY_FAILED"
    SIGNAL_SENT = "SIGNAL_SENT"
    KOL_VALIDATION_SENT = "KOL_VALIDATION_SENT"
    DISCOVERY_SENT = "DISCOVERY_SENT"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    ERROR = "ERROR"  # unexpected per-token error, caught by evaluate_batch


SENT_RESULTS = frozenset(
    {EvalResult.SIGNAL_SENT, EvalResult.KOL_VALIDATION_SENT, EvalResult.DISCOVERY_SENT}
)


@dataclass(frozen=True)
class Evaluation:
    """Outcome of evaluating one token."""

    address: str
    result: EvalResult
    reason: str | None = None
    scam_filter: ScamFilterOutput | None = None
    score: TokenScore | None = None
    signal: BuySignal | DiscoverySignal | None = None

    @property
    def signal_sent(self) -> bool:
        return self.result in SENT_RESULTS
