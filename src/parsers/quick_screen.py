"""Quick pre-screen on contract analysis only.

Cheap elimination before the full scam filter. Fails closed: if the
contract cannot be analysed the token is treated as suspicious.
"""

from dataclasses import dataclass, field

from loguru import logger

from config.settings import Settings, settings as default_settings
from src.parsers.collaborators import TokenDataSource
from src.parsers.fetch_guard import guarded_fetch

CHECK_FAILED_REASON = "Check failed, treating as suspicious"


@dataclass(frozen=True)
class QuickCheckResult:
    passed: bool
    reason: str | None = None
    warnings: tuple[str, ...] = field(default_factory=tuple)


async def quick_check(
    address: str,
    source: TokenDataSource,
    *,
    cfg: Settings | None = None,
    timeout: float | None = None,
) -> QuickCheckResult:
    """Run the contract-only pre-screen for a token.

    Known scam template is a hard fail. Unrevoked authorities are warnings
    only, fresh launches keep them for a few minutes.
    """
    cfg = cfg or default_settings
    analysis = await guarded_fetch(
        source.analyze_contract(address),
        label="contract",
        address=address,
        timeout=timeout if timeout is not None else cfg.fetch_timeout_sec,
    )
    if analysis is None:
        logger.warning(f"[QUICK] {address[:12]} no contract analysis, failing closed")
        return QuickCheckResult(passed=False, reason=CHECK_FAILED_REASON)

    if analysis.is_known_scam_template:
        logger.info(f"[QUICK] {address[:12]} FAIL: known scam template")
        return QuickCheckResult(passed=False, reason="Known scam contract template")

    warnings: list[str] = []
    if not analysis.mint_authority_revoked:
        warnings.append("Mint authority not revoked (may be new token)")
    if not analysis.freeze_authority_revoked:
        warnings.append("Freeze authority not revoked")

    if warnings:
        logger.info(f"[QUICK] {address[:12]} PASS with warnings: {', '.join(warnings)}")
    else:
        logger.debug(f"[QUICK] {address[:12]} PASS")
    return QuickCheckResult(passed=True, warnings=tuple(warnings))
