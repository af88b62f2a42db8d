"""Minimum screening criteria on raw token metrics.

Pure function: cheap checks run before the scam filter so obviously
unsuitable tokens never reach the expensive stages.
"""

from config.settings import Settings, settings as default_settings
from src.models.token import TokenMetrics


def failed_screening_criteria(
    metrics: TokenMetrics, cfg: Settings | None = None
) -> list[str]:
    """Return human-readable descriptions of every failed criterion."""
    cfg = cfg or default_settings
    failed: list[str] = []

    if metrics.market_cap < cfg.screen_min_market_cap:
        failed.append(f"market_cap ${metrics.market_cap:,.0f} < ${cfg.screen_min_market_cap:,.0f}")
    if metrics.market_cap > cfg.screen_max_market_cap:
        failed.append(f"market_cap ${metrics.market_cap:,.0f} > ${cfg.screen_max_market_cap:,.0f}")
    if metrics.volume_24h < cfg.screen_min_volume_24h:
        failed.append(f"volume_24h ${metrics.volume_24h:,.0f} < ${cfg.screen_min_volume_24h:,.0f}")
    if metrics.volume_market_cap_ratio < cfg.screen_min_volume_mcap_ratio:
        failed.append(
            f"volume/mcap {metrics.volume_market_cap_ratio:.3f} < {cfg.screen_min_volume_mcap_ratio}"
        )
    if metrics.holder_count < cfg.screen_min_holder_count:
        failed.append(f"holders {metrics.holder_count} < {cfg.screen_min_holder_count}")
    if metrics.top10_concentration > cfg.screen_max_top10_concentration:
        failed.append(
            f"top10 {metrics.top10_concentration:.0f}% > {cfg.screen_max_top10_concentration:.0f}%"
        )
    if metrics.liquidity_pool < cfg.screen_min_liquidity_usd:
        failed.append(f"liquidity ${metrics.liquidity_pool:,.0f} < ${cfg.screen_min_liquidity_usd:,.0f}")
    if metrics.token_age < cfg.screen_min_token_age_minutes:
        failed.append(f"age {metrics.token_age:.1f}m < {cfg.screen_min_token_age_minutes:.1f}m")

    return failed


def meets_screening_criteria(metrics: TokenMetrics, cfg: Settings | None = None) -> bool:
    return not failed_screening_criteria(metrics, cfg)
