from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    log_dir: str = "logs"
    log_retention: str = "3 days"

    # Pipeline I/O
    fetch_timeout_sec: float = 10.0  # per collaborator call; timeout = fetch failure
    kol_activity_window_ms: int = 2 * 60 * 60 * 1000  # 2h lookback for KOL buys
    scan_concurrency: int = 5  # tokens evaluated in parallel by evaluate_batch

    # Screening: cheap metric checks before the scam filter
    screen_min_market_cap: float = 50_000.0
    screen_max_market_cap: float = 25_000_000.0
    screen_min_volume_24h: float = 500.0
    screen_min_volume_mcap_ratio: float = 0.01
    screen_min_holder_count: int = 5
    screen_max_top10_concentration: float = 90.0
    screen_min_liquidity_usd: float = 500.0
    screen_min_token_age_minutes: float = 1.0

    # Scam filter: bundle / insider stage
    bundle_high_risk_supply_pct: float = 25.0
    bundle_medium_risk_supply_pct: float = 10.0

    # Scam filter: dev wallet stage
    dev_sell_flag_pct: float = 5.0
    dev_sell_high_risk_pct: float = 10.0  # with CEX transfer = rug pattern
    dev_sell_hard_reject_pct: float = 30.0  # standalone dump

    # Scam filter: rug history cross-reference
    rug_history_reject_count: int = 3
    rug_history_flag_count: int = 1
    rug_history_top_holders: int = 20

    # New pump.fun tokens legitimately keep mint authority for a short while
    mint_authority_grace_minutes: float = 30.0

    # Scoring ideals
    ideal_volume_mcap_ratio: float = 0.3
    ideal_holder_count: int = 500
    ideal_top10_concentration: float = 30.0
    ideal_mention_velocity: float = 50.0  # mentions/hour that earns full velocity points

    # Narrative meta: bump the version whenever the theme list changes
    meta_themes_version: str = "2025.1"
    meta_themes: list[str] = [
        "AI",
        "agent",
        "political",
        "trump",
        "maga",
        "pepe",
        "doge",
        "cat",
        "dog",
        "meme revival",
        "solana native",
    ]

    # Confidence minimums
    confidence_new_token_minutes: float = 120.0
    confidence_very_new_token_minutes: float = 60.0
    confidence_min_liquidity_usd: float = 25_000.0
    confidence_min_holder_count: int = 100  # discovery only
    confidence_min_kol_count: int = 2
    confidence_min_kol_trades: int = 10

    # Decision gate
    min_score_buy: int = 45
    min_score_watch: int = 30
    min_score_discovery: int = 45

    # Signal builder
    default_position_size_pct: float = 2.0
    max_position_size_pct: float = 3.0
    discovery_position_size_factor: float = 0.5  # discovery = half of a normal position
    max_discovery_position_size_pct: float = 1.5
    entry_zone_pct: float = 5.0
    stop_loss_pct: float = 30.0
    take_profit_1_pct: float = 50.0
    take_profit_2_pct: float = 150.0
    signal_time_limit_hours: int = 72
    discovery_time_limit_hours: int = 72


settings = Settings()
