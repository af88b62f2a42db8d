"""Social data consumed by the scorer."""

from typing import Literal

from pydantic import BaseModel


class KolMention(BaseModel):
    """An influencer account that mentioned the token on X/Twitter."""

    handle: str
    tier: Literal["S", "A", "B", "C"] | None = None
    followers: int | None = None

    model_config = {"frozen": True, "extra": "ignore"}


class SocialMetrics(BaseModel):
    mention_velocity_1h: float = 0.0
    engagement_quality: float = 0.0  # 0-1
    account_authenticity: float = 0.0  # 0-1
    sentiment_polarity: float = 0.0  # -1 to 1
    kol_mention_detected: bool = False
    kol_mentions: list[KolMention] = []
    narrative_fit: str | None = None

    model_config = {"frozen": True, "extra": "ignore"}
