"""Shared test fixtures: fake collaborators and model factories.

Fakes return a healthy, fully-revoked token by default. Tests tweak the
attributes they care about, or list method names in ``fail`` / ``hang`` to
make a collaborator raise or time out.
"""

import asyncio
from datetime import UTC, datetime

import pytest

from config.settings import Settings
from src.models.kol import (
    Kol,
    KolPerformance,
    KolTier,
    KolTransaction,
    KolWallet,
    KolWalletActivity,
    WalletType,
)
from src.models.social import SocialMetrics
from src.models.token import (
    BundleAnalysis,
    ContractAnalysis,
    HoneypotResult,
    TokenMetrics,
    VolumeAuthenticityScore,
)
from src.parsers.kol_weighting import calculate_signal_weight, meets_signal_requirements

ADDRESS = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"


class _Failing:
    """Mixin: raise or hang for the method names listed in fail / hang."""

    def __init__(self):
        self.fail: set[str] = set()
        self.hang: set[str] = set()
        self.calls: list[str] = []

    async def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")
        if name in self.hang:
            await asyncio.sleep(3600)


class FakeTokenSource(_Failing):
    def __init__(self):
        super().__init__()
        self.metrics: TokenMetrics | None = make_token_metrics()
        self.contract: ContractAnalysis | None = ContractAnalysis(
            mint_authority_revoked=True,
            freeze_authority_revoked=True,
            metadata_mutable=False,
        )
        self.bundle = BundleAnalysis()
        self.dev = None
        self.honeypot: HoneypotResult | None = HoneypotResult()
        self.holders: list[str] = []
        self.volume_authenticity = VolumeAuthenticityScore(score=80.0)

    async def get_token_metrics(self, address):
        await self._maybe_fail("get_token_metrics")
        return self.metrics

    async def analyze_contract(self, address):
        await self._maybe_fail("analyze_contract")
        return self.contract

    async def analyze_bundles(self, address):
        await self._maybe_fail("analyze_bundles")
        return self.bundle

    async def analyze_dev_wallet(self, address):
        await self._maybe_fail("analyze_dev_wallet")
        return self.dev

    async def check_honeypot(self, address):
        await self._maybe_fail("check_honeypot")
        return self.honeypot

    async def get_top_holders(self, address, limit=20):
        await self._maybe_fail("get_top_holders")
        return self.holders[:limit]

    async def get_volume_authenticity(self, address):
        await self._maybe_fail("get_volume_authenticity")
        return self.volume_authenticity


class FakeRugRegistry(_Failing):
    def __init__(self, rug_wallets=()):
        super().__init__()
        self.rug_wallets = set(rug_wallets)

    async def is_rug_wallet(self, address):
        await self._maybe_fail("is_rug_wallet")
        return address in self.rug_wallets


class FakeSocialSource(_Failing):
    def __init__(self):
        super().__init__()
        self.social = make_social_metrics()

    async def get_social_metrics(self, address):
        await self._maybe_fail("get_social_metrics")
        return self.social


class FakeKolSource(_Failing):
    def __init__(self):
        super().__init__()
        self.activities: list[KolWalletActivity] = []

    async def get_kol_activity(self, address, window_ms):
        await self._maybe_fail("get_kol_activity")
        return self.activities

    def calculate_signal_weight(self, activity):
        return calculate_signal_weight(activity)

    def meets_signal_requirements(self, activity):
        return meets_signal_requirements(activity)


class FakePositionTracker(_Failing):
    def __init__(self):
        super().__init__()
        self.open_positions: set[str] = set()

    async def has_open_position(self, address):
        await self._maybe_fail("has_open_position")
        return address in self.open_positions


class FakeSink(_Failing):
    def __init__(self):
        super().__init__()
        self.delivered = []

    async def deliver(self, signal):
        await self._maybe_fail("deliver")
        self.delivered.append(signal)


# --- Model factories ---


def make_token_metrics(**kwargs) -> TokenMetrics:
    defaults = {
        "address": ADDRESS,
        "ticker": "TEST",
        "name": "Test Token",
        "price": 0.002,
        "market_cap": 2_000_000.0,
        "volume_24h": 800_000.0,
        "holder_count": 600,
        "top10_concentration": 20.0,
        "liquidity_pool": 50_000.0,
        "token_age": 90.0,
    }
    defaults.update(kwargs)
    return TokenMetrics(**defaults)


def make_social_metrics(**kwargs) -> SocialMetrics:
    defaults = {
        "mention_velocity_1h": 25.0,
        "engagement_quality": 0.6,
        "account_authenticity": 0.7,
        "sentiment_polarity": 0.4,
    }
    defaults.update(kwargs)
    return SocialMetrics(**defaults)


def make_kol_activity(
    *,
    wallet_type: WalletType = WalletType.MAIN,
    sol_amount: float = 15.0,
    win_rate: float = 0.6,
    total_trades: int = 20,
    tier: KolTier = KolTier.TIER_1,
    handle: str = "kol_alpha",
    **wallet_kwargs,
) -> KolWalletActivity:
    kol = Kol(id=f"kol-{handle}", handle=handle, follower_count=50_000, tier=tier)
    wallet = KolWallet(
        id=f"wallet-{handle}",
        kol_id=kol.id,
        address=f"wallet_{handle}",
        wallet_type=wallet_type,
        **wallet_kwargs,
    )
    wins = round(total_trades * win_rate)
    return KolWalletActivity(
        kol=kol,
        wallet=wallet,
        performance=KolPerformance(
            kol_id=kol.id,
            total_trades=total_trades,
            wins=wins,
            losses=total_trades - wins,
            win_rate=win_rate,
        ),
        transaction=KolTransaction(
            signature=f"sig-{handle}",
            sol_amount=sol_amount,
            usd_value=sol_amount * 150,
            timestamp=datetime(2025, 1, 1, tzinfo=UTC),
        ),
    )


# --- Fixtures ---


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with a short fetch timeout so hanging fakes time out quickly."""
    return Settings(fetch_timeout_sec=0.05)


@pytest.fixture
def token_source() -> FakeTokenSource:
    return FakeTokenSource()


@pytest.fixture
def rug_registry() -> FakeRugRegistry:
    return FakeRugRegistry()


@pytest.fixture
def social_source() -> FakeSocialSource:
    return FakeSocialSource()


@pytest.fixture
def kol_source() -> FakeKolSource:
    return FakeKolSource()


@pytest.fixture
def position_tracker() -> FakePositionTracker:
    return FakePositionTracker()


@pytest.fixture
def sink() -> FakeSink:
    return FakeSink()


@pytest.fixture
def token_metrics():
    return make_token_metrics


@pytest.fixture
def social_metrics():
    return make_social_metrics


@pytest.fixture
def kol_activity():
    return make_kol_activity
