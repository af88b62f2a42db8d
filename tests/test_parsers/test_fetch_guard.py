"""Tests for the guarded collaborator fetch."""

import asyncio

import pytest

from src.parsers.fetch_guard import guarded_fetch

MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"


async def _value():
    return 42


async def _raises():
    raise ConnectionError("provider down")


async def _slow():
    await asyncio.sleep(3600)


@pytest.mark.asyncio
async def test_returns_value():
    assert await guarded_fetch(_value(), label="x", address=MINT, timeout=1) == 42


@pytest.mark.asyncio
async def test_error_becomes_none():
    assert await guarded_fetch(_raises(), label="x", address=MINT, timeout=1) is None


@pytest.mark.asyncio
async def test_timeout_becomes_none():
    assert await guarded_fetch(_slow(), label="x", address=MINT, timeout=0.05) is None
