"""Tests for the in-process keyed store."""

from unittest.mock import patch

from src.core.store import MemoryStore


class TestMemoryStore:
    async def test_set_if_absent_claims_once(self):
        store = MemoryStore()
        assert await store.set_if_absent("payment_transition:p1", "completed") is True
        assert await store.set_if_absent("payment_transition:p1", "expired") is False
        assert await store.get("payment_transition:p1") == "completed"

    async def test_expired_key_can_be_claimed_again(self):
        store = MemoryStore()
        with patch("src.core.store.time.monotonic", return_value=100.0):
            await store.set_if_absent("k", 1, ttl_seconds=10)
        with patch("src.core.store.time.monotonic", return_value=111.0):
            assert await store.get("k") is None
            assert await store.set_if_absent("k", 2, ttl_seconds=10) is True
            assert await store.get("k") == 2

    async def test_values_are_copies(self):
        store = MemoryStore()
        doc = {"addresses": ["a"]}
        await store.set("merchant:m", doc)
        doc["addresses"].append("b")
        assert await store.get("merchant:m") == {"addresses": ["a"]}
