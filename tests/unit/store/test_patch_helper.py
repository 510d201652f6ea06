"""
Tests unitaires pour PatchHelper et PatchScope.
"""

from unittest.mock import AsyncMock

import pytest

from src.api.types import Kind, NamespacedName
from src.store.interfaces import StoreError
from src.store.memory_store import InMemoryObjectStore
from src.store.patch_helper import AggregateError, PatchHelper, PatchScope

from tests.builders import make_policy


class TestPatchHelper:
    """Calcul et envoi du diff."""

    @pytest.mark.asyncio
    async def test_no_change_sends_nothing(self) -> None:
        store = AsyncMock()
        helper = PatchHelper(make_policy(), store)

        assert helper.compute_diff() == {}
        assert await helper.patch() is False
        store.patch.assert_not_called()

    @pytest.mark.asyncio
    async def test_diff_contains_only_changed_fields(self, store: InMemoryObjectStore) -> None:
        policy = await store.create(make_policy())
        helper = PatchHelper(policy, store)

        policy.status.expected_machines = 3

        diff = helper.compute_diff()
        assert list(diff) == ["status"]
        assert diff["status"].expected_machines == 3

    @pytest.mark.asyncio
    async def test_patch_persists_and_resnapshots(self, store: InMemoryObjectStore) -> None:
        policy = await store.create(make_policy())
        helper = PatchHelper(policy, store)
        policy.metadata.labels["extra"] = "1"

        assert await helper.patch() is True
        assert helper.compute_diff() == {}

        stored = await store.get(Kind.HEALTH_CHECK_POLICY, NamespacedName("default", "test-mhc"))
        assert stored.metadata.labels["extra"] == "1"
        assert policy.metadata.resource_version == stored.metadata.resource_version


class TestPatchScope:
    """Écriture garantie en sortie de bloc."""

    @pytest.mark.asyncio
    async def test_patches_on_success(self, store: InMemoryObjectStore) -> None:
        policy = await store.create(make_policy())

        async with PatchScope(policy, store):
            policy.status.current_healthy = 2

        stored = await store.get(Kind.HEALTH_CHECK_POLICY, NamespacedName("default", "test-mhc"))
        assert stored.status.current_healthy == 2

    @pytest.mark.asyncio
    async def test_patches_on_error_and_reraises(self, store: InMemoryObjectStore) -> None:
        policy = await store.create(make_policy())

        with pytest.raises(RuntimeError):
            async with PatchScope(policy, store):
                policy.status.current_healthy = 2
                raise RuntimeError("pass failed")

        stored = await store.get(Kind.HEALTH_CHECK_POLICY, NamespacedName("default", "test-mhc"))
        assert stored.status.current_healthy == 2

    @pytest.mark.asyncio
    async def test_patch_error_alone_is_raised(self) -> None:
        store = AsyncMock()
        store.patch.side_effect = StoreError("write refused")
        policy = make_policy()

        with pytest.raises(StoreError):
            async with PatchScope(policy, store):
                policy.status.current_healthy = 1

    @pytest.mark.asyncio
    async def test_both_errors_are_aggregated(self) -> None:
        store = AsyncMock()
        store.patch.side_effect = StoreError("write refused")
        policy = make_policy()

        with pytest.raises(AggregateError) as exc_info:
            async with PatchScope(policy, store):
                policy.status.current_healthy = 1
                raise RuntimeError("pass failed")

        errors = exc_info.value.errors
        assert isinstance(errors[0], RuntimeError)
        assert isinstance(errors[1], StoreError)
        assert "pass failed" in str(exc_info.value)
        assert "write refused" in str(exc_info.value)
