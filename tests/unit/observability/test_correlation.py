"""
Tests unitaires pour Correlation ID.

Vérifie:
    - Un UUID v4 unique par passe de réconciliation
    - Portée par ContextVar, restaurée en sortie de passe
    - Isolation entre tâches asyncio concurrentes
"""

import asyncio
import re
import uuid

import pytest

from src.observability.interfaces import (
    ICorrelationManager,
    correlation_id_var,
)
from src.observability.correlation import CorrelationManager


# UUID v4 regex pattern for validation
UUID_V4_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def manager() -> CorrelationManager:
    """Crée un gestionnaire de correlation."""
    m = CorrelationManager()
    yield m
    # Nettoyer après chaque test
    m.clear()


# =============================================================================
# GÉNÉRATION
# =============================================================================


class TestGeneration:
    """UUID unique et valide."""

    def test_generate_returns_uuid_v4(self, manager: CorrelationManager) -> None:
        correlation_id = manager.generate()

        assert UUID_V4_PATTERN.match(correlation_id)

    def test_generate_unique_ids(self, manager: CorrelationManager) -> None:
        ids = {manager.generate() for _ in range(100)}

        assert len(ids) == 100

    @pytest.mark.parametrize("value", ["", "not-a-uuid", "12345678-1234-1234-1234-123456789012"])
    def test_is_valid_uuid_false_for_invalid(self, manager: CorrelationManager, value: str) -> None:
        assert manager.is_valid_uuid(value) is False

    def test_is_valid_uuid_case_insensitive(self, manager: CorrelationManager) -> None:
        assert manager.is_valid_uuid(str(uuid.uuid4()).upper())

    def test_implements_interface(self, manager: CorrelationManager) -> None:
        assert isinstance(manager, ICorrelationManager)


# =============================================================================
# CONTEXTE COURANT
# =============================================================================


class TestCurrentContext:
    """get_current / set_current."""

    def test_get_set_current(self, manager: CorrelationManager) -> None:
        correlation_id = manager.generate()
        manager.set_current(correlation_id)

        assert manager.get_current() == correlation_id
        assert correlation_id_var.get() == correlation_id

    def test_set_current_rejects_invalid(self, manager: CorrelationManager) -> None:
        with pytest.raises(ValueError):
            manager.set_current("invalid")

    def test_set_current_rejects_empty(self, manager: CorrelationManager) -> None:
        with pytest.raises(ValueError):
            manager.set_current("  ")

    def test_clear(self, manager: CorrelationManager) -> None:
        manager.set_current(manager.generate())
        manager.clear()

        assert manager.get_current() is None


# =============================================================================
# PORTÉE D'UNE PASSE
# =============================================================================


class TestScope:
    """Portée scope()."""

    def test_scope_generates_and_restores(self, manager: CorrelationManager) -> None:
        assert manager.get_current() is None

        with manager.scope() as correlation_id:
            assert UUID_V4_PATTERN.match(correlation_id)
            assert manager.get_current() == correlation_id

        assert manager.get_current() is None

    def test_scope_uses_provided_id(self, manager: CorrelationManager) -> None:
        provided = str(uuid.uuid4())

        with manager.scope(provided) as correlation_id:
            assert correlation_id == provided

    def test_scope_rejects_invalid_id(self, manager: CorrelationManager) -> None:
        with pytest.raises(ValueError):
            with manager.scope("invalid"):
                pass

    def test_nested_scope_restores_outer(self, manager: CorrelationManager) -> None:
        with manager.scope() as outer:
            with manager.scope() as inner:
                assert manager.get_current() == inner
            assert manager.get_current() == outer

    def test_scope_restored_on_error(self, manager: CorrelationManager) -> None:
        with pytest.raises(RuntimeError):
            with manager.scope():
                raise RuntimeError("pass failed")

        assert manager.get_current() is None

    @pytest.mark.asyncio
    async def test_concurrent_tasks_isolated(self, manager: CorrelationManager) -> None:
        seen = {}

        async def run_pass(name: str) -> None:
            with manager.scope() as correlation_id:
                await asyncio.sleep(0)
                seen[name] = (correlation_id, manager.get_current())

        await asyncio.gather(run_pass("a"), run_pass("b"))

        assert seen["a"][0] == seen["a"][1]
        assert seen["b"][0] == seen["b"][1]
        assert seen["a"][0] != seen["b"][0]
