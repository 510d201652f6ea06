"""
Tests unitaires pour ConfigLoader.
"""

from pathlib import Path

import pytest

from src.core.config_loader import ConfigError, ConfigLoader
from src.core.interfaces import ControllerConfig


class TestConfigLoader:
    """Tests pour ConfigLoader."""

    def setup_method(self):
        """Setup avant chaque test."""
        self.loader = ConfigLoader()

    @pytest.mark.asyncio
    async def test_load_controller_section(self, tmp_path: Path):
        """Une section controller est validée et appliquée."""
        config_file = tmp_path / "controller.yaml"
        config_file.write_text(
            "controller:\n"
            "  workers: 4\n"
            "  restricted_requeue_after_seconds: 15\n"
            "  log_level: debug\n",
            encoding="utf-8",
        )

        config = await self.loader.load(str(config_file))

        assert config.workers == 4
        assert config.restricted_requeue_after_seconds == 15
        assert config.log_level == "DEBUG"
        assert config.store_call_timeout_seconds == 10

    @pytest.mark.asyncio
    async def test_load_flat_mapping(self, tmp_path: Path):
        """Une configuration à plat est acceptée."""
        config_file = tmp_path / "flat.yaml"
        config_file.write_text("workers: 2\n", encoding="utf-8")

        config = await self.loader.load(str(config_file))

        assert config.workers == 2

    @pytest.mark.asyncio
    async def test_relative_path_uses_configs_path(self, tmp_path: Path):
        """Un chemin relatif est résolu sous configs_path."""
        (tmp_path / "mhc.yaml").write_text("workers: 3\n", encoding="utf-8")
        loader = ConfigLoader(str(tmp_path))

        config = await loader.load("mhc.yaml")

        assert config.workers == 3

    @pytest.mark.asyncio
    async def test_empty_file_gives_defaults(self, tmp_path: Path):
        """Un fichier vide donne la configuration par défaut."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("", encoding="utf-8")

        config = await self.loader.load(str(config_file))

        assert config == ControllerConfig()
        assert config.default_node_startup_timeout_seconds == 600

    @pytest.mark.asyncio
    async def test_missing_file_raises(self, tmp_path: Path):
        """Un fichier absent lève ConfigError."""
        with pytest.raises(ConfigError) as exc_info:
            await self.loader.load(str(tmp_path / "absent.yaml"))

        assert "Configuration not found" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_yaml_raises(self, tmp_path: Path):
        """Un YAML invalide lève ConfigError."""
        config_file = tmp_path / "broken.yaml"
        config_file.write_text("workers: [1, 2\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            await self.loader.load(str(config_file))

        assert "Invalid YAML" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_mapping_raises(self, tmp_path: Path):
        """Une liste YAML au niveau racine est refusée."""
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- workers\n", encoding="utf-8")

        with pytest.raises(ConfigError) as exc_info:
            await self.loader.load(str(config_file))

        assert "YAML mapping" in str(exc_info.value)


class TestConfigValidation:
    """Tests de validation via from_dict."""

    def setup_method(self):
        self.loader = ConfigLoader()

    def test_unknown_fields_rejected(self):
        with pytest.raises(ConfigError) as exc_info:
            self.loader.from_dict({"workers": 2, "wokers": 3})

        assert "wokers" in str(exc_info.value)

    @pytest.mark.parametrize(
        "values",
        [
            {"workers": 0},
            {"workers": 1000},
            {"restricted_requeue_after_seconds": 0},
            {"store_call_timeout_seconds": 301},
            {"log_level": "VERBOSE"},
            {"event_history_size": 0},
            {"backoff_initial_delay_seconds": 10, "backoff_max_delay_seconds": 1},
        ],
    )
    def test_invalid_values_rejected(self, values):
        with pytest.raises(ConfigError) as exc_info:
            self.loader.from_dict(values)

        assert "Invalid configuration" in str(exc_info.value)

    def test_controller_section_must_be_mapping(self):
        with pytest.raises(ConfigError):
            self.loader.from_dict({"controller": "fast"})
