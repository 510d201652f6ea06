"""
Config Loader Implementation
Charge la configuration du contrôleur depuis un fichier YAML.
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from .interfaces import ControllerConfig, IConfigLoader


class ConfigError(Exception):
    """Configuration absente ou invalide."""

    pass


class ConfigLoader(IConfigLoader):
    """Chargement de la configuration depuis fichiers YAML."""

    def __init__(self, configs_path: Optional[str] = None):
        self.configs_path = Path(configs_path) if configs_path else None

    async def load(self, path: str) -> ControllerConfig:
        """
        Charge la configuration.

        Args:
            path: Fichier YAML (relatif à configs_path si défini)

        Returns:
            ControllerConfig validée

        Raises:
            ConfigError: Si fichier inexistant, YAML invalide ou valeurs invalides
        """
        config_file = Path(path)
        if self.configs_path is not None and not config_file.is_absolute():
            config_file = self.configs_path / config_file

        if not config_file.exists():
            raise ConfigError(f"Configuration not found: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e

        # Fichier vide: valeurs par défaut
        if data is None:
            data = {}

        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a YAML mapping")

        return self.from_dict(data)

    def from_dict(self, data: Dict[str, Any]) -> ControllerConfig:
        """
        Valide une configuration.

        Accepte la configuration à plat ou sous une clé "controller".

        Raises:
            ConfigError: Valeurs invalides ou champs inconnus
        """
        section = data.get("controller", data)
        if not isinstance(section, dict):
            raise ConfigError("controller section must be a mapping")

        unknown = set(section) - set(ControllerConfig.model_fields)
        if unknown:
            raise ConfigError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        try:
            return ControllerConfig(**section)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
