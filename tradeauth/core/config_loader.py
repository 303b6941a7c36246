"""
Core: Config Loader

Charge la configuration depuis un fichier YAML, applique les surcharges
d'environnement puis valide via pydantic.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .interfaces import AuthSettings, IConfigLoader


# Variable d'environnement -> chemin dans la config
ENV_OVERRIDES: Dict[str, tuple] = {
    "TRADEAUTH_JWT_SECRET": ("jwt", "secret_key"),
    "TRADEAUTH_JWT_ISSUER": ("jwt", "issuer"),
    "TRADEAUTH_REDIS_URL": ("redis", "url"),
    "TRADEAUTH_POSTGRES_DSN": ("postgres", "dsn"),
}


class ConfigLoader(IConfigLoader):
    """Chargement de la configuration depuis fichiers YAML."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ if environ is not None else os.environ

    def load(self, path: Union[str, Path]) -> AuthSettings:
        """
        Charge la configuration d'un processus.

        Args:
            path: Chemin du fichier YAML

        Returns:
            AuthSettings validés

        Raises:
            ConfigError: Si fichier inexistant, YAML invalide ou validation échouée
        """
        config_file = Path(path)

        if not config_file.exists():
            raise ConfigError(f"Configuration file not found: {config_file}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parsing error: {e}") from e

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise ConfigError("Configuration root must be a YAML mapping")

        return self.from_dict(raw)

    def from_dict(self, raw: Dict[str, Any]) -> AuthSettings:
        """Valide un dictionnaire brut après surcharges d'environnement."""
        data = self._apply_env_overrides(raw)
        try:
            return AuthSettings.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def _apply_env_overrides(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        data = {k: (dict(v) if isinstance(v, dict) else v) for k, v in raw.items()}
        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = self._environ.get(env_name)
            if value is None:
                continue
            section_data = data.get(section)
            if not isinstance(section_data, dict):
                section_data = {}
            section_data[key] = value
            data[section] = section_data
        return data
