"""
Logging - Structured Logger

Logger JSON structuré du contrôleur de health checks.

Chaque ligne émise porte timestamp, niveau, correlation_id, message et,
si connue, la ressource ("namespace/name") sur laquelle porte l'entrée.
Le correlation_id est celui de la passe de réconciliation en cours
(ContextVar de src.observability), sinon un UUID neuf.
"""

import sys
import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from src.observability.interfaces import correlation_id_var

from .interfaces import (
    IStructuredLogger,
    ISensitiveMasker,
    LogConfig,
    LogEntry,
    LogLevel,
)
from .sensitive_masker import SensitiveMasker


class MissingRequiredFieldError(Exception):
    """Champ obligatoire manquant."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


def _write_stderr(line: str) -> None:
    sys.stderr.write(line + "\n")


class StructuredLogger(IStructuredLogger):
    """
    Logger JSON structuré.

    Les entrées sont conservées dans un tampon circulaire borné
    (config.max_entries) pour inspection et tests.

    Example:
        logger = StructuredLogger("mhc-controller")
        logger.info("Target has failed health check", resource="default/m-1")
    """

    def __init__(
        self,
        name: str,
        config: Optional[LogConfig] = None,
        masker: Optional[ISensitiveMasker] = None,
        output_handler: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Initialise le logger structuré.

        Args:
            name: Nom du logger (composant)
            config: Configuration optionnelle
            masker: Masker pour données sensibles
            output_handler: Handler de sortie (stderr par défaut)

        Raises:
            ValueError: Si name vide
        """
        if not name or not name.strip():
            raise ValueError("Logger name cannot be empty")

        self._name = name.strip()
        self._config = config or LogConfig()
        self._masker = masker or SensitiveMasker()
        self._output_handler = output_handler or _write_stderr
        self._entries: Deque[LogEntry] = deque(maxlen=self._config.max_entries)

    @property
    def name(self) -> str:
        """Retourne le nom du logger."""
        return self._name

    @property
    def config(self) -> LogConfig:
        """Retourne la configuration."""
        return self._config

    def set_min_level(self, level: LogLevel) -> None:
        """Change le niveau minimum à chaud."""
        self._config.min_level = level

    def log(
        self,
        level: LogLevel,
        message: str,
        correlation_id: Optional[str] = None,
        resource: Optional[str] = None,
        **extra: Any,
    ) -> Optional[LogEntry]:
        """
        Crée un log structuré JSON.

        Processus:
            1. Vérifie niveau >= min_level
            2. Résout correlation_id (argument, passe courante, sinon UUID)
            3. Masque données sensibles dans extra
            4. Stocke l'entrée et l'émet en JSON

        Raises:
            MissingRequiredFieldError: Si message vide
        """
        if not self._should_log(level):
            return None

        if not message:
            raise MissingRequiredFieldError("message")

        resolved_correlation = correlation_id or correlation_id_var.get()
        if not resolved_correlation:
            resolved_correlation = str(uuid.uuid4())

        masked_extra: Dict[str, Any] = {}
        if extra and self._config.include_extra:
            if self._config.mask_sensitive:
                masked_extra = self._masker.mask(dict(extra))
            else:
                masked_extra = dict(extra)

        entry = LogEntry(
            timestamp=self._generate_timestamp(),
            level=level,
            correlation_id=resolved_correlation,
            message=message,
            resource=resource,
            extra=masked_extra,
            logger_name=self._name,
        )

        self._entries.append(entry)
        self._output_handler(entry.to_json())

        return entry

    def _generate_timestamp(self) -> str:
        """Timestamp ISO 8601 UTC avec millisecondes (2024-12-04T14:30:00.123Z)."""
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def _should_log(self, level: LogLevel) -> bool:
        return LogLevel.get_priority(level) >= LogLevel.get_priority(
            self._config.min_level
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau DEBUG."""
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau INFO."""
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau WARN."""
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau ERROR."""
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        """Log niveau CRITICAL."""
        return self.log(LogLevel.CRITICAL, message, **extra)

    def get_entries(self) -> List[LogEntry]:
        """Retourne les entrées de log capturées."""
        return list(self._entries)

    def clear_entries(self) -> None:
        """Efface les entrées capturées."""
        self._entries.clear()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        """Filtre les entrées par niveau."""
        return [e for e in self._entries if e.level == level]

    def get_entries_by_correlation(self, correlation_id: str) -> List[LogEntry]:
        """Filtre les entrées par correlation_id."""
        return [e for e in self._entries if e.correlation_id == correlation_id]

    def get_entries_by_resource(self, resource: str) -> List[LogEntry]:
        """Filtre les entrées par ressource."""
        return [e for e in self._entries if e.resource == resource]

    def with_context(
        self,
        resource: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> "ContextualLogger":
        """
        Crée un logger avec contexte pré-défini.

        Args:
            resource: Ressource fixée ("namespace/name")
            correlation_id: ID corrélation fixé

        Returns:
            ContextualLogger avec contexte fixé
        """
        return ContextualLogger(self, resource=resource, correlation_id=correlation_id)


class ContextualLogger:
    """
    Logger avec contexte pré-défini.

    Wrapper qui fixe la ressource (et éventuellement le correlation_id)
    pour éviter de les répéter à chaque appel.
    """

    def __init__(
        self,
        logger: IStructuredLogger,
        resource: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self._logger = logger
        self._resource = resource
        self._correlation_id = correlation_id

    @property
    def resource(self) -> Optional[str]:
        return self._resource

    def log(
        self, level: LogLevel, message: str, **extra: Any
    ) -> Optional[LogEntry]:
        """Log avec contexte."""
        return self._logger.log(
            level,
            message,
            correlation_id=self._correlation_id,
            resource=self._resource,
            **extra,
        )

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, **extra)
