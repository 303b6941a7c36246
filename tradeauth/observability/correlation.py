"""
Observability: Correlation ID Management

Chaque requête reçoit un identifiant unique (UUID v4) généré en bordure,
jamais repris du client, et recopié dans les headers transmis en aval.
"""

import re
import uuid
from typing import Dict, Optional

from .interfaces import (
    ICorrelationManager,
    ICorrelationPropagator,
    correlation_id_var,
)


UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)


class CorrelationManager(ICorrelationManager):
    """
    Gestion des correlation IDs.

    Utilise une ContextVar: chaque tâche asyncio / thread de requête voit
    son propre identifiant.
    """

    HEADER_NAME: str = "X-Request-ID"

    def generate(self) -> str:
        return str(uuid.uuid4())

    def get_current(self) -> Optional[str]:
        return correlation_id_var.get()

    def set_current(self, correlation_id: str) -> None:
        """
        Args:
            correlation_id: UUID v4

        Raises:
            ValueError: Si correlation_id vide ou invalide
        """
        if not correlation_id or not correlation_id.strip():
            raise ValueError("correlation_id cannot be empty")

        if not self.is_valid_uuid(correlation_id):
            raise ValueError(f"Invalid correlation_id format: {correlation_id}")

        correlation_id_var.set(correlation_id)

    def start_request(self) -> str:
        """Génère et installe un nouvel ID pour la requête entrante."""
        correlation_id = self.generate()
        correlation_id_var.set(correlation_id)
        return correlation_id

    def clear(self) -> None:
        """Nettoie le contexte courant (fin de requête)."""
        correlation_id_var.set(None)

    def is_valid_uuid(self, value: str) -> bool:
        if not value:
            return False
        return bool(UUID_PATTERN.match(value))


class CorrelationPropagator(ICorrelationPropagator):
    """Injection du correlation ID dans les headers sortants."""

    def __init__(self, manager: ICorrelationManager) -> None:
        self._manager = manager

    def inject_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        result = dict(headers)

        correlation_id = self._manager.get_current()
        if correlation_id is None:
            correlation_id = self._manager.generate()
            self._manager.set_current(correlation_id)

        result[CorrelationManager.HEADER_NAME] = correlation_id
        return result
