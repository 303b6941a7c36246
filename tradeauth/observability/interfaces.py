"""
Observability: Interfaces

Identifiants de corrélation par requête (X-Request-ID), visibles par tous
les logs émis pendant le traitement de la requête.
"""

from abc import ABC, abstractmethod
from contextvars import ContextVar
from typing import Dict, Optional


# Propagation automatique (asyncio et threads)
correlation_id_var: ContextVar[Optional[str]] = ContextVar(
    "correlation_id", default=None
)


class ICorrelationManager(ABC):
    """Interface gestion correlation IDs."""

    @abstractmethod
    def generate(self) -> str:
        """Génère un UUID v4."""
        pass

    @abstractmethod
    def get_current(self) -> Optional[str]:
        pass

    @abstractmethod
    def set_current(self, correlation_id: str) -> None:
        """
        Définit le correlation_id de la requête courante.

        Raises:
            ValueError: Si vide ou pas un UUID v4
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class ICorrelationPropagator(ABC):
    """Interface propagation du correlation ID vers les appels sortants."""

    @abstractmethod
    def inject_headers(self, headers: Dict[str, str]) -> Dict[str, str]:
        """
        Retourne une copie des headers avec X-Request-ID.

        Génère un ID si aucun n'est défini pour la requête courante.
        """
        pass
