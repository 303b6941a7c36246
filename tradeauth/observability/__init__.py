"""
Observability

Correlation IDs par requête:
- Générés en bordure (gateway), jamais repris du client
- Propagés en aval via le header X-Request-ID
- Inclus automatiquement dans les logs structurés
"""

from .interfaces import (
    # Context variable
    correlation_id_var,
    # Interfaces
    ICorrelationManager,
    ICorrelationPropagator,
)
from .correlation import (
    CorrelationManager,
    CorrelationPropagator,
)

__all__ = [
    # Context variable
    "correlation_id_var",
    # Interfaces
    "ICorrelationManager",
    "ICorrelationPropagator",
    # Implementations
    "CorrelationManager",
    "CorrelationPropagator",
]
