"""
Logging

Logs JSON structurés:
- Champs obligatoires: timestamp, level, correlation_id, service, message
- Timestamp ISO 8601 UTC
- Niveaux: DEBUG, INFO, WARN, ERROR, CRITICAL
- Masquage des données sensibles (mots de passe, tokens, secrets)
"""

from .interfaces import (
    LogLevel,
    LogEntry,
    LogConfig,
    IStructuredLogger,
    ISensitiveMasker,
)
from .sensitive_masker import SensitiveMasker
from .structured_logger import (
    StructuredLogger,
    ContextualLogger,
    MissingRequiredFieldError,
)

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    "ContextualLogger",
    # Exceptions
    "MissingRequiredFieldError",
]
