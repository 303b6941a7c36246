"""
tradeauth - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from tradeauth.core.interfaces import AuthSettings, JwtSettings, PasswordSettings
from tradeauth.logging import LogConfig, LogLevel, StructuredLogger


TEST_SECRET = "test-secret-key-with-at-least-32-bytes!!"


class FakeClock:
    """Horloge contrôlable, démarre à l'instant réel."""

    def __init__(self, start: datetime = None) -> None:
        self.now = start or datetime.now(timezone.utc).replace(microsecond=0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def jwt_settings() -> JwtSettings:
    return JwtSettings(secret_key=TEST_SECRET, issuer="tradeauth-test")


@pytest.fixture
def settings(jwt_settings: JwtSettings) -> AuthSettings:
    """Coûts Argon2 minimaux pour garder les tests rapides."""
    return AuthSettings(
        jwt=jwt_settings,
        password=PasswordSettings(argon2_time_cost=1, argon2_memory_cost=8, argon2_parallelism=1),
    )


@pytest.fixture
def log_lines() -> List[str]:
    return []


@pytest.fixture
def logger(log_lines: List[str]) -> StructuredLogger:
    """Logger capturant entrées et lignes JSON (aucune sortie stderr)."""
    return StructuredLogger(
        "test",
        LogConfig(min_level=LogLevel.DEBUG, capture_entries=True, service="tradeauth-test"),
        output_handler=log_lines.append,
    )
