"""
Tests unitaires pour Core - ConfigLoader et AuthSettings.
"""

from pathlib import Path

import pytest

from tradeauth.core import AuthSettings, ConfigError, ConfigLoader, JwtSettings
from tradeauth.core.interfaces import DEFAULT_AUTH_PUBLIC_PATHS, HEALTH_PUBLIC_PATHS


SECRET = "x" * 32


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def loader() -> ConfigLoader:
    return ConfigLoader(environ={})


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "auth.yaml"
    path.write_text(
        "service_name: auth-service\n"
        "jwt:\n"
        f"  secret_key: {SECRET}\n"
        "  access_token_ttl_seconds: 600\n"
        "lockout:\n"
        "  max_failed_attempts: 3\n"
        "redis:\n"
        "  url: redis://cache:6379/1\n",
        encoding="utf-8",
    )
    return path


# =============================================================================
# CHARGEMENT
# =============================================================================


class TestLoad:
    def test_load_valid_file(self, loader: ConfigLoader, config_file: Path) -> None:
        settings = loader.load(config_file)

        assert settings.jwt.access_token_ttl_seconds == 600
        assert settings.jwt.refresh_token_ttl_seconds == 604800
        assert settings.lockout.max_failed_attempts == 3
        assert settings.lockout.lockout_minutes == 15
        assert settings.redis.url == "redis://cache:6379/1"
        assert settings.default_role == "ROLE_USER"

    def test_missing_file_raises(self, loader: ConfigLoader, tmp_path: Path) -> None:
        with pytest.raises(ConfigError) as exc_info:
            loader.load(tmp_path / "absent.yaml")
        assert "not found" in str(exc_info.value)

    def test_invalid_yaml_raises(self, loader: ConfigLoader, tmp_path: Path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("jwt: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            loader.load(path)

    def test_non_mapping_root_raises(self, loader: ConfigLoader, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            loader.load(path)

    def test_env_overrides_secret_and_redis(self, config_file: Path) -> None:
        loader = ConfigLoader(environ={
            "TRADEAUTH_JWT_SECRET": "y" * 40,
            "TRADEAUTH_REDIS_URL": "redis://other:6379/0",
        })

        settings = loader.load(config_file)

        assert settings.jwt.secret_key == "y" * 40
        assert settings.redis.url == "redis://other:6379/0"

    def test_env_override_creates_missing_section(self) -> None:
        loader = ConfigLoader(environ={"TRADEAUTH_JWT_SECRET": SECRET})

        settings = loader.from_dict({})

        assert settings.jwt.secret_key == SECRET


# =============================================================================
# VALIDATION
# =============================================================================


class TestValidation:
    def test_short_secret_rejected(self, loader: ConfigLoader) -> None:
        with pytest.raises(ConfigError):
            loader.from_dict({"jwt": {"secret_key": "short"}})

    def test_missing_jwt_section_rejected(self, loader: ConfigLoader) -> None:
        with pytest.raises(ConfigError):
            loader.from_dict({})

    def test_refresh_ttl_must_exceed_access_ttl(self, loader: ConfigLoader) -> None:
        with pytest.raises(ConfigError):
            loader.from_dict({
                "jwt": {
                    "secret_key": SECRET,
                    "access_token_ttl_seconds": 900,
                    "refresh_token_ttl_seconds": 900,
                }
            })

    def test_non_positive_ttl_rejected(self, loader: ConfigLoader) -> None:
        with pytest.raises(ConfigError):
            loader.from_dict({"jwt": {"secret_key": SECRET, "access_token_ttl_seconds": 0}})

    def test_lockout_threshold_must_be_positive(self, loader: ConfigLoader) -> None:
        with pytest.raises(ConfigError):
            loader.from_dict({"jwt": {"secret_key": SECRET}, "lockout": {"max_failed_attempts": 0}})


class TestPublicPaths:
    def test_gateway_paths_are_prefixed(self) -> None:
        settings = AuthSettings(jwt=JwtSettings(secret_key=SECRET))

        paths = settings.gateway.resolved_public_paths()

        assert "/v1/api/auth-service/auth/login" in paths
        assert "/actuator/health" in paths
        assert "/auth/login" not in paths

    def test_gateway_explicit_paths_win(self) -> None:
        settings = AuthSettings(
            jwt=JwtSettings(secret_key=SECRET),
            gateway={"public_paths": ["/public"]},
        )

        assert settings.gateway.resolved_public_paths() == ["/public"]

    def test_service_defaults(self) -> None:
        settings = AuthSettings(jwt=JwtSettings(secret_key=SECRET))

        assert settings.service.public_paths == DEFAULT_AUTH_PUBLIC_PATHS + HEALTH_PUBLIC_PATHS
