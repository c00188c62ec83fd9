"""
config/settings.py - Configuration management
"""

import os
import json
from typing import Dict, List, cast


class Config:
    """Application configuration

    Values come from a JSON file (CONFIG_PATH, default config.json) with
    environment variables taking precedence. Missing file falls back to
    the built-in defaults.
    """

    _config_data = None

    @classmethod
    def _load_config(cls) -> Dict:
        """Load configuration from file"""
        if cls._config_data is None:
            config_path = os.getenv("CONFIG_PATH", "config.json")
            try:
                with open(config_path, "r") as f:
                    cls._config_data = json.load(f)
            except FileNotFoundError:
                cls._config_data = cls._get_default_config()
        return cls._config_data

    @classmethod
    def _get_default_config(cls) -> Dict:
        """Default configuration"""
        return {
            "auth": {
                "jwt_expires_hours": 6,
                "bcrypt_rounds": 10,
                "allow_registration": True,
            },
            "quotes": {
                # finnhub or yahoo
                "provider": "finnhub",
                "request_timeout_seconds": 8,
                # abort: fail the trade, placeholder: substitute a dev price
                "failure_policy": "abort",
                "refresh_interval_minutes": 30,
            },
            "cache": {
                "news_ttl_seconds": 300,
                "candles_ttl_seconds": 300,
                "fx_ttl_seconds": 3600,
                "max_entries": 256,
            },
            "data": {
                "database_path": "data/openfx.db",
            },
            "api": {
                # Development mode overrides host to 127.0.0.1
                "host": "0.0.0.0",
                "port": 4000,
                "cors_origin": None,
            },
        }

    @classmethod
    def DATABASE_PATH(cls) -> str:
        return os.getenv("DATABASE_PATH", cls._load_config()["data"]["database_path"])

    @classmethod
    def DATABASE_URL(cls) -> str:
        return os.getenv("DATABASE_URL") or f"sqlite:///{cls.DATABASE_PATH()}"

    @classmethod
    def JWT_SECRET_KEY(cls) -> str:
        return os.getenv("JWT_SECRET", "dev_jwt_secret")

    @classmethod
    def JWT_EXPIRES_HOURS(cls) -> int:
        return int(os.getenv("JWT_EXPIRES_HOURS", cls._load_config()["auth"]["jwt_expires_hours"]))

    @classmethod
    def BCRYPT_ROUNDS(cls) -> int:
        return int(os.getenv("BCRYPT_SALT_ROUNDS", cls._load_config()["auth"]["bcrypt_rounds"]))

    @classmethod
    def ALLOW_REGISTRATION(cls) -> bool:
        env_value = os.getenv("ALLOW_REGISTRATION")
        if env_value is not None:
            return env_value.lower() == "true"
        return cast(bool, cls._load_config()["auth"]["allow_registration"])

    @classmethod
    def FINNHUB_API_KEY(cls) -> str | None:
        return os.getenv("FINNHUB_API_KEY")

    @classmethod
    def OPENEXCHANGERATES_API_KEY(cls) -> str | None:
        return os.getenv("OPENEXCHANGERATES_API_KEY")

    @classmethod
    def QUOTE_PROVIDER(cls) -> str:
        return os.getenv("QUOTE_PROVIDER", cls._load_config()["quotes"]["provider"]).lower()

    @classmethod
    def QUOTE_TIMEOUT(cls) -> float:
        return float(
            os.getenv("QUOTE_TIMEOUT", cls._load_config()["quotes"]["request_timeout_seconds"])
        )

    @classmethod
    def QUOTE_FAILURE_POLICY(cls) -> str:
        return os.getenv(
            "QUOTE_FAILURE_POLICY", cls._load_config()["quotes"]["failure_policy"]
        ).lower()

    @classmethod
    def PRICE_REFRESH_INTERVAL(cls) -> int:
        return int(
            os.getenv(
                "PRICE_REFRESH_INTERVAL",
                cls._load_config()["quotes"]["refresh_interval_minutes"],
            )
        )

    @classmethod
    def NEWS_CACHE_TTL(cls) -> int:
        return cast(int, cls._load_config()["cache"]["news_ttl_seconds"])

    @classmethod
    def CANDLES_CACHE_TTL(cls) -> int:
        return cast(int, cls._load_config()["cache"]["candles_ttl_seconds"])

    @classmethod
    def FX_CACHE_TTL(cls) -> int:
        return cast(int, cls._load_config()["cache"]["fx_ttl_seconds"])

    @classmethod
    def CACHE_MAX_ENTRIES(cls) -> int:
        return cast(int, cls._load_config()["cache"]["max_entries"])

    @classmethod
    def CORS_ORIGIN(cls) -> str | None:
        return os.getenv("CORS_ORIGIN", cls._load_config()["api"]["cors_origin"])

    @classmethod
    def API_HOST(cls) -> str:
        return os.getenv("HOST", cls._load_config()["api"]["host"])

    @classmethod
    def API_PORT(cls) -> int:
        return int(os.getenv("PORT", cls._load_config()["api"]["port"]))

    @classmethod
    def validate_config(cls) -> List[str]:
        """Validate configuration and return list of issues"""
        issues = []

        if cls.QUOTE_PROVIDER() not in ("finnhub", "yahoo"):
            issues.append(f"Unknown quote provider: {cls.QUOTE_PROVIDER()}")

        if cls.QUOTE_PROVIDER() == "finnhub" and not cls.FINNHUB_API_KEY():
            issues.append("FINNHUB_API_KEY not set")

        if cls.QUOTE_FAILURE_POLICY() not in ("abort", "placeholder"):
            issues.append(f"Invalid quote failure policy: {cls.QUOTE_FAILURE_POLICY()}")

        if cls.QUOTE_TIMEOUT() <= 0:
            issues.append("Quote request timeout must be positive")

        if cls.JWT_SECRET_KEY() == "dev_jwt_secret":
            issues.append("JWT_SECRET not set, using development secret")

        if cls.BCRYPT_ROUNDS() < 4 or cls.BCRYPT_ROUNDS() > 31:
            issues.append("BCRYPT_SALT_ROUNDS must be between 4 and 31")

        return issues


# Environment-specific configurations
class DevelopmentConfig(Config):
    """Development configuration"""

    DEBUG = True
    TESTING = False

    @classmethod
    def DATABASE_PATH(cls) -> str:
        return os.getenv("DATABASE_PATH", "data/dev_openfx.db")


class ProductionConfig(Config):
    """Production configuration"""

    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration"""

    DEBUG = True
    TESTING = True

    @classmethod
    def DATABASE_PATH(cls) -> str:
        return os.getenv("DATABASE_PATH", "data/test_openfx.db")

    @classmethod
    def BCRYPT_ROUNDS(cls) -> int:
        return 4  # Keep hashing fast under test


def get_config() -> type[Config]:
    """Get configuration based on environment"""
    env = os.getenv("FLASK_ENV", "production")

    if env == "development":
        return DevelopmentConfig
    elif env == "testing":
        return TestingConfig
    else:
        return ProductionConfig
