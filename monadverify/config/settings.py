"""
Settings Module
===============

Pydantic-based configuration with environment variable loading.

Version: 0.1.0
"""

from enum import Enum
from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LedgerMode(str, Enum):
    """Ledger operation mode."""

    MOCK = "mock"
    TESTNET = "testnet"
    MAINNET = "mainnet"


class CacheBackend(str, Enum):
    """Where block caches are persisted."""

    MEMORY = "memory"
    FILE = "file"
    REDIS = "redis"


class NetworkSettings(BaseSettings):
    """Target EVM network configuration."""

    model_config = SettingsConfigDict(env_prefix="NETWORK_")

    chain_id: int = 10143
    name: str = "Monad Testnet"
    rpc_url: str = "https://testnet-rpc.monad.xyz"
    explorer_url: str = "https://testnet-explorer.monad.xyz"
    currency_symbol: str = "MON"
    contract_address: str = "0xE6AeA6c3bB2de7e5223722B65220CfdFf9Dea7a7"

    mainnet_chain_id: int = 143
    mainnet_rpc_url: str = "https://rpc.monad.xyz"
    mainnet_contract_address: str = ""

    def tx_url(self, tx_hash: str) -> str:
        """Explorer link for a transaction."""
        return f"{self.explorer_url.rstrip('/')}/tx/{tx_hash}"


class LedgerSettings(BaseSettings):
    """Ledger client configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    mode: LedgerMode = LedgerMode.MOCK
    private_key: SecretStr = SecretStr("")

    # 0.01 MON
    verification_fee_wei: int = 10_000_000_000_000_000
    confirmation_timeout_seconds: float | None = 120.0
    gas_limit: int = 500_000


class HistorySettings(BaseSettings):
    """Event log scanning configuration."""

    model_config = SettingsConfigDict(env_prefix="HISTORY_")

    block_range: int = Field(default=500, ge=1)
    rate_limit_delay_seconds: float = 1.0
    max_retries: int = Field(default=3, ge=0)
    start_block: int = Field(default=0, ge=0)
    retry_skipped_windows: bool = False


class CacheSettings(BaseSettings):
    """Block cache persistence configuration."""

    model_config = SettingsConfigDict(env_prefix="CACHE_")

    backend: CacheBackend = CacheBackend.MEMORY
    directory: Path = Path(".cache/monadverify")
    namespace: str = "monadverify_block_cache"


class RedisSettings(BaseSettings):
    """Redis cache configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = "localhost"
    port: int = 6379
    password: SecretStr = SecretStr("")
    db: int = 0

    @property
    def url(self) -> str:
        """Generate Redis connection URL."""
        pwd = self.password.get_secret_value()
        if pwd:
            return f"redis://:{pwd}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class AttestationSettings(BaseSettings):
    """Primus zkTLS attestation provider configuration."""

    model_config = SettingsConfigDict(env_prefix="PRIMUS_")

    app_id: str = ""
    app_secret: SecretStr = SecretStr("")
    base_url: str = "https://api.primuslabs.xyz"
    timeout_seconds: float = 30.0
    max_retries: int = 3

    @property
    def configured(self) -> bool:
        """Whether credentials are present."""
        return bool(self.app_id and self.app_secret.get_secret_value())


class OrchestratorSettings(BaseSettings):
    """Two-phase verification flow configuration."""

    model_config = SettingsConfigDict(env_prefix="VERIFICATION_")

    settle_delay_seconds: float = 2.0


class MockApiSettings(BaseSettings):
    """Simulated verification API configuration."""

    model_config = SettingsConfigDict(env_prefix="MOCK_API_")

    delay_seconds: float = 1.5


class CORSSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into list."""
        return [o.strip() for o in self.origins.split(",") if o.strip()]


class ServicePorts(BaseSettings):
    """Service port configuration."""

    verification: int = Field(default=8004, alias="VERIFICATION_PORT")


class Settings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables with sensible defaults.
    Use the global `settings` singleton or call `get_settings()`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # General
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True
    log_level: LogLevel = LogLevel.INFO

    ports: ServicePorts = Field(default_factory=ServicePorts)

    # Chain
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)

    # History sync
    history: HistorySettings = Field(default_factory=HistorySettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    # Verification flow
    attestation: AttestationSettings = Field(default_factory=AttestationSettings)
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)
    mock_api: MockApiSettings = Field(default_factory=MockApiSettings)

    cors: CORSSettings = Field(default_factory=CORSSettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def uppercase_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Ensure log level is uppercase."""
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == Environment.TESTING


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
