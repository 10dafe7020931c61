"""Configuration system using pydantic-settings with environment variable loading."""

from decimal import Decimal

from pydantic_settings import BaseSettings, SettingsConfigDict


class MarketplaceSettings(BaseSettings):
    """Bybit P2P marketplace connection settings."""

    model_config = SettingsConfigDict(env_prefix="P2P_")

    base_url: str = "https://api2.bybit.com/fiat/otc/item/online"
    token_id: str = "USDT"
    currency_id: str = "UAH"
    page_size: int = 10  # ads per side; index 2 needs at least 3
    request_timeout: float = 10.0


class SamplingSettings(BaseSettings):
    """Sampling loop parameters."""

    model_config = SettingsConfigDict(env_prefix="SAMPLING_")

    interval_seconds: float = 30.0
    history_capacity: int = 5000
    snapshot_every_ticks: int = 10  # persist after every Nth successful tick
    default_min_amount: int = 5000
    default_bank: str | None = None
    autostart: bool = False  # start sampling at boot with the defaults above


class StorageSettings(BaseSettings):
    """Sample snapshot storage."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    db_path: str = "data/samples.db"


class AnalysisSettings(BaseSettings):
    """Thresholds for hourly strategy analysis.

    Buckets with fewer than min_bucket_count samples stay visible in the
    raw aggregates but never take part in rankings.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYSIS_")

    min_bucket_count: int = 2
    top_hours: int = 3
    top_strategies: int = 5
    min_hours_for_confidence: int = 12
    min_samples_for_confidence: int = 50
    stable_price_range: Decimal = Decimal("0.5")  # below this, arbitrage is unlikely


class DashboardSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 3000
    enabled: bool = True


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production
    marketplace: MarketplaceSettings = MarketplaceSettings()
    sampling: SamplingSettings = SamplingSettings()
    storage: StorageSettings = StorageSettings()
    analysis: AnalysisSettings = AnalysisSettings()
    dashboard: DashboardSettings = DashboardSettings()
