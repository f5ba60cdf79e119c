from pydantic_settings import BaseSettings


class GlobalConfig(BaseSettings):
    # Database
    database_url: str = ""
    slow_query_threshold_ms: int = 500
    db_pool_size: int = 10
    db_max_overflow: int = 10

    # JWT
    jwt_secret: str = "test-secret"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    reset_token_expire_minutes: int = 60
    verify_token_expire_hours: int = 24

    # Google sign-in (empty = audience not checked)
    google_client_id: str = ""

    # AI prediction service
    ai_service_url: str = "http://localhost:5001"
    ai_service_timeout_sec: float = 10.0
    onboarding_tickers: str = "SPY,QQQ,VTI,VXUS,BND"

    # Encryption (comma separated, newest first)
    encryption_keys: str = ""

    # Ledger
    ledger_max_retries: int = 5

    # Demo price ticks
    price_tick_interval_sec: float = 5.0
    price_tick_symbols: str = "AAPL,MSFT,GOOGL,NVDA,AMZN"

    # App
    app_host: str = "0.0.0.0"
    app_port: int = 5000
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000"
    environment: str = "development"
    sentry_dsn: str = ""

    # Rate Limiting
    rate_limit_enabled: bool = True

    @property
    def encryption_key_list(self) -> list[str]:
        return [k.strip() for k in self.encryption_keys.split(",") if k.strip()]

    @property
    def onboarding_ticker_list(self) -> list[str]:
        return [t.strip() for t in self.onboarding_tickers.split(",") if t.strip()]

    @property
    def price_tick_symbol_list(self) -> list[str]:
        return [s.strip().upper() for s in self.price_tick_symbols.split(",") if s.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
