from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "SafeWatch Field Safety"
    secret_key: str
    jwt_alg: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60
    refresh_token_expire_minutes: int = 43200
    database_url: str = "sqlite:///./safewatch.db"

    log_level: str = "INFO"

    # One-shot reconciliation of the areas lookup table after startup
    area_sync_delay_seconds: float = 2.0

    # Comma-separated list of exact origins for the browser client
    cors_origins: str = "http://localhost:5000,http://127.0.0.1:5000"

    leaderboard_limit: int = 50

    # Pydantic v2 settings
    model_config = SettingsConfigDict(env_file=".env")

    @property
    def allowed_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
