from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    user_timezone: str = "UTC"

    # Calendar parsing defaults
    default_event_hour: int = 9
    default_event_duration_minutes: int = 60
    working_hours_start: int = 9
    working_hours_end: int = 17

    # Brute-force embedding search
    similarity_threshold: float = 0.7
    similarity_limit: int = 10
    similarity_max_candidates: int = 100

    # Sentry error tracking
    sentry_dsn: str = ""
    sentry_environment: str = "production"

    log_level: str = "INFO"

    @property
    def has_sentry(self) -> bool:
        return bool(self.sentry_dsn)

    @property
    def has_valid_working_hours(self) -> bool:
        return 0 <= self.working_hours_start < self.working_hours_end <= 24


settings = Settings()
