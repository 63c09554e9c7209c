import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/serilovers.db"
    log_level: str = "INFO"
    create_tables: bool = True

    # 0 disables the scheduled backfill
    backfill_interval_hours: int = 0

    class Config:
        env_prefix = "SERILOVERS_"


settings = Settings()


def configure_logging():
    """Configure root logging from settings."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )
