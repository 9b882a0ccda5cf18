from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables (or a .env file).

    The database location is either given whole through DATABASE_URL or
    assembled from the individual DB_* credentials.
    """
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application
    APP_NAME: str = "Products API"
    APP_VERSION: str = "1.0.0"
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "postgres"
    DATABASE_URL: str = ""
    DB_ECHO: bool = False

    # Listing
    DEFAULT_PAGE_SIZE: int = 10

    @property
    def database_url(self) -> str:
        """Connection URL, with DATABASE_URL taking precedence over DB_* parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+psycopg2",
            username=self.DB_USERNAME,
            password=self.DB_PASSWORD or None,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )
        return url.render_as_string(hide_password=False)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
