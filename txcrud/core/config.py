"""
Settings for txcrud, read from the environment (and ``.env`` when present).
"""

from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from txcrud.models import DataSource, ProductTypeEnum


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Connection target
    DB_PRODUCT_TYPE: ProductTypeEnum = ProductTypeEnum.POSTGRES
    DB_HOST: str = "localhost"
    DB_PORT: int | None = None
    DB_NAME: str = "app"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_USE_SSL: bool = False

    # Driver timeouts (seconds). None disables the statement timeout.
    DB_CONNECT_TIMEOUT: int = 10
    DB_STATEMENT_TIMEOUT: float | None = None

    # Pool
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_MAX_AGE_SEC: float = 1800.0
    DB_POOL_ACQUIRE_TIMEOUT: float = 10.0
    DB_POOL_PING_IDLE_SEC: float = 30.0

    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    def datasource(self) -> DataSource:
        """DataSource built from the DB_* settings."""
        return DataSource(
            name="default",
            product_type=self.DB_PRODUCT_TYPE,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            use_ssl=self.DB_USE_SSL,
        )


settings = Settings()
