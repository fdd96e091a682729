"""
Connection target models.

DataSource is a plain pydantic model: txcrud has no metadata database of its
own, the caller (or Settings) describes where to connect.
"""

import uuid
from enum import Enum

from pydantic import BaseModel, Field


class ProductTypeEnum(str, Enum):
    """Supported database product types."""

    POSTGRES = "postgres"
    MYSQL = "mysql"
    TRINO = "trino"
    SQLITE = "sqlite"


# Positional placeholder style per driver (DB-API paramstyle).
PARAMSTYLE: dict[ProductTypeEnum, str] = {
    ProductTypeEnum.POSTGRES: "format",
    ProductTypeEnum.MYSQL: "format",
    ProductTypeEnum.TRINO: "qmark",
    ProductTypeEnum.SQLITE: "qmark",
}


class DataSource(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    name: str = Field(default="default", max_length=255)
    product_type: ProductTypeEnum
    host: str | None = Field(default=None, max_length=255)
    port: int | None = None
    database: str = Field(max_length=1024)  # file path for sqlite
    username: str | None = Field(default=None, max_length=255)
    password: str | None = Field(default=None, max_length=512)
    use_ssl: bool = Field(
        default=False,
        description="For Trino: use HTTPS (http_scheme='https'). When True, password is required.",
    )
