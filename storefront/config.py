from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List, Optional
from urllib.parse import quote_plus

class Settings(BaseSettings):
    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full URL wins over the postgres_* parts (sqlite for local runs and tests)
    database_url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    secret_key: str
    algorithm: str = "HS256"
    password_token_expire_minutes: int = 60
    federated_token_expire_minutes: int = 60 * 24

    google_client_id: str = ""

    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""

    env: str = "local"
    log_level: str = "INFO"
    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override
        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"
        populate_by_name = True

settings = Settings()
