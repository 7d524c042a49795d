from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Leasing Marketplace API"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "sqlite+aiosqlite:///./leasing.db"
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    # "memory" keeps everything in process (lost on restart); "sql" uses database_url.
    storage_backend: Literal["memory", "sql"] = "sql"
    seed_demo_data: bool = False

    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def uses_memory_storage(self) -> bool:
        return self.storage_backend == "memory"


settings = Settings()
