from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    environment: str = "development"
    debug: bool = False
    service_name: str = "inact.srv.configuration"
    allowed_origins: str = "http://localhost:3000"
    log_level: str = "INFO"

    # Server (cli serve)
    host: str = "0.0.0.0"
    port: int = 8000

    # Database: DATABASE_URL wins, otherwise composed from DB_* parts
    database_url: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "configuration"
    db_password: str = "configuration"
    db_name: str = "configuration"
    db_pool_size: int = 20
    db_max_overflow: int = 10

    # Upper bound for every store interaction of a single operation
    context_timeout_seconds: float = 5.0

    # Where the CLI client commands find a running service
    service_url: str = "http://localhost:8000"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def sqlalchemy_url_sync(self) -> str:
        """Blocking-driver URL for Alembic."""
        return self.sqlalchemy_url.replace("+asyncpg", "")


settings = Settings()
