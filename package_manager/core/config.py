from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database - can be set as full URL or individual components
    database_url: Optional[str] = None
    database_user: str = "postgres"
    database_password: str = "password"
    database_host: str = "localhost"
    database_port: str = "5432"
    database_name: str = "package_manager"

    @property
    def get_database_url(self) -> str:
        """Build database URL from components if not explicitly set."""
        if self.database_url:
            return self.database_url
        return f"postgresql://{self.database_user}:{self.database_password}@{self.database_host}:{self.database_port}/{self.database_name}"

    # Database pool
    db_pool_size: int = 20
    db_max_overflow: int = 30

    # Application
    debug: bool = False
    log_level: str = "INFO"
    port: int = 5004
    cors_origins: str = "http://localhost:3000"  # Comma-separated

    # JWT verification (tokens are issued by the identity service)
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    auth_cookie_name: str = "token"

    # Encryption
    encryption_key: Optional[str] = None  # Fernet key for secret-bearing integration config

    # Shared secret required on the unmasked key endpoint, None = any authenticated caller
    internal_service_token: Optional[str] = None

    # Health probing of installed packages
    health_check_timeout: float = 5.0

    # Seed built-in packages and platform integrations on startup
    seed_on_startup: bool = True

    @property
    def get_cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
