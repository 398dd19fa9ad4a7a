import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "sqlite:///./tasks.db"
DEFAULT_JWT_SECRET = "dev-only-secret-change-me-before-deploying-0123456789"


@dataclass(frozen=True)
class Settings:
    database_url: str = DEFAULT_DATABASE_URL
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_issuer: str = "tasktrack"
    jwt_audience: str = "tasktrack-clients"
    jwt_expires_minutes: int = 120
    bcrypt_rounds: int = 12
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        database_url = os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)

        # Render and Heroku still hand out the old scheme
        if database_url.startswith("postgres://"):
            database_url = database_url.replace("postgres://", "postgresql://", 1)

        return cls(
            database_url=database_url,
            jwt_secret=os.environ.get("JWT_SECRET", DEFAULT_JWT_SECRET),
            jwt_issuer=os.environ.get("JWT_ISSUER", "tasktrack"),
            jwt_audience=os.environ.get("JWT_AUDIENCE", "tasktrack-clients"),
            jwt_expires_minutes=int(os.environ.get("JWT_EXPIRES_MINUTES", "120")),
            bcrypt_rounds=int(os.environ.get("BCRYPT_ROUNDS", "12")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
