from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings

# Load .env variables
load_dotenv()


class Settings(BaseSettings):
    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./clinic.db"
    db_pool_size: int = 10
    db_max_overflow: int = 0
    db_pool_timeout: int = 30

    # Tokens
    jwt_secret: str = "ips_fulano_secret_key_2024"
    jwt_algorithm: str = "HS256"
    token_expire_days: int = 30

    environment: str = "development"
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:4200", "http://localhost:3000"]

    # Roles accepted by each user creation entry point
    signup_roles: List[str] = ["admin", "doctor", "nurse", "recepcionista"]
    staff_roles: List[str] = ["admin", "doctor", "recepcionista"]
    # Lets the unauthenticated signup endpoint create admin accounts
    allow_public_admin_signup: bool = True

    # Bootstrap administrator
    seed_default_admin: bool = True
    default_admin_name: str = "Administrador"
    default_admin_email: str = "admin@ipsfulano.com"
    default_admin_password: str = "admin123"

    @field_validator("default_admin_email")
    @classmethod
    def normalize_admin_email(cls, v):
        # login lower-cases the submitted email
        return v.strip().lower()

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
