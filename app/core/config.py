from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API Settings
    PROJECT_NAME: str = "PetStock API"
    API_V1_STR: str = "/api/v1"
    PROJECT_VERSION: str = "0.1.0"
    DESCRIPTION: str = "Inventory, suppliers and debt ledger for pet stores"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # MongoDB
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DB: str = "petstock"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # JWT
    JWT_SECRET: str = "change-this-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60 * 24

    # Stores
    DEBT_CACHE_TTL_SECONDS: int = 5 * 60
    MAX_OWNED_BUSINESSES: int = 3

    # Navigation gate
    WELCOME_PATH: str = "/welcome"
    BUSINESS_SELECTION_PATH: str = "/negocios"
    DASHBOARD_PATH: str = "/dashboard"
    RESTRICTED_ALLOWED_PATHS: List[str] = [
        "/dashboard", "/caja", "/ventas", "/blocked", "/404", "/negocios", "/"
    ]

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env"
    )

settings = Settings()
