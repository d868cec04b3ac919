from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./estimator.db"
    COMPANY_NAME: str = "Constructora"
    COMPANY_EMAIL: str = "info@constructora.do"
    COMPANY_PHONE: str = ""
    DEFAULT_LOCALE: str = "es"

    # Seed the default material catalog on first run
    SEED_CATALOG: bool = True

    # Upper bound for a single store query or insert
    STORE_TIMEOUT_SECONDS: float = 10.0

    # Auth
    JWT_SECRET: str = ""  # REQUIRED in production — fail loudly if missing at auth time
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_EXPIRE_MINUTES: int = 15
    JWT_REFRESH_EXPIRE_DAYS: int = 30

    class Config:
        env_file = ".env"


settings = Settings()
