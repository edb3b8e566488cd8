import os
class Settings:
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Mini ERP Catalog API")
    VERSION: str = "1.0.0"
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-me")
    ALGO: str = "HS256"
    TOKEN_EXPIRE_MIN: int = int(os.getenv("TOKEN_EXPIRE_MIN", 60 * 24 * 7))
    DB_URL: str = os.getenv("DB_URL", "sqlite:///./mini_erp.db")
    SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"
    API_PREFIX: str = os.getenv("API_PREFIX", "/api/v1")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    FRONTEND_URL: str = os.getenv("FRONTEND_URL", "http://localhost:3000")

    # Pagination bounds shared by every list endpoint
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

settings = Settings()
