from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront.db"
    REDIS_URL: str = "redis://localhost:6379/1"
    SECRET_KEY: str = "dev-secret-storefront"
    JWT_ALGORITHM: str = "HS256"
    JWT_TTL_MINUTES: int = 60
    LOG_LEVEL: str = "INFO"
    RATE_LIMIT_PER_MINUTE: int = 60
    LOGIN_RATE_LIMIT: str = "10/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    AUTH_COOKIE_NAME: str = "access_token"

    # клиент форм ходит в API по этому адресу
    API_BASE_URL: str = "http://localhost:8000/api"
    HTTP_TIMEOUT: float = 10.0

    # админа нельзя зарегистрировать через signup, создаём при старте
    ADMIN_NAME: str = "Administrator"
    ADMIN_EMAIL: str | None = None
    ADMIN_PASSWORD: str | None = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
