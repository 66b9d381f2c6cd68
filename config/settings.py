import os
from dataclasses import dataclass


@dataclass
class Settings:
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-change-me")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    # 7 дней
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "10080"))

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    APP_VERSION: str = os.getenv("APP_VERSION", "2.0.0")
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "10000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory")  # memory | sqlite
    DB_PATH: str = os.getenv("DB_PATH", "./data/hosting.db")
    STATIC_DIR: str = os.getenv("STATIC_DIR", "./static")
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "")

    API_BASE_URL: str = os.getenv("BOT_HOSTING_API_BASE_URL", "https://bot-hosting.net/api/v1")
    PANEL_URL: str = os.getenv("BOT_HOSTING_PANEL_URL", "https://control.bot-hosting.net")

    START_DELAY_SECONDS: float = float(os.getenv("START_DELAY_SECONDS", "3"))
    STOP_DELAY_SECONDS: float = float(os.getenv("STOP_DELAY_SECONDS", "2"))
    RESTART_DELAY_SECONDS: float = float(os.getenv("RESTART_DELAY_SECONDS", "4"))

    STARTING_COINS: int = int(os.getenv("STARTING_COINS", "100"))

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def cors_origins(self) -> list:
        if not self.ALLOWED_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    def transition_delays(self) -> dict:
        return {
            "start": self.START_DELAY_SECONDS,
            "stop": self.STOP_DELAY_SECONDS,
            "restart": self.RESTART_DELAY_SECONDS,
        }

settings = Settings()
