from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str | None = None

    DB_USER: str | None = None
    DB_PASSWORD: str | None = None
    DB_HOST: str | None = None
    DB_PORT: str = "3306"
    DB_NAME: str | None = None

    QR_SIGNING_KEY: str = "dev-qr-signing-key-change-me"
    QR_DEFAULT_WINDOW_SECONDS: int = 30

    FRAUD_WINDOW_SECONDS: int = 300
    FRAUD_ATTEMPT_THRESHOLD: int = 3
    FRAUD_FLAG_EXPIRED_REISSUE: bool = True
    FRAUD_RETRY_ATTEMPTS: int = 3

    LOG_LEVEL: str = "INFO"

    @property
    def SQLALCHEMY_DATABASE_URI(self):
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.DB_HOST and self.DB_NAME:
            return (
                f"mysql+pymysql://{self.DB_USER}:{self.DB_PASSWORD}"
                f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
            )
        return "sqlite:///./fairpass.db"

    class Config:
        env_file = ".env"

settings = Settings()
