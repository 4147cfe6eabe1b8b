from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_PLACEHOLDER_SECRETS = {"change-me", "changeme", "default", "secret", "your-super-secret-key-change-this-in-production"}


class Settings(BaseSettings):
    # Application Settings
    PROJECT_NAME: str = "Account Service"
    DEBUG: bool = False

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./accounts.db"

    # JWT Settings. No default: a missing signing secret must stop the process at startup.
    SECRET_KEY: str = Field(validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"))
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Password hashing
    BCRYPT_ROUNDS: int = 12

    # Email Settings (for OTP delivery)
    NOTIFIER_BACKEND: str = "smtp"  # 'smtp' | 'log'
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_START_TLS: bool = True
    EMAIL_FROM: str | None = None
    NOTIFIER_TIMEOUT_SECONDS: float = 15.0

    # OTP Settings
    OTP_EXPIRE_MINUTES: int = 10
    # When enabled, password login is refused until the account has redeemed its first OTP
    REQUIRE_VERIFIED_LOGIN: bool = False

    # Comma-separated list of allowed browser origins
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def _post_init(self):
        if not self.SECRET_KEY:
            raise ValueError("SECRET_KEY (or JWT_SECRET) must be set")
        # Refuse obvious placeholder secrets outside debug
        if self.SECRET_KEY.lower() in _PLACEHOLDER_SECRETS and not self.DEBUG:
            raise ValueError("Insecure SECRET_KEY value detected; change it")
        if self.NOTIFIER_BACKEND not in {"smtp", "log"}:
            raise ValueError(f"Unknown NOTIFIER_BACKEND {self.NOTIFIER_BACKEND!r}")

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def email_sender(self) -> str:
        return self.EMAIL_FROM or self.SMTP_USERNAME


settings = Settings()
settings._post_init()
