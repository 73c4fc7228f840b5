import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self):
        self.app_name = os.getenv("APP_NAME", "EduCare Connect")
        self.api_version = "1.0.0"
        self.environment = os.getenv("ENVIRONMENT", "development")
        self.secret_key = os.getenv("SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.email_verification_expire_minutes = int(os.getenv("EMAIL_VERIFICATION_EXPIRE_MINUTES", "1440"))
        self.require_email_verification = _env_bool("REQUIRE_EMAIL_VERIFICATION", True)
        self.temporary_password_length = int(os.getenv("TEMPORARY_PASSWORD_LENGTH", "12"))
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./educare.db")
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
