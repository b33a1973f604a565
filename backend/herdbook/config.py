from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///herdbook.db"
    session_ttl_hours: int = 24
    session_sweep_interval_minutes: int = 60  # 0 disables the background purge
    bcrypt_rounds: int = 12
    password_min_length: int = 8
    password_max_length: int = 128
    bootstrap_admin_email: str = "admin@herdbook.local"
    bootstrap_admin_password: str = ""
    cors_origins: str = "*"
    log_level: str = "INFO"

    class Config:
        env_prefix = "HERDBOOK_"


settings = Settings()
