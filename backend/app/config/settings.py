"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "Stack Navigator Sessions"
    app_version: str = "1.0.0"
    debug: bool = True

    # Session store
    session_ttl_seconds: int = 30 * 60  # idle time before a session expires
    session_max_total: int = 10000  # concurrent sessions held in memory
    session_rate_limit_max: int = 10  # creations per IP per window
    session_rate_limit_window_seconds: int = 60 * 60
    session_max_messages: int = 100
    session_trim_messages_to: int = 80
    session_cleanup_interval_seconds: int = 5 * 60  # 0 disables the sweep task

    # Client address resolution
    trust_proxy_headers: bool = True  # honour X-Forwarded-For / X-Real-IP

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/stack_navigator.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
