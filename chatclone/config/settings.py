"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "ChatGPT Clone"
    app_version: str = "1.0.0"
    debug: bool = True

    # Security
    secret_key: str = "your-super-secret-jwt-key"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    mock_token: str = "mock-token"  # development bypass, resolves to the mock user

    # Google sign-in
    google_client_id: str = "your-google-client-id"
    google_client_secret: str = "your-google-client-secret"
    google_redirect_uri: str = "http://localhost:3001/auth/google/callback"
    client_url: str = "http://localhost:5173"

    # LLM Provider settings
    llm_provider: str = "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    mock_stream_delay: float = 0.05  # seconds between mock fragments

    # Legacy key (still accepted)
    openai_api_key: Optional[str] = None

    # Storage: in-memory store unless a directory is configured
    chat_storage_path: Optional[str] = None

    # Client
    server_url: str = "http://localhost:3001"
    client_typing_delay: float = 0.03

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/chatclone.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log all LLM calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False

    @property
    def storage_type(self) -> str:
        return "local" if self.chat_storage_path else "memory"

    @property
    def effective_llm_api_key(self) -> Optional[str]:
        return self.llm_api_key or self.openai_api_key


settings = Settings()
