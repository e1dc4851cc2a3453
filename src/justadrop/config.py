from typing import Literal

from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration loaded from environment variables.

    Secret values (Resend API key, x-auth-id) are not part of the config; they are
    resolved through the secret provider selected by `secrets_backend`.
    """

    database_url: str
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 3001
    debug: bool = False
    cors_origins: list[str] = []
    cookie_secure: bool = False  # Set to True in production with HTTPS

    otp_ttl_minutes: int = 10
    otp_code_length: int = 6
    session_ttl_days: int = 30

    email_from: str = "noreply@justadrop.xyz"
    email_worker_enabled: bool = True
    email_poll_interval_seconds: float = 5.0
    email_max_attempts: int = 5
    email_retry_base_seconds: float = 30.0
    email_claim_lease_seconds: float = 60.0  # How long a delivery pass owns a claimed message

    secrets_backend: Literal["env", "file", "vault"] = "env"
    secrets_dir: str = "/run/secrets"  # Directory with one file per secret (file backend)
    vault_url: str | None = None  # e.g. https://vault.internal:8200 (vault backend)
    vault_token: str | None = None
    vault_secret_path: str = "secret/data/justadrop"  # KV v2 path, mount included

    model_config = {
        "env_file": [".env"],
        "env_prefix": "JUSTADROP_",
        "extra": "ignore",
    }
