"""
NoteKeeper — Application Configuration
======================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Endpoint, bucket, region and identity-provider details come from the
       platform's provisioning step; they reach us as environment variables.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; checked again when the app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_SESSION_SECRET = "change-me-in-production"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for local development
    (local storage backend, no authentication gate). Deployments MUST set
    GRAPHQL_ENDPOINT, STORAGE_BUCKET, COGNITO_CLIENT_ID and SESSION_SECRET.
    """

    # ── GraphQL API ───────────────────────────────────────────────────────
    # What: The managed GraphQL endpoint holding the notes
    # Format: https://<id>.appsync-api.<region>.amazonaws.com/graphql
    graphql_endpoint: str = Field(
        default="http://localhost:20002/graphql",
        description="GraphQL endpoint URL for listNotes/createNote/deleteNote",
    )

    # What: How requests are authorized against the endpoint
    # API_KEY: static x-api-key header (development, no sign-in gate)
    # AMAZON_COGNITO_USER_POOLS: the signed-in user's access token
    graphql_auth_mode: str = Field(default="AMAZON_COGNITO_USER_POOLS")
    graphql_api_key: str = Field(default="")

    # What: Upper bound for one HTTP round trip to the GraphQL endpoint
    http_timeout_seconds: float = Field(default=30.0, gt=0, le=300)

    @field_validator("graphql_auth_mode")
    @classmethod
    def validate_auth_mode(cls, v: str) -> str:
        """Ensures the auth mode is one the gateway knows how to send."""
        valid = {"API_KEY", "AMAZON_COGNITO_USER_POOLS"}
        upper = v.upper()
        if upper not in valid:
            raise ValueError(f"Invalid graphql_auth_mode '{v}'. Must be one of: {valid}")
        return upper

    # ── AWS ───────────────────────────────────────────────────────────────
    aws_region: str = Field(default="us-east-1")

    # ── Object Storage ────────────────────────────────────────────────────
    # s3:    images in STORAGE_BUCKET, served through presigned URLs
    # local: images under STORAGE_ROOT, served by GET /files/{key}
    storage_backend: str = Field(default="local")
    storage_bucket: str = Field(default="")

    # What: Key prefix applied to every blob (the "public" access level)
    storage_prefix: str = Field(default="public/")
    storage_root: str = Field(default="./storage")

    # What: Lifetime of presigned GET URLs handed to the browser (seconds)
    presigned_url_expiry: int = Field(default=900, ge=60, le=604800)

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        valid = {"s3", "local"}
        lower = v.lower()
        if lower not in valid:
            raise ValueError(f"Invalid storage_backend '{v}'. Must be one of: {valid}")
        return lower

    # ── Authentication ────────────────────────────────────────────────────
    # What: Gate every page behind a Cognito sign-in
    # Off: every browser gets an anonymous session (pair with API_KEY mode)
    auth_enabled: bool = Field(default=False)
    # Format: <region>_<id>, e.g. eu-west-1_AbCdEf123; the region selects the Cognito endpoint
    cognito_user_pool_id: str = Field(default="")
    cognito_client_id: str = Field(default="")

    # What: Also revoke refresh tokens at the identity provider on sign-out
    global_sign_out: bool = Field(default=False)

    session_secret: str = Field(default=DEFAULT_SESSION_SECRET)
    session_cookie_name: str = Field(default="notekeeper_session")
    session_ttl_seconds: int = Field(default=28_800, ge=60, le=604_800)
    # What: Upper bound on live sessions; the least recently seen is evicted first
    session_max_sessions: int = Field(default=1_000, ge=1)
    session_cookie_secure: bool = Field(default=False)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:8000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that the provisioning-supplied settings are present.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises one ValueError listing them.
        """
        errors = []
        if not self.graphql_endpoint:
            errors.append("GRAPHQL_ENDPOINT is not set.")
        if self.graphql_auth_mode == "API_KEY" and not self.graphql_api_key:
            errors.append("GRAPHQL_AUTH_MODE is API_KEY but GRAPHQL_API_KEY is not set.")
        if self.storage_backend == "s3" and not self.storage_bucket:
            errors.append("STORAGE_BACKEND is s3 but STORAGE_BUCKET is not set.")
        if self.auth_enabled:
            if not self.cognito_client_id:
                errors.append("AUTH_ENABLED is true but COGNITO_CLIENT_ID is not set.")
            if self.cognito_user_pool_id and "_" not in self.cognito_user_pool_id:
                errors.append("COGNITO_USER_POOL_ID must look like <region>_<id>.")
            if self.session_secret == DEFAULT_SESSION_SECRET:
                errors.append("SESSION_SECRET still has its default value.")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance — imported throughout the application
settings = Settings()
