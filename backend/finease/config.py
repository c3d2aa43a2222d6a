"""
FinEase Backend — Application Configuration
=============================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before app starts.

The variable names (DB_USERNAME, DB_PASSWORD, FIREBASE_SERVICE_ACCOUNT_BASE64,
PORT) match the ones already set on existing deployments.
"""

from typing import List
from urllib.parse import quote_plus

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Production deployments MUST provide the MongoDB credentials and the
    Firebase service account.
    """

    # ── MongoDB ───────────────────────────────────────────────────────────
    # What: Full connection string. When set, the credential parts below are ignored.
    mongodb_uri: str = Field(default="", description="Full MongoDB connection URI")

    # What: Atlas credentials used to build the SRV connection string
    db_username: str = Field(default="")
    db_password: str = Field(default="")
    mongo_cluster_host: str = Field(default="cluster0.ke7g9qv.mongodb.net")

    mongo_database: str = Field(default="financeDB")
    mongo_collection: str = Field(default="main-data")

    # What: Connect (with retries) during startup instead of on the first request
    # Trade-off: Faster first request, but slower cold start on serverless hosts
    mongo_connect_on_startup: bool = Field(default=False)

    # What: Client-side bound on every store operation, including server selection
    store_timeout_seconds: float = Field(default=10.0, gt=0, le=120)

    # ── Firebase ──────────────────────────────────────────────────────────
    # What: Base64-encoded service account JSON for the Firebase Admin SDK
    # Why base64: Serverless hosts only accept single-line env values
    firebase_service_account_base64: str = Field(default="")

    # What: Bound on a single ID token verification (includes certificate fetch)
    identity_timeout_seconds: float = Field(default=10.0, gt=0, le=60)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs, or "*" for any origin
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    port: int = Field(default=5000, ge=1, le=65535)

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

    # ── Startup Retry ─────────────────────────────────────────────────────
    # What: Tenacity settings for the optional startup connection warm-up
    # Requests themselves are never retried.
    startup_retry_attempts: int = Field(default=3, ge=1, le=10)
    startup_retry_min_wait: int = Field(default=1, ge=1, le=30)
    startup_retry_max_wait: int = Field(default=8, ge=1, le=120)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @property
    def mongo_connection_uri(self) -> str:
        """
        What: The URI handed to the MongoDB driver.
        How:  MONGODB_URI wins; otherwise an Atlas SRV string is assembled
              from DB_USERNAME / DB_PASSWORD / MONGO_CLUSTER_HOST.
        Credentials are URL-quoted so passwords containing '@' or ':' work.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        user = quote_plus(self.db_username)
        password = quote_plus(self.db_password)
        return (
            f"mongodb+srv://{user}:{password}@{self.mongo_cluster_host}/"
            "?retryWrites=true&w=majority"
        )

    @property
    def store_timeout_ms(self) -> int:
        return int(self.store_timeout_seconds * 1000)

    def validate_required_for_production(self) -> None:
        """
        What:  Validates that critical settings are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every problem and raises a single ValueError.
        """
        errors = []
        if not self.mongodb_uri and not (self.db_username and self.db_password):
            errors.append("MONGODB_URI or DB_USERNAME/DB_PASSWORD must be set.")
        if not self.firebase_service_account_base64:
            errors.append(
                "FIREBASE_SERVICE_ACCOUNT_BASE64 is not set. "
                "Encode the service account JSON with `base64 -w0 serviceAccount.json`."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
