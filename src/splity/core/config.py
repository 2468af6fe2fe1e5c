"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Constructed once per process (see get_settings) and handed to every
    component that needs it. Nothing below the API layer reads the environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=5, validation_alias="DB_MAX_OVERFLOW")

    # Cognito user pool that issues access/id tokens
    cognito_region: str = Field(default="eu-west-2", validation_alias="AWS_REGION")
    cognito_user_pool_id: str = Field(default="", validation_alias="COGNITO_USER_POOL_ID")
    cognito_client_id: str = Field(default="", validation_alias="COGNITO_CLIENT_ID")
    # Overrides the issuer derived from the user pool (other OIDC providers, tests)
    jwt_issuer_override: str = Field(default="", validation_alias="JWT_ISSUER")
    jwks_cache_ttl_seconds: int = Field(default=3600, validation_alias="JWKS_CACHE_TTL_SECONDS")
    jwt_leeway_seconds: int = Field(default=300, validation_alias="JWT_LEEWAY_SECONDS")

    # CORS
    allowed_origins: str = Field(default="*", validation_alias="ALLOWED_ORIGINS")

    # Receipt storage (S3)
    aws_bucket_name: str = Field(default="", validation_alias="AWS_BUCKET_NAME")
    aws_bucket_region: str = Field(default="eu-west-2", validation_alias="AWS_BUCKET_REGION")
    receipt_key_prefix: str = Field(default="splity", validation_alias="RECEIPT_KEY_PREFIX")

    # Receipt OCR (Azure Document Intelligence)
    document_intelligence_endpoint: str = Field(
        default="", validation_alias="DOCUMENT_INTELLIGENCE_ENDPOINT",
    )
    document_intelligence_api_key: str = Field(
        default="", validation_alias="DOCUMENT_INTELLIGENCE_API_KEY",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def jwt_issuer(self) -> str:
        """Get the token issuer URL (Cognito user pool unless overridden)."""
        if self.jwt_issuer_override:
            return self.jwt_issuer_override.rstrip("/")
        return (
            f"https://cognito-idp.{self.cognito_region}.amazonaws.com/"
            f"{self.cognito_user_pool_id}"
        )

    @property
    def jwks_url(self) -> str:
        """Get the JWKS URL for fetching the issuer's public keys."""
        return f"{self.jwt_issuer}/.well-known/jwks.json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
