"""
Gateway Configuration
=====================

Loads all settings for the POAP gateway from environment variables
(or a .env file in the project root) with sensible defaults.
"""

import logging
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_JWT_SECRET = "change-me-in-production"

# Solana network explorers (cluster query param)
EXPLORER_BASE_URL = "https://explorer.solana.com"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # ============================================================
    # Application
    # ============================================================
    APP_ENV: str = Field(default="development", description="Application environment")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    DEBUG: bool = Field(default=False, description="Debug mode (SQL echo)")
    HOST: str = Field(default="0.0.0.0", description="Bind host")
    PORT: int = Field(default=3000, description="Bind port")
    BUILD_ID: str = Field(default="dev-local", description="Build identifier")
    PUBLIC_BASE_URL: str = Field(default="http://localhost:3000", description="Public URL of this API")

    # ============================================================
    # Database
    # ============================================================
    DATABASE_URL: str = Field(default="sqlite:///./poap.db", description="SQLAlchemy database URL")

    # ============================================================
    # Authentication
    # ============================================================
    JWT_SECRET: str = Field(default=DEFAULT_JWT_SECRET, description="HMAC secret for organizer tokens")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT signing algorithm")
    JWT_EXPIRE_HOURS: int = Field(default=24, description="Token lifetime in hours")

    # ============================================================
    # Solana / Relayer
    # ============================================================
    SOLANA_RPC_URL: str = Field(default="https://api.devnet.solana.com", description="Solana JSON-RPC endpoint")
    SOLANA_NETWORK: str = Field(default="devnet", description="Cluster name (devnet, testnet, mainnet-beta)")
    RELAYER_SECRET_KEY: Optional[str] = Field(default=None, description="Relayer keypair secret (base58)")
    MIN_RELAYER_BALANCE_LAMPORTS: int = Field(default=10_000_000, description="Refuse to mint below this balance")
    DEFAULT_METADATA_URI: str = Field(
        default="https://raw.githubusercontent.com/solana-developers/solana-cookbook/main/assets/nft-placeholder.json",
        description="Metadata JSON used when a campaign has none",
    )
    DEFAULT_NFT_SYMBOL: str = Field(default="POAP", description="Token symbol for minted POAPs")
    LEGACY_NFT_NAME: str = Field(default="Gasless Demo NFT", description="Name used by the legacy demo mint")

    # ============================================================
    # Storage
    # ============================================================
    STORAGE_BACKEND: str = Field(default="local", description="local or s3")
    UPLOAD_DIR: str = Field(default="uploads", description="Directory for locally stored images")
    MAX_IMAGE_BYTES: int = Field(default=5 * 1024 * 1024, description="Max upload size (5MB)")
    AWS_ACCESS_KEY_ID: Optional[str] = Field(default=None, description="AWS access key")
    AWS_SECRET_ACCESS_KEY: Optional[str] = Field(default=None, description="AWS secret key")
    AWS_S3_BUCKET: str = Field(default="poap-campaign-images", description="S3 bucket for images")
    AWS_S3_REGION: str = Field(default="us-east-2", description="S3 region")

    # ============================================================
    # Security
    # ============================================================
    RATE_LIMIT_ENABLED: bool = Field(default=True, description="Enable per-IP rate limiting")
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=15 * 60, description="Rate limit window (15 minutes)")
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=100, description="Requests per window for /api/*")
    AUTH_RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, description="Login/register attempts per window")
    SIGNATURE_TOLERANCE_SECONDS: int = Field(default=120, description="Signed claim timestamp tolerance (±2 minutes)")
    NONCE_EXPIRY_SECONDS: int = Field(default=300, description="Signed claim nonce memory (5 minutes)")
    CORS_ALLOWED_ORIGINS: List[str] = Field(default=["*"], description="Allowed CORS origins")

    def validate_settings(self) -> None:
        """Validate critical settings."""
        if self.STORAGE_BACKEND not in ("local", "s3"):
            raise ValueError(f"STORAGE_BACKEND must be 'local' or 's3', got {self.STORAGE_BACKEND!r}")

        if self.STORAGE_BACKEND == "s3" and not (self.AWS_ACCESS_KEY_ID and self.AWS_SECRET_ACCESS_KEY):
            raise ValueError("AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required for s3 storage")

        if self.JWT_SECRET == DEFAULT_JWT_SECRET:
            if self.APP_ENV == "production":
                raise ValueError("JWT_SECRET must be set in production")
            logger.warning("⚠️  JWT_SECRET is using the development default")

        if not self.RELAYER_SECRET_KEY:
            logger.warning("⚠️  RELAYER_SECRET_KEY not set - claiming endpoints will be unavailable")

    @property
    def explorer_cluster_suffix(self) -> str:
        if self.SOLANA_NETWORK in ("mainnet", "mainnet-beta"):
            return ""
        return f"?cluster={self.SOLANA_NETWORK}"


def print_config_summary(config: "Settings") -> None:
    """
    Prints a summary of the configuration (for debugging).
    NEVER prints secrets!
    """
    print("=" * 60)
    print("POAP Gateway Configuration Summary")
    print("=" * 60)
    print(f"Environment: {config.APP_ENV}")
    print(f"Build ID: {config.BUILD_ID}")
    print(f"Database: {config.DATABASE_URL.split('@')[-1]}")
    print(f"Solana: {config.SOLANA_NETWORK} ({config.SOLANA_RPC_URL})")
    print(f"Relayer: {'Configured' if config.RELAYER_SECRET_KEY else 'NOT configured'}")
    print(f"Storage: {config.STORAGE_BACKEND}")
    print(f"Rate limit: {config.RATE_LIMIT_MAX_REQUESTS}/{config.RATE_LIMIT_WINDOW_SECONDS}s "
          f"(auth: {config.AUTH_RATE_LIMIT_MAX_REQUESTS})")
    print("=" * 60)


# Global settings instance
settings = Settings()

# Validate settings on import
try:
    settings.validate_settings()
except ValueError as e:
    logger.warning(f"Configuration validation warning: {e}")
