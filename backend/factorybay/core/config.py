"""
Centralized application configuration

Values come from environment variables or the backend .env file.

Author: TM3
Date: 2025-10-17
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings"""

    # API Settings
    API_TITLE: str = "Factory Bay API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Storefront and back office API for Factory Bay"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Neo4j
    NEO4J_URI: str = "neo4j://localhost:7687"
    NEO4J_USER: str = "neo4j"
    NEO4J_PASSWORD: str = "password"
    NEO4J_DATABASE: str = "neo4j"
    NEO4J_MAX_POOL_SIZE: int = 50
    NEO4J_MAX_CONNECTION_LIFETIME: int = 3 * 60 * 60
    NEO4J_CONNECTION_ACQUISITION_TIMEOUT: int = 2 * 60

    # Auth
    JWT_SECRET: str = "default-secret-change-this"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    AUTH_COOKIE_NAME: str = "auth_token"
    COOKIE_SECURE: bool = False

    # Object storage (MinIO, S3 compatible)
    MINIO_ENDPOINT: str = "localhost"
    MINIO_PORT: int = 9000
    MINIO_USE_SSL: bool = False
    MINIO_ACCESS_KEY: str = "factorybay"
    MINIO_SECRET_KEY: str = "factorybay123"
    MINIO_BUCKET_NAME: str = "product-images"
    MINIO_PUBLIC_URL: str = "http://localhost:9000"
    MINIO_REGION: str = "us-east-1"

    # Local uploads (payment proofs)
    UPLOAD_DIR: str = "uploads"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_minio_endpoint_url(self) -> str:
        """Full endpoint URL for the S3 client"""
        scheme = "https" if self.MINIO_USE_SSL else "http"
        return f"{scheme}://{self.MINIO_ENDPOINT}:{self.MINIO_PORT}"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
