"""Cloud Files client configuration model."""
from typing import Optional
from pydantic import BaseModel, Field

from .constants import DEFAULT_CDN_TTL


class CloudFilesConfig(BaseModel):
    """Client configuration model."""
    # Credentials
    username: Optional[str] = None
    api_key: Optional[str] = None
    auth_url: str = "https://auth.api.rackspacecloud.com/v1.0"
    servicenet: bool = False  # Route storage traffic over the internal network

    # HTTP settings
    timeout: float = 15.0
    verify_ssl: bool = True
    user_agent: Optional[str] = None
    chunk_size: int = Field(default=64 * 1024, gt=0)

    # Retry settings
    max_retries: int = Field(default=0, ge=0)  # Transport level, payload-free requests only
    retry_delay: float = 1.0
    reauthenticate: bool = True  # Re-authenticate once on 401

    # CDN
    default_cdn_ttl: int = DEFAULT_CDN_TTL

    debug: bool = False
