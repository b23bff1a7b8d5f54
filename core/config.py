"""
配置文件 - 客户端配置管理
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


VERSION = "1.0.0"


class CloudFilesSettings(BaseModel):
    # 认证
    username: Optional[str] = None
    api_key: Optional[str] = None
    auth_url: str = "https://auth.api.rackspacecloud.com/v1.0"
    servicenet: bool = False

    # HTTP
    timeout: float = 15.0
    verify_ssl: bool = True
    user_agent: str = f"python-cloudfiles-forge/{VERSION}"
    chunk_size: int = 64 * 1024

    # Retry policy (transport level, payload-free requests only)
    max_retries: int = 0
    retry_delay: float = 1.0
    reauthenticate: bool = True

    # CDN
    default_cdn_ttl: int = 86400

    @field_validator("chunk_size")
    @classmethod
    def _positive_chunk_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("chunk_size must be positive")
        return v

    @field_validator("max_retries")
    @classmethod
    def _non_negative_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be non-negative")
        return v


class Settings(BaseSettings):
    """项目配置"""

    # 基础配置
    PROJECT_NAME: str = Field(default="Cloud Files Client")
    VERSION: str = Field(default=VERSION)
    DEBUG: bool = Field(default=True)
    LOG_LEVEL: Optional[str] = Field(default=None, description="覆盖根日志级别，例如 WARNING")

    # 分组配置：Cloud Files 采用嵌套模型，环境变量形如 CLOUDFILES__USERNAME
    cloudfiles: CloudFilesSettings = Field(default_factory=CloudFilesSettings)

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _normalize_log_level(cls, v):
        """允许小写日志级别。"""
        if isinstance(v, str):
            s = v.strip().upper()
            return s or None
        return v


settings = Settings()
