"""
Configuration Management for the Optical Provisioning Controller
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # API Configuration
    API_HOST: str = Field(default="0.0.0.0", env="API_HOST")
    API_PORT: int = Field(default=8085, env="API_PORT")
    API_TITLE: str = "Optical Provisioning Controller"
    API_VERSION: str = "1.0.0"
    CONTROLLER_ID: str = Field(default="optical-controller", env="CONTROLLER_ID")

    # Path Computation Engine (GNPy) Configuration
    PCE_PROTOCOL: str = Field(default="http", env="PCE_PROTOCOL")
    PCE_HOST: str = Field(default="127.0.0.1", env="PCE_HOST")
    PCE_PORT: int = Field(default=8080, env="PCE_PORT")
    PCE_USERNAME: Optional[str] = Field(default=None, env="PCE_USERNAME")
    PCE_PASSWORD: Optional[str] = Field(default=None, env="PCE_PASSWORD")
    PCE_PATH: str = Field(default="/api/v1/path-computation", env="PCE_PATH")
    PCE_TIMEOUT_SEC: float = Field(default=30.0, env="PCE_TIMEOUT_SEC")
    PCE_TRX_TYPE: str = Field(default="Cassini", env="PCE_TRX_TYPE")

    # Link Database Configuration
    LINKDB_HOST: str = Field(default="link-db-redis", env="LINKDB_HOST")
    LINKDB_PORT: int = Field(default=6379, env="LINKDB_PORT")
    LINKDB_PASSWORD: Optional[str] = Field(default=None, env="LINKDB_PASSWORD")

    # Device Configuration
    DEVICE_SCHEME: str = Field(default="netconf:", env="DEVICE_SCHEME")
    ROADM_COMMON_PORT: int = Field(default=100, env="ROADM_COMMON_PORT")
    LINE_DEGREE_PORT_PREFIX: str = Field(default="E", env="LINE_DEGREE_PORT_PREFIX")
    ROADM_YANG_NAMESPACE: str = Field(
        default="http://czechlight.cesnet.cz/yang/czechlight-roadm-device",
        env="ROADM_YANG_NAMESPACE"
    )

    # Logging
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO, env="LOG_LEVEL")
    LOG_FILE: Optional[str] = Field(default=None, env="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
