"""
Configuration management for the Rule Content Service
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    """HTTP server configuration"""
    host: str = Field(default="0.0.0.0", description="Listen address")
    port: int = Field(default=8080, ge=1, le=65535, description="Listen port")
    api_prefix: str = Field(default="/api/v1/", description="Prefix of every endpoint")
    api_spec_file: str = Field(default="openapi.json", description="OpenAPI specification served by the API")
    debug: bool = Field(default=False)

    @field_validator("host")
    @classmethod
    def validate_host(cls, v):
        """Validate host address"""
        if not v:
            raise ValueError("Server host cannot be empty")

        if v not in ["0.0.0.0", "127.0.0.1", "localhost"] and not re.match(r"^\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}$", v):
            if not re.match(r"^[a-zA-Z0-9.-]+$", v):
                raise ValueError("Host must be a valid IP address, domain name, or 'localhost'")

        return v

    @field_validator("api_prefix")
    @classmethod
    def validate_api_prefix(cls, v):
        """API prefix must start and end with a slash"""
        if not v.startswith("/"):
            raise ValueError("API prefix must start with '/'")
        if not v.endswith("/"):
            v = v + "/"
        return v

    @field_validator("api_spec_file")
    @classmethod
    def validate_api_spec_file(cls, v):
        if not v or not v.strip():
            raise ValueError("API spec file path cannot be empty")
        if not os.path.basename(v):
            raise ValueError("API spec file path must name a file")
        return v


class ContentConfig(BaseModel):
    """Location of the rule content served by the service"""
    path: str = Field(default="content/rules", description="Directory holding the rule definitions")
    groups_path: str = Field(default="content/groups_config.yaml", description="YAML file with group definitions")

    @field_validator("path", "groups_path")
    @classmethod
    def validate_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Content paths cannot be empty")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = Field(default="INFO")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file: Optional[str] = Field(default=None)
    max_bytes: int = Field(default=10485760, ge=1024, le=1073741824)  # 1KB to 1GB
    backup_count: int = Field(default=5, ge=0, le=50)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        """Validate logging level"""
        allowed_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed_levels:
            raise ValueError(f"Log level must be one of: {allowed_levels}")
        return v.upper()


class Config(BaseSettings):
    """Main configuration class"""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_SERVICE_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development")
    debug: bool = Field(default=False)

    # Component configurations
    server: ServerConfig = Field(default_factory=ServerConfig)
    content: ContentConfig = Field(default_factory=ContentConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Application settings
    app_name: str = Field(default="Rule Content Service")
    app_version: str = Field(default="1.0.0")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting"""
        allowed = ["development", "testing", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    def validate_startup(self) -> List[str]:
        """
        Check that the configured files exist and the settings make sense
        for the environment.

        Returns:
            List of messages prefixed with their severity
        """
        issues = []

        if self.environment == "production":
            if self.debug or self.server.debug:
                issues.append("WARNING: Debug mode should be disabled in production")

        if not Path(self.content.path).is_dir():
            issues.append(f"ERROR: Rule content directory not found: {self.content.path}")

        if not Path(self.content.groups_path).is_file():
            issues.append(f"ERROR: Groups configuration file not found: {self.content.groups_path}")

        # The spec file is served on request; a missing one only yields 404s
        if not Path(self.server.api_spec_file).is_file():
            issues.append(f"WARNING: OpenAPI spec file not found: {self.server.api_spec_file}")

        if self.logging.file:
            try:
                log_path = Path(self.logging.file)
                log_path.parent.mkdir(parents=True, exist_ok=True)
                test_file = log_path.parent / ".write_test"
                test_file.touch()
                test_file.unlink()
            except OSError:
                issues.append(f"ERROR: Cannot write to log file location: {self.logging.file}")

        return issues

    def validate_and_fail_on_errors(self) -> None:
        """Validate configuration and raise exception if critical errors found"""
        issues = self.validate_startup()

        errors = [issue for issue in issues if issue.startswith("ERROR") or issue.startswith("CRITICAL")]

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(errors)
            raise ValueError(error_msg)

    def get_validation_summary(self) -> Dict[str, List[str]]:
        """Get validation summary categorized by severity"""
        issues = self.validate_startup()

        return {
            "critical": [issue for issue in issues if issue.startswith("CRITICAL")],
            "errors": [issue for issue in issues if issue.startswith("ERROR")],
            "warnings": [issue for issue in issues if issue.startswith("WARNING")],
            "info": [issue for issue in issues if issue.startswith("INFO")],
        }

    @classmethod
    def from_file(cls, config_path: str) -> "Config":
        """Load configuration from YAML file"""
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary"""
        return self.model_dump()

    def save_to_file(self, config_path: str) -> None:
        """Save configuration to YAML file"""
        config_file = Path(config_path)
        config_file.parent.mkdir(parents=True, exist_ok=True)

        with open(config_file, "w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


# Global configuration instance
_config: Optional[Config] = None


def get_config(validate_startup: bool = False) -> Config:
    """
    Get the global configuration instance

    Args:
        validate_startup: If True, run startup validation and fail on errors
    """
    global _config
    if _config is None:
        _config = Config()

        if validate_startup:
            _config.validate_and_fail_on_errors()

    return _config


def set_config(config: Optional[Config]) -> None:
    """Set the global configuration instance"""
    global _config
    _config = config


def load_config(config_path: Optional[str] = None, validate_startup: bool = False) -> Config:
    """
    Load configuration from file or environment

    Args:
        config_path: Path to configuration file (optional)
        validate_startup: If True, run startup validation and fail on errors
    """
    if config_path:
        config = Config.from_file(config_path)
    else:
        config = Config()

    if validate_startup:
        config.validate_and_fail_on_errors()

    set_config(config)
    return config


# Default configuration paths
DEFAULT_CONFIG_PATHS = [
    "config/config.yaml",
    "config.yaml",
    "/etc/rule-content-service/config.yaml",
    os.path.expanduser("~/.rule-content-service/config.yaml"),
]


def auto_load_config(validate_startup: bool = False) -> Config:
    """
    Auto-load configuration from default paths

    Args:
        validate_startup: If True, run startup validation and fail on errors
    """
    for path in DEFAULT_CONFIG_PATHS:
        if os.path.exists(path):
            return load_config(path, validate_startup=validate_startup)

    return load_config(validate_startup=validate_startup)


def ensure_valid_config() -> Config:
    """Ensure configuration is valid or raise exception"""
    config = get_config()
    config.validate_and_fail_on_errors()
    return config
