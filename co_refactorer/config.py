"""
Configuration management for Co-Refactorer.

This module handles all configuration aspects including environment variables,
validation, and default settings.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from enum import Enum

from .errors import ConfigError


DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7


class LogLevel(Enum):
    """Available log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class ProviderFamily(Enum):
    """LLM provider families and the env var holding their API key."""
    OPENAI = "OPENAI_API_KEY"
    GEMINI = "GEMINI_API_KEY"
    ANTHROPIC = "ANTHROPIC_API_KEY"

    @property
    def env_var(self) -> str:
        return self.value


@dataclass
class GitHubConfig:
    """Configuration for GitHub integration."""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout: int = 30

    def __post_init__(self):
        """Validate GitHub configuration."""
        if self.timeout <= 0:
            raise ConfigError("GitHub timeout must be positive")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)


@dataclass
class LLMConfig:
    """Configuration for the LLM providers."""
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    max_tokens_extraction: int = 1000
    max_tokens_generation: int = 4096
    timeout: int = 120

    def __post_init__(self):
        """Validate LLM configuration."""
        if not self.model:
            raise ConfigError("Model name is required")

        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigError("Temperature must be between 0.0 and 2.0")

        if self.max_tokens_extraction <= 0 or self.max_tokens_generation <= 0:
            raise ConfigError("max_tokens must be positive")


@dataclass
class LoggingConfig:
    """Configuration for logging."""
    level: LogLevel = LogLevel.INFO
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_file_logging: bool = False
    log_file_path: str = "co_refactorer.log"
    max_log_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 3


@dataclass
class Config:
    """Main configuration class that combines all configuration sections."""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_environment(
        cls,
        model: str = DEFAULT_MODEL,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> 'Config':
        """Create configuration from environment variables.

        Model and temperature come from the command line; API keys, the
        GitHub token and logging settings come from the environment. A
        missing API key is not an error here, only for the provider that
        is actually selected (see api_key_for).
        """
        github_config = GitHubConfig(
            token=os.environ.get("GITHUB_TOKEN") or None,
            api_base_url=os.environ.get("GITHUB_API_URL", "https://api.github.com"),
            timeout=int(os.environ.get("GITHUB_TIMEOUT", "30")),
        )

        llm_config = LLMConfig(
            model=model,
            temperature=temperature,
            openai_api_key=os.environ.get(ProviderFamily.OPENAI.env_var) or None,
            gemini_api_key=os.environ.get(ProviderFamily.GEMINI.env_var) or None,
            anthropic_api_key=os.environ.get(ProviderFamily.ANTHROPIC.env_var) or None,
            timeout=int(os.environ.get("LLM_TIMEOUT", "120")),
        )

        # DEBUG=true wins over LOG_LEVEL
        if os.environ.get("DEBUG", "false").lower() == "true":
            log_level = LogLevel.DEBUG
        else:
            log_level_str = os.environ.get("LOG_LEVEL", "INFO").upper()
            log_level = LogLevel.INFO
            try:
                log_level = LogLevel(log_level_str)
            except ValueError:
                logging.warning(f"Invalid log level '{log_level_str}', using 'INFO'")

        logging_config = LoggingConfig(
            level=log_level,
            enable_file_logging=os.environ.get("ENABLE_FILE_LOGGING", "false").lower() == "true"
        )

        return cls(github=github_config, llm=llm_config, logging=logging_config)

    def api_key_for(self, family: ProviderFamily) -> str:
        """Get the API key of a provider family.

        Raises:
            ConfigError: If the corresponding environment variable is not set.
        """
        keys = {
            ProviderFamily.OPENAI: self.llm.openai_api_key,
            ProviderFamily.GEMINI: self.llm.gemini_api_key,
            ProviderFamily.ANTHROPIC: self.llm.anthropic_api_key,
        }
        api_key = keys.get(family)
        if not api_key:
            raise ConfigError(f"env var {family.env_var} is not defined")
        return api_key

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary without secrets."""
        return {
            "github": {
                "authenticated": self.github.is_authenticated,
                "api_base_url": self.github.api_base_url,
                "timeout": self.github.timeout,
            },
            "llm": {
                "model": self.llm.model,
                "temperature": self.llm.temperature,
                "max_tokens_extraction": self.llm.max_tokens_extraction,
                "max_tokens_generation": self.llm.max_tokens_generation,
            },
            "logging": {
                "level": self.logging.level.value,
                "enable_file_logging": self.logging.enable_file_logging,
            }
        }
