from typing import Dict, Tuple, Type
from ai_providers import AIProvider
from ai_providers.anthropic_provider import AnthropicProvider
from ai_providers.gemini_provider import GeminiProvider
from ai_providers.openai_provider import OpenAIProvider
from co_refactorer.config import Config
from co_refactorer.errors import ConfigError

class AIProviderFactory:
    """Factory class for creating and managing AI providers."""

    _providers: Dict[str, Type[AIProvider]] = {
        'openai': OpenAIProvider,
        'gemini': GeminiProvider,
        'anthropic': AnthropicProvider,
    }

    # Checked in order, first match wins
    _model_prefixes: Tuple[Tuple[str, str], ...] = (
        ('gpt-', 'openai'),
        ('chatgpt-', 'openai'),
        ('o1', 'openai'),
        ('o3', 'openai'),
        ('o4', 'openai'),
        ('gemini-', 'gemini'),
        ('claude-', 'anthropic'),
    )

    @classmethod
    def provider_name_for_model(cls, model: str) -> str:
        """Get the provider name serving the given model.

        Raises:
            ConfigError: If no provider serves the model
        """
        for prefix, provider_name in cls._model_prefixes:
            if model.lower().startswith(prefix):
                return provider_name
        supported = [prefix for prefix, _ in cls._model_prefixes]
        raise ConfigError(f"Unsupported model: {model}. Supported model prefixes: {supported}")

    @classmethod
    def get_provider(cls, provider_name: str, config: Config, prompt_template: str) -> AIProvider:
        """Get a configured instance of the specified AI provider.

        Args:
            provider_name (str): Name of the provider to use ('openai', 'gemini', 'anthropic')
            config (Config): Application configuration holding the API keys
            prompt_template (str): Template rendered for the second round trip

        Returns:
            AIProvider: Configured instance of the specified provider

        Raises:
            ConfigError: If the provider is not supported or its API key is missing
        """
        provider_class = cls._providers.get(provider_name.lower())
        if not provider_class:
            supported = list(cls._providers.keys())
            raise ConfigError(f"Unsupported AI provider: {provider_name}. Supported providers: {supported}")

        api_key = config.api_key_for(provider_class.family)
        provider = provider_class(prompt_template)
        provider.configure(api_key, config.llm)
        return provider

    @classmethod
    def for_model(cls, config: Config, prompt_template: str) -> AIProvider:
        """Get a configured provider for the model named in the configuration."""
        return cls.get_provider(cls.provider_name_for_model(config.llm.model), config, prompt_template)

    @classmethod
    def register_provider(cls, name: str, provider_class: Type[AIProvider], *model_prefixes: str) -> None:
        """Register a new AI provider.

        Args:
            name (str): Name to register the provider under
            provider_class (Type[AIProvider]): The provider class to register
            model_prefixes (str): Model name prefixes served by the provider
        """
        cls._providers[name.lower()] = provider_class
        cls._model_prefixes = cls._model_prefixes + tuple(
            (prefix.lower(), name.lower()) for prefix in model_prefixes
        )
