"""
LLM Provider Factory
Provides a unified interface for the LLM providers used to judge answers
(Moonshot, OpenAI, Mistral). The provider is selected via environment
configuration so it can be swapped without code changes.
"""

import os
import logging
from typing import Dict, List, Optional, Any
from abc import ABC, abstractmethod
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()


class LLMProvider(ABC):
    """Abstract base class for LLM providers"""

    @abstractmethod
    def create_chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 200,
        response_format: Optional[Dict] = None,
        timeout: float = 30.0,
        **kwargs
    ) -> Dict[str, Any]:
        """
        Create a chat completion using the provider's API.

        Returns a normalized response dictionary with:
        - content: str (the response text)
        - model: str (model used)
        - usage: dict (token usage stats)
        - raw_response: original API response object
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """
        Return provider name.

        Returns:
            Provider name ('openai', 'moonshot', 'mistral')
        """
        pass


class OpenAIProvider(LLMProvider):
    """OpenAI API provider implementation"""

    API_KEY_ENV = "OPENAI_API_KEY"
    BASE_URL: Optional[str] = None

    def __init__(self, api_key: Optional[str] = None):
        """Initialize provider with API key"""
        from openai import OpenAI

        self.api_key = (api_key or os.getenv(self.API_KEY_ENV) or "").strip()
        if not self.api_key:
            raise ValueError(f"{self.API_KEY_ENV} not found in environment variables")

        if self.BASE_URL:
            self.client = OpenAI(api_key=self.api_key, base_url=self.BASE_URL)
        else:
            self.client = OpenAI(api_key=self.api_key)
        logger.info(f"Initialized {self.get_provider_name()} provider")

    def create_chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 200,
        response_format: Optional[Dict] = None,
        timeout: float = 30.0,
        **kwargs
    ) -> Dict[str, Any]:
        """Create chat completion using an OpenAI-compatible API"""

        # Build API parameters
        api_params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "timeout": timeout,
            **kwargs
        }

        if response_format:
            api_params["response_format"] = response_format

        response = self.client.chat.completions.create(**api_params)

        usage = response.usage
        return {
            "content": response.choices[0].message.content,
            "model": response.model,
            "usage": {
                "prompt_tokens": usage.prompt_tokens if usage else 0,
                "completion_tokens": usage.completion_tokens if usage else 0,
                "total_tokens": usage.total_tokens if usage else 0,
            },
            "raw_response": response
        }

    def get_provider_name(self) -> str:
        return "openai"


class MoonshotProvider(OpenAIProvider):
    """Moonshot AI (Kimi) provider - the API is OpenAI-compatible"""

    API_KEY_ENV = "MOONSHOT_API_KEY"
    BASE_URL = "https://api.moonshot.cn/v1"

    def get_provider_name(self) -> str:
        return "moonshot"


class MistralProvider(LLMProvider):
    """Mistral AI provider implementation"""

    # Mistral supports JSON mode but not full JSON schema yet
    JSON_MODE_MODELS = {
        "mistral-large-latest",
        "mistral-small-latest",
        "mistral-medium-latest",
    }

    def __init__(self, api_key: Optional[str] = None):
        """Initialize Mistral provider with API key"""
        from mistralai import Mistral

        self.api_key = api_key or os.getenv("MISTRAL_API_KEY")
        if not self.api_key:
            raise ValueError("MISTRAL_API_KEY not found in environment variables")

        self.client = Mistral(api_key=self.api_key)
        logger.info("Initialized Mistral provider")

    def create_chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 200,
        response_format: Optional[Dict] = None,
        timeout: float = 30.0,
        **kwargs
    ) -> Dict[str, Any]:
        """Create chat completion using Mistral API"""

        api_params = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
            # Mistral SDK expects the timeout in milliseconds
            "timeout_ms": int(timeout * 1000),
            **kwargs
        }

        if response_format and response_format.get("type") == "json_object":
            if model in self.JSON_MODE_MODELS:
                api_params["response_format"] = {"type": "json_object"}
            else:
                logger.warning(f"Model {model} may not support JSON mode")

        # Mistral SDK uses chat.complete()
        response = self.client.chat.complete(**api_params)

        return {
            "content": response.choices[0].message.content,
            "model": response.model,
            "usage": {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            },
            "raw_response": response
        }

    def get_provider_name(self) -> str:
        return "mistral"


class LLMProviderFactory:
    """Factory class for creating LLM provider instances"""

    PROVIDERS = {
        "moonshot": MoonshotProvider,
        "openai": OpenAIProvider,
        "mistral": MistralProvider,
    }

    # Default models per provider
    DEFAULT_MODELS = {
        "moonshot": "kimi-k2-0711-preview",
        "openai": "gpt-4o-mini",
        "mistral": "mistral-small-latest",
    }

    # Environment overrides for the model, per provider
    MODEL_ENV_VARS = {
        "moonshot": "MOONSHOT_MODEL",
        "openai": "OPENAI_MODEL",
        "mistral": "MISTRAL_MODEL",
    }

    @staticmethod
    def _resolve_name(provider_name: Optional[str]) -> str:
        if provider_name is None:
            provider_name = os.getenv("LLM_PROVIDER", "moonshot")
        return provider_name.lower()

    @staticmethod
    def create_provider(provider_name: Optional[str] = None) -> LLMProvider:
        """
        Create an LLM provider instance based on configuration.

        Args:
            provider_name: Provider to use ("moonshot", "openai", "mistral").
                         If None, reads from LLM_PROVIDER env var (default: "moonshot")

        Returns:
            LLMProvider instance

        Raises:
            ValueError: If provider is not supported or API key is missing
        """
        provider_name = LLMProviderFactory._resolve_name(provider_name)
        logger.info(f"Creating LLM provider: {provider_name}")

        provider_class = LLMProviderFactory.PROVIDERS.get(provider_name)
        if provider_class is None:
            raise ValueError(
                f"Unsupported LLM provider: {provider_name}. "
                f"Supported providers: {', '.join(LLMProviderFactory.PROVIDERS)}"
            )
        return provider_class()

    @staticmethod
    def get_default_model(provider_name: Optional[str] = None) -> str:
        """
        Get the default model for a provider.

        The provider-specific environment variable (e.g. MOONSHOT_MODEL)
        overrides the built-in default.
        """
        provider_name = LLMProviderFactory._resolve_name(provider_name)

        env_var = LLMProviderFactory.MODEL_ENV_VARS.get(provider_name)
        if env_var and os.getenv(env_var):
            return os.getenv(env_var)
        return LLMProviderFactory.DEFAULT_MODELS.get(provider_name, "kimi-k2-0711-preview")


def get_llm_client(provider_name: Optional[str] = None) -> LLMProvider:
    """
    Get an LLM provider client instance.

    Convenience wrapper around LLMProviderFactory.create_provider().
    """
    return LLMProviderFactory.create_provider(provider_name)
