"""
Azure OpenAI client factories

Clients authenticate with the API key when one is configured, otherwise with
Microsoft Entra ID through DefaultAzureCredential (Azure CLI login locally,
Managed Identity in Azure). The identity needs the
"Cognitive Services OpenAI User" role on the resource.

The async client takes its tokens from azure.identity.aio so that token
refreshes do not block the event loop.
"""

from azure.identity import DefaultAzureCredential, get_bearer_token_provider
from azure.identity.aio import DefaultAzureCredential as AsyncDefaultAzureCredential
from azure.identity.aio import get_bearer_token_provider as get_async_bearer_token_provider
from openai import AsyncAzureOpenAI, AzureOpenAI

from recipe_search.config import OpenAIConfig

COGNITIVE_SERVICES_SCOPE = "https://cognitiveservices.azure.com/.default"


def _client_kwargs(config: OpenAIConfig) -> dict:
    return {"azure_endpoint": config.endpoint, "api_version": config.api_version}


def create_openai_client(config: OpenAIConfig) -> AzureOpenAI:
    """Sync client, used by the chat loop."""
    kwargs = _client_kwargs(config)
    if config.api_key:
        kwargs["api_key"] = config.api_key
    else:
        kwargs["azure_ad_token_provider"] = get_bearer_token_provider(
            DefaultAzureCredential(), COGNITIVE_SERVICES_SCOPE
        )
    return AzureOpenAI(**kwargs)


def create_async_openai_client(config: OpenAIConfig, credential=None) -> AsyncAzureOpenAI:
    """
    Async client, used for embeddings alongside the async Cosmos client.

    Args:
        config: Endpoint, deployments and optional API key
        credential: azure.identity.aio credential used when no API key is set.
            The caller owns it and must close it; a new
            DefaultAzureCredential is created when omitted.
    """
    kwargs = _client_kwargs(config)
    if config.api_key:
        kwargs["api_key"] = config.api_key
    else:
        kwargs["azure_ad_token_provider"] = get_async_bearer_token_provider(
            credential or AsyncDefaultAzureCredential(), COGNITIVE_SERVICES_SCOPE
        )
    return AsyncAzureOpenAI(**kwargs)
