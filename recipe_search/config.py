"""
Configuration for Azure Cosmos DB and Azure OpenAI

Settings are read from environment variables (optionally loaded from a .env
file) into small immutable config objects. Components receive these objects in
their constructors and never read the environment themselves.

Environment Variables:
- COSMOS_ENDPOINT: Cosmos DB account endpoint URL
- COSMOS_KEY: Cosmos DB account key (optional, Managed Identity is used when absent)
- DATABASE_NAME: Name of the Cosmos DB database
- CONTAINER_NAME: Name of the Cosmos DB container
- AZURE_OPENAI_ENDPOINT: Azure OpenAI resource endpoint
- AZURE_OPENAI_API_KEY: Azure OpenAI key (optional, Entra ID is used when absent)
- AZURE_OPENAI_API_VERSION: REST API version
- AZURE_OPENAI_CHAT_DEPLOYMENT: Chat completion deployment name
- AZURE_OPENAI_EMBEDDING_DEPLOYMENT: Embedding deployment name
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from dotenv import load_dotenv

DEFAULT_DATABASE_NAME = "db001"
DEFAULT_CONTAINER_NAME = "recipes"
DEFAULT_API_VERSION = "2024-06-01"


class ConfigurationError(ValueError):
    """Raised when required settings are missing or a resource cannot be resolved."""


def _require(values: Dict[str, Optional[str]]) -> None:
    missing = [name for name, value in values.items() if not value]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )


@dataclass(frozen=True)
class CosmosConfig:
    """Connection settings for the Cosmos DB account, database and container."""

    endpoint: str
    database_name: str = DEFAULT_DATABASE_NAME
    container_name: str = DEFAULT_CONTAINER_NAME
    key: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "CosmosConfig":
        load_dotenv(dotenv_path=dotenv_path)
        endpoint = os.getenv("COSMOS_ENDPOINT")
        _require({"COSMOS_ENDPOINT": endpoint})
        return cls(
            endpoint=endpoint,
            database_name=os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME),
            container_name=os.getenv("CONTAINER_NAME", DEFAULT_CONTAINER_NAME),
            key=os.getenv("COSMOS_KEY") or None,
        )


@dataclass(frozen=True)
class VectorIndexSettings:
    """
    Vector embedding description for the container.

    Defaults match text-embedding-ada-002 / text-embedding-3-small output
    (1536 float32 dimensions compared by cosine similarity).
    """

    path: str = "/vectors"
    data_type: str = "float32"
    distance_function: str = "cosine"
    dimensions: int = 1536
    index_type: str = "quantizedFlat"


@dataclass(frozen=True)
class ContainerSettings:
    """Provisioning parameters used by create-if-absent."""

    partition_key_path: str = "/id"
    autoscale_max_throughput: int = 1000
    # 1 day
    default_ttl: int = 86400
    vector_index: VectorIndexSettings = field(default_factory=VectorIndexSettings)

    def vector_embedding_policy(self) -> Dict[str, Any]:
        return {
            "vectorEmbeddings": [
                {
                    "path": self.vector_index.path,
                    "dataType": self.vector_index.data_type,
                    "distanceFunction": self.vector_index.distance_function,
                    "dimensions": self.vector_index.dimensions,
                }
            ]
        }

    def indexing_policy(self) -> Dict[str, Any]:
        return {
            "indexingMode": "consistent",
            "automatic": True,
            "includedPaths": [{"path": "/*"}],
            # Vector paths must be excluded from the range index
            "excludedPaths": [
                {"path": '/"_etag"/?'},
                {"path": f"{self.vector_index.path}/*"},
            ],
            "vectorIndexes": [
                {"path": self.vector_index.path, "type": self.vector_index.index_type}
            ],
        }


@dataclass(frozen=True)
class OpenAIConfig:
    """Settings for the Azure OpenAI chat and embedding deployments."""

    endpoint: str
    chat_deployment: str
    embedding_deployment: str
    api_version: str = DEFAULT_API_VERSION
    api_key: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "OpenAIConfig":
        load_dotenv(dotenv_path=dotenv_path)
        endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
        chat_deployment = os.getenv("AZURE_OPENAI_CHAT_DEPLOYMENT")
        embedding_deployment = os.getenv("AZURE_OPENAI_EMBEDDING_DEPLOYMENT")
        _require({
            "AZURE_OPENAI_ENDPOINT": endpoint,
            "AZURE_OPENAI_CHAT_DEPLOYMENT": chat_deployment,
            "AZURE_OPENAI_EMBEDDING_DEPLOYMENT": embedding_deployment,
        })
        return cls(
            endpoint=endpoint,
            chat_deployment=chat_deployment,
            embedding_deployment=embedding_deployment,
            api_version=os.getenv("AZURE_OPENAI_API_VERSION", DEFAULT_API_VERSION),
            api_key=os.getenv("AZURE_OPENAI_API_KEY") or None,
        )
