"""
Azure OpenAI embeddings for recipes

Generates embedding vectors with an Azure OpenAI embedding deployment and
writes them back to Cosmos DB for every recipe that does not have one yet.
"""

import time
from typing import Any, List, Optional

from azure.identity.aio import DefaultAzureCredential

from recipe_search.bulk_operations import BulkOperationResponse, BulkOperations
from recipe_search.config import OpenAIConfig
from recipe_search.cosmos_db_service import CosmosDbService
from recipe_search.openai_client import create_async_openai_client
from recipe_search.recipe import embedding_text


class EmbeddingService:
    """Wraps the embedding deployment configured in OpenAIConfig."""

    def __init__(self, config: OpenAIConfig, client: Optional[Any] = None):
        self._deployment = config.embedding_deployment
        self._credential = None
        if client is None:
            if not config.api_key:
                self._credential = DefaultAzureCredential()
            client = create_async_openai_client(config, credential=self._credential)
        self._client = client

    async def generate_embedding(self, text: str) -> List[float]:
        if not text or not text.strip():
            raise ValueError("Text to embed must not be empty")
        response = await self._client.embeddings.create(model=self._deployment, input=text)
        return list(response.data[0].embedding)

    async def close(self) -> None:
        """Close the OpenAI client and any credential created for it."""
        await self._client.close()
        if self._credential is not None:
            await self._credential.close()
            self._credential = None


async def vectorize_recipes(
    service: CosmosDbService, embeddings: EmbeddingService
) -> BulkOperationResponse[str]:
    """
    Embed every recipe without vectors and patch the vectors into Cosmos DB.

    A recipe whose embedding request fails is skipped and left for the next
    run; the returned summary covers the patch writes only.
    """
    recipes = await service.get_recipes_to_vectorize()
    if not recipes:
        print("✓ All recipes already have embeddings")
        return await BulkOperations().execute()

    print(f"Generating embeddings for {len(recipes)} recipes...")
    start = time.time()
    vectors_by_id = {}
    for recipe in recipes:
        try:
            vectors_by_id[recipe.id] = await embeddings.generate_embedding(embedding_text(recipe))
        except Exception as e:
            print(f"   ✗ Embedding failed for {recipe.id}: {e}")
    print(f"⏱️  Embedding Time: {(time.time() - start) * 1000:.2f}ms")

    return await service.update_recipes(vectors_by_id)
