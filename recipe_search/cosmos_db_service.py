"""
Cosmos DB Service for Recipe Vector Search

This module provides async access to an Azure Cosmos DB for NoSQL container
holding recipe documents and their embedding vectors.

Features:
- Container provisioning with vector embedding policy and vector index
- Vector similarity search using VectorDistance
- Full scan, "needs vectorizing" query and embedding status counts
- Bulk create/upsert of recipes and bulk patch of embedding vectors
- Query logging with performance metrics

Requirements:
- Azure Cosmos DB for NoSQL account with vector search enabled
- Account key, or a Managed Identity / Azure CLI login with the
  "Cosmos DB Built-in Data Contributor" role
- Settings passed in through CosmosConfig (see config.py)
"""

import functools
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from azure.cosmos import PartitionKey, ThroughputProperties
from azure.cosmos.aio import CosmosClient
from azure.cosmos.exceptions import CosmosResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential

from recipe_search.bulk_operations import BulkOperationResponse, BulkOperations
from recipe_search.config import ConfigurationError, ContainerSettings, CosmosConfig
from recipe_search.recipe import Recipe

DEFAULT_TOP = 3

# Score of each result must be strictly greater than @similarityScore
VECTOR_SEARCH_QUERY = """
SELECT TOP {top} c.id, c.name, c.description, c.ingredients, c.instructions, c.cuisine,
    c.difficulty, c.prepTime, c.cookTime, c.totalTime, c.servings,
    VectorDistance(c.vectors, @vectors) AS similarityScore
FROM c
WHERE VectorDistance(c.vectors, @vectors) > @similarityScore
ORDER BY VectorDistance(c.vectors, @vectors)
"""

RECIPES_TO_VECTORIZE_QUERY = "SELECT * FROM c WHERE IS_ARRAY(c.vectors) = false"

ALL_RECIPES_QUERY = "SELECT * FROM c"

RECIPE_COUNT_QUERY = "SELECT VALUE COUNT(1) FROM c WHERE IS_ARRAY(c.vectors) = @status"


class CosmosDbService:
    """
    Service to access recipes in Azure Cosmos DB for NoSQL.

    The service holds one async CosmosClient for its lifetime. Use it as an
    async context manager, or call close() when done.
    """

    def __init__(
        self,
        config: CosmosConfig,
        container_settings: Optional[ContainerSettings] = None,
        client: Optional[Any] = None,
    ):
        """
        Create the client and resolve the database and container.

        Args:
            config: Endpoint, database, container and optional account key
            container_settings: Provisioning parameters for create_cosmos_container()
            client: Pre-built CosmosClient (mainly for tests)

        Raises:
            ValueError: If endpoint, database name or container name is empty
            ConfigurationError: If the database or container cannot be resolved
        """
        for name, value in (
            ("endpoint", config.endpoint),
            ("database_name", config.database_name),
            ("container_name", config.container_name),
        ):
            if not value:
                raise ValueError(f"{name} must not be empty")

        self._config = config
        self._settings = container_settings or ContainerSettings()
        self._credential = None

        if client is None:
            if config.key:
                credential = config.key
            else:
                self._credential = DefaultAzureCredential()
                credential = self._credential
            client = CosmosClient(url=config.endpoint, credential=credential)
        self._client = client

        try:
            self._database = self._client.get_database_client(config.database_name)
            container = self._database.get_container_client(config.container_name)
        except Exception as e:
            raise ConfigurationError(
                "Unable to connect to existing Azure Cosmos DB container or database."
            ) from e
        if container is None:
            raise ConfigurationError(
                "Unable to connect to existing Azure Cosmos DB container or database."
            )
        self._container = container

    async def __aenter__(self) -> "CosmosDbService":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the Cosmos client and any credential created for it."""
        if self._client is not None:
            await self._client.close()
            self._client = None
        if self._credential is not None:
            await self._credential.close()
            self._credential = None

    async def check_collection_exists(self) -> bool:
        """Return True if the container can be read, otherwise False."""
        try:
            await self._container.read()
            return True
        except Exception as e:
            print(f"✗ Container {self._config.container_name} not available: {e}")
            return False

    async def recipe_exists(self, recipe_id: str) -> bool:
        """Point read by id (the id is also the partition key)."""
        try:
            await self._container.read_item(item=recipe_id, partition_key=recipe_id)
            return True
        except CosmosResourceNotFoundError:
            return False

    async def create_cosmos_container(self) -> bool:
        """
        Create the container with the vector indexing policy if it does not exist.

        Provisioning is best-effort: errors are printed and reported as False.

        Returns:
            True if the container exists afterwards, otherwise False
        """
        settings = self._settings
        print(f"\n{'='*80}")
        print("[Cosmos DB - Create Container If Not Exists]")
        print(f"{'='*80}")
        print(f"Container: {self._config.container_name}")
        print(f"Partition Key: {settings.partition_key_path}")
        print(f"Autoscale Max Throughput: {settings.autoscale_max_throughput} RU/s")
        print(f"Default TTL: {settings.default_ttl}s")
        print(f"Vector Embedding Policy: {settings.vector_embedding_policy()}")

        start = time.time()
        try:
            self._container = await self._database.create_container_if_not_exists(
                id=self._config.container_name,
                partition_key=PartitionKey(path=settings.partition_key_path),
                indexing_policy=settings.indexing_policy(),
                vector_embedding_policy=settings.vector_embedding_policy(),
                default_ttl=settings.default_ttl,
                offer_throughput=ThroughputProperties(
                    auto_scale_max_throughput=settings.autoscale_max_throughput
                ),
            )
        except Exception as e:
            print(f"✗ Failed to create container: {e}")
            print(f"{'='*80}\n")
            return False

        print(f"⏱️  Provisioning Time: {(time.time() - start) * 1000:.2f}ms")
        print(f"{'='*80}\n")
        return True

    async def single_vector_search(
        self,
        vectors: Sequence[float],
        similarity_score: float,
        top: int = DEFAULT_TOP,
    ) -> List[Recipe]:
        """
        Find the recipes most similar to a query vector.

        Args:
            vectors: Query embedding, same dimensionality as the container policy
            similarity_score: Exclusive lower bound; results score strictly above it
            top: Maximum number of results

        Returns:
            Up to `top` recipes ordered by descending similarity score

        Raises:
            ValueError: If top is not a positive integer or vectors is empty
        """
        if isinstance(top, bool) or not isinstance(top, int) or top < 1:
            raise ValueError(f"top must be a positive integer, got {top!r}")
        if not vectors:
            raise ValueError("Query vector must not be empty")

        query = VECTOR_SEARCH_QUERY.format(top=top)
        params = [
            {"name": "@vectors", "value": list(vectors)},
            {"name": "@similarityScore", "value": similarity_score},
        ]

        print(f"\n{'='*80}")
        print("[Cosmos DB Query - Vector Search]")
        print(f"{'='*80}")
        print(f"Dimensions: {len(vectors)}")
        print(f"Similarity Score > {similarity_score}")
        print(f"Top: {top}")

        exec_start = time.time()
        items = await self._query(query, params)
        exec_time = (time.time() - exec_start) * 1000

        recipes = [Recipe.from_document(item) for item in items]
        recipes = [
            r for r in recipes
            if r.similarity_score is not None and r.similarity_score > similarity_score
        ]
        recipes.sort(key=lambda r: r.similarity_score, reverse=True)
        recipes = recipes[:top]

        print(f"⏱️  Query Execution Time: {exec_time:.2f}ms")
        print(f"Results: {[(r.name, round(r.similarity_score, 4)) for r in recipes]}")
        print(f"{'='*80}\n")
        return recipes

    async def get_recipes_to_vectorize(self) -> List[Recipe]:
        """Gets all recipes whose vectors field is not an array."""
        items = await self._query(RECIPES_TO_VECTORIZE_QUERY)
        return [Recipe.from_document(item) for item in items]

    async def get_recipes(self) -> List[Recipe]:
        """Gets all recipes."""
        items = await self._query(ALL_RECIPES_QUERY)
        return [Recipe.from_document(item) for item in items]

    async def get_recipe_count(self, with_embedding: bool) -> int:
        """Count recipes with (True) or without (False) an embedding array."""
        params = [{"name": "@status", "value": with_embedding}]
        items = await self._query(RECIPE_COUNT_QUERY, params)
        return int(items[0]) if items else 0

    async def add_recipes(self, recipes: Sequence[Recipe]) -> BulkOperationResponse[Recipe]:
        """Create recipes concurrently; existing ids are reported as failures."""
        bulk = BulkOperations()
        for recipe in recipes:
            bulk.add(functools.partial(self._container.create_item, body=recipe.to_document()), recipe)
        summary = await bulk.execute()
        self._print_bulk_summary("Create Recipes", summary)
        return summary

    async def upsert_recipes(self, recipes: Sequence[Recipe]) -> BulkOperationResponse[Recipe]:
        """
        Insert or replace recipes concurrently (safe to re-run).

        A recipe without vectors keeps the embedding already stored under its
        id, so re-importing a folder never undoes update_recipes().
        """
        bulk = BulkOperations()
        for recipe in recipes:
            bulk.add(functools.partial(self._upsert_keeping_vectors, recipe), recipe)
        summary = await bulk.execute()
        self._print_bulk_summary("Upsert Recipes", summary)
        return summary

    async def _upsert_keeping_vectors(self, recipe: Recipe, response_hook=None) -> Dict[str, Any]:
        document = recipe.to_document()
        field = self._settings.vector_index.path.lstrip("/")
        if document.get(field) is None:
            try:
                existing = await self._container.read_item(item=recipe.id, partition_key=recipe.id)
            except CosmosResourceNotFoundError:
                existing = None
            if existing is not None and isinstance(existing.get(field), list):
                document[field] = existing[field]
        return await self._container.upsert_item(body=document, response_hook=response_hook)

    async def update_recipes(
        self, vectors_by_id: Mapping[str, Sequence[float]]
    ) -> BulkOperationResponse[str]:
        """
        Patch the vectors field of many recipes concurrently.

        Args:
            vectors_by_id: Recipe id -> embedding vector

        Returns:
            Summary whose failure items are recipe ids
        """
        path = self._settings.vector_index.path
        bulk = BulkOperations()
        for recipe_id, vector in vectors_by_id.items():
            bulk.add(
                functools.partial(
                    self._container.patch_item,
                    item=recipe_id,
                    partition_key=recipe_id,
                    patch_operations=[{"op": "add", "path": path, "value": list(vector)}],
                ),
                recipe_id,
            )
        summary = await bulk.execute()
        self._print_bulk_summary("Update Recipe Vectors", summary)
        return summary

    async def _query(
        self, query: str, parameters: Optional[List[Dict[str, Any]]] = None
    ) -> List[Any]:
        results = self._container.query_items(query=query, parameters=parameters)
        return [item async for item in results]

    @staticmethod
    def _print_bulk_summary(title: str, summary: BulkOperationResponse) -> None:
        print(f"\n{'='*80}")
        print(f"[Cosmos DB Bulk - {title}]")
        print(f"{'='*80}")
        print(f"Successful: {summary.successful_documents}")
        print(f"Failed: {len(summary.failures)}")
        print(f"Request Units: {summary.total_request_units_consumed:.2f}")
        print(f"⏱️  Total Time: {summary.total_time_taken.total_seconds() * 1000:.2f}ms")
        for item, error in summary.failures:
            label = getattr(item, "id", item)
            print(f"   ✗ {label}: {type(error).__name__}: {error}")
        print(f"{'='*80}\n")
