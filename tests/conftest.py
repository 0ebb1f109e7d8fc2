"""
Shared test fixtures for the recipe search test suite.

Provides: in-memory fakes of the async Cosmos DB client, database and
container proxies, and of the Azure OpenAI embedding and chat clients.
Dependencies: pytest, pytest-asyncio
"""

import math
import re
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest
from azure.cosmos.exceptions import CosmosHttpResponseError, CosmosResourceNotFoundError

from recipe_search.config import CosmosConfig, OpenAIConfig
from recipe_search.cosmos_db_service import (
    ALL_RECIPES_QUERY,
    RECIPE_COUNT_QUERY,
    RECIPES_TO_VECTORIZE_QUERY,
    CosmosDbService,
)
from recipe_search.recipe import Recipe

CHARGE = 5.0


def cosmos_error(status_code: int, message: str, charge: Optional[float] = None) -> CosmosHttpResponseError:
    """Build a CosmosHttpResponseError, optionally carrying a request charge header."""
    error = CosmosHttpResponseError(status_code=status_code, message=message)
    error.headers = {"x-ms-request-charge": str(charge)} if charge is not None else {}
    return error


def cosine_similarity(a: List[float], b: List[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


async def _aiter(items):
    for item in items:
        yield item


class FakeContainer:
    """Dict-backed stand-in for azure.cosmos.aio.ContainerProxy."""

    def __init__(self, charge: float = CHARGE):
        self.items: Dict[str, Dict[str, Any]] = {}
        self.charge = charge
        self.failures: Dict[str, Exception] = {}
        self.queries: List[Dict[str, Any]] = []
        self.patches: List[Dict[str, Any]] = []
        self.readable = True
        # Return every stored item from vector queries, ignoring TOP, WHERE and ORDER BY
        self.ignore_query_limits = False

    def _respond(self, response_hook, result):
        if response_hook:
            response_hook({"x-ms-request-charge": str(self.charge)}, result)
        return result

    def _check_failure(self, item_id):
        if item_id in self.failures:
            raise self.failures[item_id]

    async def create_item(self, body, response_hook=None, **kwargs):
        self._check_failure(body["id"])
        if body["id"] in self.items:
            raise cosmos_error(409, "Entity with the specified id already exists in the system.", self.charge)
        self.items[body["id"]] = dict(body)
        return self._respond(response_hook, dict(body))

    async def upsert_item(self, body, response_hook=None, **kwargs):
        self._check_failure(body["id"])
        self.items[body["id"]] = dict(body)
        return self._respond(response_hook, dict(body))

    async def patch_item(self, item, partition_key, patch_operations, response_hook=None, **kwargs):
        self._check_failure(item)
        if item not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message=f"{item} not found")
        self.patches.append({"item": item, "partition_key": partition_key, "operations": patch_operations})
        for op in patch_operations:
            self.items[item][op["path"].lstrip("/")] = op["value"]
        return self._respond(response_hook, dict(self.items[item]))

    async def read_item(self, item, partition_key, **kwargs):
        if item not in self.items:
            raise CosmosResourceNotFoundError(status_code=404, message=f"{item} not found")
        return dict(self.items[item])

    async def read(self, **kwargs):
        if not self.readable:
            raise CosmosResourceNotFoundError(status_code=404, message="container not found")
        return {"id": "recipes"}

    def query_items(self, query, parameters=None, **kwargs):
        params = {p["name"]: p["value"] for p in (parameters or [])}
        self.queries.append({"query": query, "parameters": params})
        docs = list(self.items.values())

        if query == ALL_RECIPES_QUERY:
            return _aiter(docs)
        if query == RECIPES_TO_VECTORIZE_QUERY:
            return _aiter([d for d in docs if not isinstance(d.get("vectors"), list)])
        if query == RECIPE_COUNT_QUERY:
            status = params["@status"]
            return _aiter([sum(1 for d in docs if isinstance(d.get("vectors"), list) == status)])
        if "VectorDistance" in query:
            return _aiter(self._vector_search(query, params, docs))
        raise AssertionError(f"Unexpected query: {query}")

    def _vector_search(self, query, params, docs):
        scored = []
        for doc in docs:
            if not isinstance(doc.get("vectors"), list):
                continue
            result = {k: v for k, v in doc.items() if k != "vectors"}
            result["similarityScore"] = cosine_similarity(doc["vectors"], params["@vectors"])
            scored.append(result)
        if self.ignore_query_limits:
            return scored
        top = int(re.search(r"TOP (\d+)", query).group(1))
        scored = [r for r in scored if r["similarityScore"] > params["@similarityScore"]]
        scored.sort(key=lambda r: r["similarityScore"], reverse=True)
        return scored[:top]


class FakeDatabase:
    def __init__(self, container: FakeContainer):
        self.container = container
        self.created_with: Optional[Dict[str, Any]] = None
        self.create_error: Optional[Exception] = None

    def get_container_client(self, name):
        return self.container

    async def create_container_if_not_exists(self, **kwargs):
        if self.create_error is not None:
            raise self.create_error
        self.created_with = kwargs
        return self.container


class FakeCosmosClient:
    def __init__(self, database: FakeDatabase):
        self.database = database
        self.closed = False

    def get_database_client(self, name):
        return self.database

    async def close(self):
        self.closed = True


class FakeEmbeddings:
    """Stand-in for AsyncAzureOpenAI().embeddings keyed on the input text."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default=None):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.calls: List[Dict[str, Any]] = []
        self.fail_on: List[str] = []

    async def create(self, model, input):
        self.calls.append({"model": model, "input": input})
        for marker in self.fail_on:
            if marker in input:
                raise RuntimeError("embedding request failed")
        embedding = self.vectors.get(input, self.default)
        return SimpleNamespace(data=[SimpleNamespace(embedding=embedding)])


class FakeAsyncOpenAI:
    def __init__(self, embeddings: FakeEmbeddings):
        self.embeddings = embeddings
        self.closed = False

    async def close(self):
        self.closed = True


def chat_chunk(content=None, role=None, choices=True):
    if not choices:
        return SimpleNamespace(choices=[])
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content, role=role))])


class FakeCompletions:
    """Stand-in for AzureOpenAI().chat.completions returning scripted streams."""

    def __init__(self):
        self.replies: List[Any] = []
        self.calls: List[Dict[str, Any]] = []

    def create(self, model, messages, stream=False):
        self.calls.append({"model": model, "messages": [dict(m) for m in messages], "stream": stream})
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return iter(reply)


@pytest.fixture
def cosmos_config() -> CosmosConfig:
    return CosmosConfig(
        endpoint="https://test-account.documents.azure.com:443/",
        database_name="db001",
        container_name="recipes",
        key="test-key",
    )


@pytest.fixture
def openai_config() -> OpenAIConfig:
    return OpenAIConfig(
        endpoint="https://test-resource.openai.azure.com/",
        chat_deployment="gpt-4o",
        embedding_deployment="text-embedding-ada-002",
        api_key="test-key",
    )


@pytest.fixture
def fake_container() -> FakeContainer:
    return FakeContainer()


@pytest.fixture
def fake_database(fake_container) -> FakeDatabase:
    return FakeDatabase(fake_container)


@pytest.fixture
def fake_client(fake_database) -> FakeCosmosClient:
    return FakeCosmosClient(fake_database)


@pytest.fixture
def service(cosmos_config, fake_client) -> CosmosDbService:
    return CosmosDbService(cosmos_config, client=fake_client)


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def fake_completions() -> FakeCompletions:
    return FakeCompletions()


@pytest.fixture
def chat_client(fake_completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=fake_completions))


@pytest.fixture
def sample_recipes() -> List[Recipe]:
    return [
        Recipe(id="chickenalfredo", name="Chicken Alfredo", cuisine="Italian", servings=4,
               ingredients=["fettuccine", "chicken", "cream"]),
        Recipe(id="vegetablecurry", name="Vegetable Curry", cuisine="Indian", servings=4,
               ingredients=["potatoes", "chickpeas", "coconut milk"]),
        Recipe(id="beeftacos", name="Beef Tacos", cuisine="Mexican", servings=4,
               ingredients=["ground beef", "taco shells"]),
    ]
