"""
Azure Cosmos DB Data Import Script for Recipes

This script imports recipe JSON files from a folder into Azure Cosmos DB.
It uses the account key when COSMOS_KEY is set, otherwise Azure Managed Identity
(DefaultAzureCredential) for authentication without keys.

Features:
- Parses one recipe per JSON file and derives the id from the recipe name
- Creates the container with the vector indexing policy if it does not exist
- Supports idempotent upsert operations (safe to re-run)
- Prints a bulk summary (successes, failures, request units, time)

Environment Variables:
- COSMOS_ENDPOINT: Cosmos DB account endpoint URL
- COSMOS_KEY: Cosmos DB account key (optional)
- DATABASE_NAME: Name of the Cosmos DB database
- CONTAINER_NAME: Name of the Cosmos DB container

Usage:
    pip install -e .
    python data_import/import_recipes.py [recipe_folder]
"""

import asyncio
import os
import sys

from recipe_search.config import CosmosConfig
from recipe_search.cosmos_db_service import CosmosDbService
from recipe_search.recipe import parse_documents

# Look for .env and sample data in the repository root
ROOT_DIR = os.path.join(os.path.dirname(__file__), '..')
ENV_PATH = os.path.join(ROOT_DIR, '.env')
RECIPE_FOLDER = os.path.join(ROOT_DIR, 'data', 'recipes')


async def import_recipes(config: CosmosConfig, folder: str):
    """
    Upserts every recipe in a folder into Cosmos DB.

    Args:
        config: Cosmos DB connection settings
        folder: Folder containing recipe JSON files

    Returns:
        BulkOperationResponse for the upsert batch
    """
    recipes = parse_documents(folder)
    print(f"Parsed {len(recipes)} recipes from {folder}")

    async with CosmosDbService(config) as service:
        if not await service.create_cosmos_container():
            print("✗ Could not create or verify the container, aborting")
            return None

        summary = await service.upsert_recipes(recipes)

        # quick sanity check
        with_embedding = await service.get_recipe_count(True)
        without_embedding = await service.get_recipe_count(False)
        print(f"Recipes with embeddings: {with_embedding}, without: {without_embedding}")

    return summary


if __name__ == "__main__":
    folder = sys.argv[1] if len(sys.argv) > 1 else RECIPE_FOLDER
    print(f"Using folder: {folder}")
    result = asyncio.run(import_recipes(CosmosConfig.from_env(ENV_PATH), folder))
    if result is not None:
        print(f"✅ Done. {result}")
