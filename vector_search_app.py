"""
Recipe Vector Search Application - Cosmos DB Integration (vector_search_app.py)

This module provides an interactive console application that stores recipes in
Azure Cosmos DB for NoSQL and searches them by vector similarity using
embeddings from Azure OpenAI.

Capabilities:
1. Creates the recipes container with a vector embedding policy and vector index
2. Loads recipe JSON files from a folder and bulk inserts them
3. Generates embeddings for recipes without vectors and bulk patches them in
4. Shows how many recipes are vectorized
5. Answers free-text questions with the most similar recipes

Architecture:
User Input → Azure OpenAI Embedding → Cosmos DB VectorDistance Query →
Top 3 Recipes with Similarity Score

Usage:
    python vector_search_app.py [recipe_folder]
"""

import asyncio
import sys
import time

from recipe_search.config import ConfigurationError, CosmosConfig, OpenAIConfig
from recipe_search.cosmos_db_service import CosmosDbService
from recipe_search.embeddings import EmbeddingService, vectorize_recipes
from recipe_search.recipe import parse_documents

DEFAULT_RECIPE_FOLDER = "data/recipes"

# Results must score strictly above this value
DEFAULT_SIMILARITY_SCORE = 0.7

MENU = """
  1. Create Cosmos DB container (vector index)
  2. Upload recipes from folder
  3. Vectorize recipes and store in Cosmos DB
  4. Show recipe counts
  5. Ask AI Assistant (search for a recipe by name or description)
  q. Exit
"""


class RecipeVectorSearchApp:
    """Interactive menu around CosmosDbService and EmbeddingService."""

    def __init__(self, service: CosmosDbService, embeddings: EmbeddingService, recipe_folder: str):
        self.service = service
        self.embeddings = embeddings
        self.recipe_folder = recipe_folder
        print("\n" + "="*80)
        print("Recipe Vector Search Application - Cosmos DB Integration")
        print("vector_search_app.py")
        print("="*80)
        print("Initialized successfully!\n")

    async def create_container(self) -> None:
        if await self.service.create_cosmos_container():
            print("✓ Container is ready")
        else:
            print("✗ Container could not be created")

    async def upload_recipes(self) -> None:
        start = time.time()
        recipes = parse_documents(self.recipe_folder)
        print(f"✓ Parsed {len(recipes)} recipes from {self.recipe_folder} "
              f"in {(time.time() - start) * 1000:.2f}ms")
        summary = await self.service.add_recipes(recipes)
        print(f"Upload: {summary}")

    async def vectorize(self) -> None:
        summary = await vectorize_recipes(self.service, self.embeddings)
        print(f"Vectorize: {summary}")

    async def show_counts(self) -> None:
        with_embedding = await self.service.get_recipe_count(True)
        without_embedding = await self.service.get_recipe_count(False)
        print(f"   Recipes with embeddings:    {with_embedding}")
        print(f"   Recipes without embeddings: {without_embedding}")
        print(f"   Total:                      {with_embedding + without_embedding}")

    async def search(self, query: str, similarity_score: float = DEFAULT_SIMILARITY_SCORE) -> None:
        timing = {}
        total_start = time.time()

        print("Step 1: Generating query embedding...")
        start = time.time()
        vector = await self.embeddings.generate_embedding(query)
        timing["embedding"] = (time.time() - start) * 1000
        print(f"   ⏱️  Embedding Time: {timing['embedding']:.2f}ms\n")

        print("Step 2: Running vector search in Cosmos DB...")
        start = time.time()
        recipes = await self.service.single_vector_search(vector, similarity_score)
        timing["vector_search"] = (time.time() - start) * 1000
        timing["total"] = (time.time() - total_start) * 1000

        if not recipes:
            print(f"   ✗ No recipes scored above {similarity_score}")
        for recipe in recipes:
            print(f"\n   {recipe.name}  (similarity {recipe.similarity_score:.4f})")
            if recipe.description:
                print(f"   {recipe.description}")
            if recipe.cuisine or recipe.difficulty:
                print(f"   Cuisine: {recipe.cuisine or '-'} | Difficulty: {recipe.difficulty or '-'}")
            if recipe.total_time:
                print(f"   Total Time: {recipe.total_time} | Servings: {recipe.servings or '-'}")

        print(f"\n{'='*80}")
        print("Performance Metrics:")
        print(f"{'='*80}")
        print(f"   Embedding:            {timing['embedding']:.2f}ms")
        print(f"   Vector Search:        {timing['vector_search']:.2f}ms")
        print(f"   ─────────────────────────────────")
        print(f"   Total Time:           {timing['total']:.2f}ms")
        print(f"{'='*80}\n")

    async def run_interactive(self) -> None:
        """Run the application in interactive console mode."""
        while True:
            print(MENU)
            try:
                choice = input("Select an option: ").strip().lower()

                if choice in ["exit", "quit", "q"]:
                    print("\nThank you for using the application. Goodbye!")
                    break
                elif choice == "1":
                    await self.create_container()
                elif choice == "2":
                    await self.upload_recipes()
                elif choice == "3":
                    await self.vectorize()
                elif choice == "4":
                    await self.show_counts()
                elif choice == "5":
                    query = input("Your query: ").strip()
                    if query:
                        await self.search(query)
                else:
                    print("✗ Unknown option")

            except (EOFError, KeyboardInterrupt):
                print("\n\nInterrupted by user. Goodbye!")
                break
            except Exception as e:
                print(f"\n✗ Error processing request: {str(e)}\n")


async def main(recipe_folder: str) -> None:
    """Main entry point for the application."""
    try:
        cosmos_config = CosmosConfig.from_env()
        openai_config = OpenAIConfig.from_env()
    except ConfigurationError as e:
        print(f"❌ Error: {e}")
        print("Please ensure the variables are set in your .env file.")
        sys.exit(1)

    embeddings = EmbeddingService(openai_config)
    try:
        async with CosmosDbService(cosmos_config) as service:
            app = RecipeVectorSearchApp(service, embeddings, recipe_folder)
            await app.run_interactive()
    finally:
        await embeddings.close()


if __name__ == "__main__":
    folder = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_RECIPE_FOLDER
    asyncio.run(main(folder))
