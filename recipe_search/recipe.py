"""
Recipe model and document parsing

Recipes are stored in Cosmos DB as camelCase JSON documents. The document id
doubles as the partition key and is derived from the recipe name when the
source files are parsed, so re-importing the same folder always targets the
same documents.

Document Structure:
    {
        "id": "chickenalfredo",
        "name": "Chicken Alfredo",
        "description": "...",
        "cuisine": "Italian",
        "difficulty": "medium",
        "prepTime": "15 minutes",
        "cookTime": "20 minutes",
        "totalTime": "35 minutes",
        "servings": 4,
        "ingredients": ["..."],
        "instructions": ["..."],
        "vectors": [0.0123, ...]        # only after vectorization
    }
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

# Python attribute -> document property
_FIELD_MAP = {
    "id": "id",
    "name": "name",
    "description": "description",
    "cuisine": "cuisine",
    "difficulty": "difficulty",
    "prep_time": "prepTime",
    "cook_time": "cookTime",
    "total_time": "totalTime",
    "servings": "servings",
    "ingredients": "ingredients",
    "instructions": "instructions",
    "vectors": "vectors",
    "similarity_score": "similarityScore",
}

# Never part of the text sent to the embedding model
_NON_EMBEDDED_FIELDS = {"id", "vectors", "similarityScore"}


def derive_recipe_id(name: str) -> str:
    """
    Build the document id for a recipe name.

    The name is lower-cased and all whitespace is removed, so
    "Chicken  Alfredo" and "chicken alfredo" map to "chickenalfredo".
    Applying the function to its own output returns the same id.

    Raises:
        ValueError: If the name is empty or only whitespace
    """
    if name is None or not name.strip():
        raise ValueError("Recipe name is required to derive an id")
    return "".join(name.lower().split())


@dataclass
class Recipe:
    """A recipe document, optionally carrying its embedding and search score."""

    name: str
    id: str = ""
    description: Optional[str] = None
    cuisine: Optional[str] = None
    difficulty: Optional[str] = None
    prep_time: Optional[str] = None
    cook_time: Optional[str] = None
    total_time: Optional[str] = None
    servings: Optional[int] = None
    ingredients: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    vectors: Optional[List[float]] = None
    similarity_score: Optional[float] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Recipe":
        """Build a Recipe from a Cosmos DB document, ignoring system properties."""
        values = {}
        for attr, prop in _FIELD_MAP.items():
            if prop in doc and doc[prop] is not None:
                values[attr] = doc[prop]
        if "name" not in values:
            values["name"] = ""
        return cls(**values)

    def to_document(self) -> Dict[str, Any]:
        """Serialize to the camelCase document shape, dropping unset optional fields."""
        doc = {}
        for attr, prop in _FIELD_MAP.items():
            value = getattr(self, attr)
            if value is None:
                continue
            doc[prop] = value
        return doc


def embedding_text(recipe: Recipe) -> str:
    """Text sent to the embedding model for a recipe."""
    doc = {k: v for k, v in recipe.to_document().items() if k not in _NON_EMBEDDED_FIELDS}
    return json.dumps(doc, ensure_ascii=False)


def parse_documents(folder_path: Union[str, Path]) -> List[Recipe]:
    """
    Parse every recipe JSON file in a folder.

    Files are read in name order. Each recipe gets its id from
    derive_recipe_id(), overriding any id present in the file.

    Args:
        folder_path: Folder containing one recipe per *.json file

    Returns:
        List of Recipe objects ready for upload

    Raises:
        FileNotFoundError: If the folder does not exist
        ValueError: If a file has no recipe name
    """
    folder = Path(folder_path)
    if not folder.is_dir():
        raise FileNotFoundError(f"Recipe folder not found: {folder}")

    recipes = []
    for path in sorted(folder.glob("*.json")):
        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
        recipe = Recipe.from_document(doc)
        try:
            recipe.id = derive_recipe_id(recipe.name)
        except ValueError as e:
            raise ValueError(f"{path.name}: {e}") from e
        recipes.append(recipe)

    return recipes
