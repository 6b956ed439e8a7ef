import json
from pathlib import Path
from typing import List

from .schemas import GlobalRecipeCreate


def load_recipes(path) -> List[GlobalRecipeCreate]:
    """Load seed recipes for the global catalog from a JSON file.

    Args:
        path (str or Path): Path to a JSON list of recipe objects.

    Returns:
        list: validated recipes; entries without a name are skipped and a
        missing file yields an empty list.
    """
    p = Path(path)
    if not p.exists():
        return []
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return [GlobalRecipeCreate(**r) for r in data if r.get("name")]
