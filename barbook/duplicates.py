"""
Recipe duplicate detection.

A candidate recipe is checked, in order, for:

1. the same name in the user's collection (storage-defined, case-insensitive)
2. a similar name in the user's collection (normalized Levenshtein ratio)
3. the same ingredient signature in the user's collection
4. the same normalized name in the global catalog

The first hit wins and later storage reads are never issued. Storage errors
propagate to the caller unchanged.

Usage:
    from barbook.duplicates import check_for_duplicates

    verdict = await check_for_duplicates("Daiquiri", ingredients, user_id, storage)
    if verdict.is_duplicate:
        ...
"""

import logging
from typing import Any, List, Optional, Protocol, Sequence

from .normalize import (
    EMPTY_SIGNATURE,
    GLOBAL_SIMILARITY_THRESHOLD,
    USER_SIMILARITY_THRESHOLD,
    are_names_similar,
    coerce_ingredients,
    compute_recipe_signature,
    normalize_recipe_name,
)
from .schemas import DuplicateType, DuplicateVerdict, ExistingRecipeRef, RecipeOrigin

logger = logging.getLogger(__name__)


class RecipeStorage(Protocol):
    """Read side of the recipe store as seen by the duplicate checks.

    Returned recipes may be objects or mappings; only ``name``,
    ``ingredients`` and (for user recipes) ``id`` are read.
    """

    async def user_has_recipe_by_name(self, user_id: str, name: str) -> bool: ...

    async def get_user_recipes(self, user_id: str) -> Sequence[Any]: ...

    async def get_all_global_recipes(self) -> Sequence[Any]: ...


def _field(recipe: Any, key: str) -> Any:
    if isinstance(recipe, dict):
        return recipe.get(key)
    return getattr(recipe, key, None)


def _signature_of(recipe: Any) -> str:
    ingredients = _field(recipe, "ingredients")
    if not ingredients or not isinstance(ingredients, (list, tuple)):
        return EMPTY_SIGNATURE
    return compute_recipe_signature(list(ingredients))


def _user_ref(recipe: Any) -> ExistingRecipeRef:
    return ExistingRecipeRef(id=_field(recipe, "id"), name=_field(recipe, "name") or "", origin=RecipeOrigin.USER)


def _global_ref(recipe: Any) -> ExistingRecipeRef:
    return ExistingRecipeRef(name=_field(recipe, "name") or "", origin=RecipeOrigin.GLOBAL)


def _verdict(duplicate_type: DuplicateType, message: str, existing: Optional[ExistingRecipeRef] = None) -> DuplicateVerdict:
    logger.debug("Duplicate found (%s): %s", duplicate_type.value, message)
    return DuplicateVerdict(
        is_duplicate=True,
        duplicate_type=duplicate_type,
        existing_recipe=existing,
        message=message,
    )


def _find_same_signature(signature: str, recipes: Sequence[Any]) -> Optional[Any]:
    if signature == EMPTY_SIGNATURE:
        return None
    for recipe in recipes:
        existing = _signature_of(recipe)
        if existing != EMPTY_SIGNATURE and existing == signature:
            return recipe
    return None


async def check_for_duplicates(
    name: str,
    ingredients: Any,
    user_id: str,
    storage: RecipeStorage,
    similarity_threshold: float = USER_SIMILARITY_THRESHOLD,
) -> DuplicateVerdict:
    """Check a candidate against the user's collection, then the global catalog.

    ``ingredients`` may be a list of strings or a legacy comma/newline
    separated string.
    """
    if not isinstance(name, str):
        return DuplicateVerdict(is_duplicate=False)

    ingredient_list: List[str] = coerce_ingredients(ingredients)

    if await storage.user_has_recipe_by_name(user_id, name):
        return _verdict(
            DuplicateType.EXACT_NAME,
            f'You already have a recipe called "{name}" in your collection.',
        )

    user_recipes = await storage.get_user_recipes(user_id)
    for recipe in user_recipes:
        if are_names_similar(name, _field(recipe, "name") or "", similarity_threshold):
            return _verdict(
                DuplicateType.SIMILAR_NAME,
                f'Found a similar recipe "{_field(recipe, "name")}" in your collection.',
                _user_ref(recipe),
            )

    signature = compute_recipe_signature(ingredient_list)
    match = _find_same_signature(signature, user_recipes)
    if match is not None:
        return _verdict(
            DuplicateType.SAME_INGREDIENTS,
            f'Found a recipe with the same ingredients: "{_field(match, "name")}".',
            _user_ref(match),
        )

    # Only exact normalized names count against the global catalog here;
    # fuzzy matching against it is reserved for check_global_duplicate.
    normalized_name = normalize_recipe_name(name)
    for recipe in await storage.get_all_global_recipes():
        if normalize_recipe_name(_field(recipe, "name") or "") == normalized_name:
            return _verdict(
                DuplicateType.GLOBAL_RECIPE,
                f'"{_field(recipe, "name")}" is already in the global recipe library.',
                _global_ref(recipe),
            )

    return DuplicateVerdict(is_duplicate=False)


async def check_global_duplicate(
    name: str,
    ingredients: Any,
    storage: RecipeStorage,
    similarity_threshold: float = GLOBAL_SIMILARITY_THRESHOLD,
) -> DuplicateVerdict:
    """Check a candidate against the global catalog only (admin curation).

    Uses a stricter similarity threshold than the per-user check.
    """
    normalized_name = normalize_recipe_name(name)
    global_recipes = await storage.get_all_global_recipes()

    for recipe in global_recipes:
        if normalize_recipe_name(_field(recipe, "name") or "") == normalized_name:
            return _verdict(
                DuplicateType.EXACT_NAME,
                f'A global recipe named "{_field(recipe, "name")}" already exists.',
                _global_ref(recipe),
            )

    for recipe in global_recipes:
        if are_names_similar(name, _field(recipe, "name") or "", similarity_threshold):
            return _verdict(
                DuplicateType.SIMILAR_NAME,
                f'Found a similar global recipe: "{_field(recipe, "name")}".',
                _global_ref(recipe),
            )

    signature = compute_recipe_signature(coerce_ingredients(ingredients))
    match = _find_same_signature(signature, global_recipes)
    if match is not None:
        return _verdict(
            DuplicateType.SAME_INGREDIENTS,
            f'Found a global recipe with the same ingredients: "{_field(match, "name")}".',
            _global_ref(match),
        )

    return DuplicateVerdict(is_duplicate=False)
