import json
import re
from typing import List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from . import models, schemas


def _load_list(raw: Optional[str]) -> List[str]:
    return json.loads(raw or "[]")


def to_user_recipe(db_recipe: models.UserRecipe) -> schemas.UserRecipe:
    return schemas.UserRecipe(
        id=db_recipe.id,
        user_id=db_recipe.user_id,
        name=db_recipe.name,
        ingredients=_load_list(db_recipe.ingredients),
        instructions=db_recipe.instructions,
        category=db_recipe.category,
        glass_type=db_recipe.glass_type,
        garnish=db_recipe.garnish,
    )


def to_global_recipe(db_recipe: models.GlobalRecipe) -> schemas.GlobalRecipe:
    return schemas.GlobalRecipe(
        id=db_recipe.id,
        slug=db_recipe.slug,
        name=db_recipe.name,
        description=db_recipe.description,
        ingredients=_load_list(db_recipe.ingredients),
        instructions=_load_list(db_recipe.instructions),
        category=db_recipe.category,
        glass_type=db_recipe.glass_type,
        garnish=db_recipe.garnish,
        creator=db_recipe.creator,
    )


def get_user_recipe(db: Session, user_id: str, recipe_id: int):
    return (
        db.query(models.UserRecipe)
        .filter(models.UserRecipe.id == recipe_id, models.UserRecipe.user_id == user_id)
        .first()
    )


def _name_key(name: Optional[str]) -> str:
    return (name or "").strip().casefold()


def get_user_recipe_by_name(db: Session, user_id: str, name: str):
    # SQLite lower() is ASCII-only, so names are case-folded here
    key = _name_key(name)
    for db_recipe in get_user_recipes(db, user_id):
        if _name_key(db_recipe.name) == key:
            return db_recipe
    return None


def get_user_recipes(db: Session, user_id: str):
    return (
        db.query(models.UserRecipe)
        .filter(models.UserRecipe.user_id == user_id)
        .order_by(models.UserRecipe.id)
        .all()
    )


def create_user_recipe(db: Session, user_id: str, recipe: schemas.RecipeCreate):
    db_recipe = models.UserRecipe(
        user_id=user_id,
        name=recipe.name,
        ingredients=json.dumps(recipe.ingredients or []),
        instructions=recipe.instructions,
        category=recipe.category,
        glass_type=recipe.glass_type,
        garnish=recipe.garnish,
    )
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    return db_recipe


def update_user_recipe(db: Session, user_id: str, recipe_id: int, recipe: schemas.RecipeCreate):
    db_recipe = get_user_recipe(db, user_id, recipe_id)
    if not db_recipe:
        return None
    db_recipe.name = recipe.name
    db_recipe.ingredients = json.dumps(recipe.ingredients or [])
    db_recipe.instructions = recipe.instructions
    db_recipe.category = recipe.category
    db_recipe.glass_type = recipe.glass_type
    db_recipe.garnish = recipe.garnish
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    return db_recipe


def reset_user_recipes(db: Session, user_id: str) -> int:
    deleted = (
        db.query(models.UserRecipe)
        .filter(models.UserRecipe.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def delete_user_recipe(db: Session, user_id: str, recipe_id: int):
    db_recipe = get_user_recipe(db, user_id, recipe_id)
    if not db_recipe:
        return False
    db.delete(db_recipe)
    db.commit()
    return True


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "recipe"


def get_global_recipe_by_slug(db: Session, slug: str):
    return db.query(models.GlobalRecipe).filter(models.GlobalRecipe.slug == slug).first()


def get_all_global_recipes(db: Session):
    return db.query(models.GlobalRecipe).order_by(models.GlobalRecipe.id).all()


def search_global_recipes(
    db: Session, q: Optional[str] = None, skip: int = 0, limit: int = 20
) -> Tuple[list, int]:
    query = db.query(models.GlobalRecipe)
    if q:
        query = query.filter(func.lower(models.GlobalRecipe.name).contains(q.lower()))
    total = query.count()
    items = query.order_by(models.GlobalRecipe.name).offset(skip).limit(limit).all()
    return items, total


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)
    slug = base
    n = 2
    while get_global_recipe_by_slug(db, slug):
        slug = f"{base}-{n}"
        n += 1
    return slug


def create_global_recipe(db: Session, recipe: schemas.GlobalRecipeCreate):
    db_recipe = models.GlobalRecipe(
        slug=_unique_slug(db, recipe.name),
        name=recipe.name,
        description=recipe.description,
        ingredients=json.dumps(recipe.ingredients or []),
        instructions=json.dumps(recipe.instructions or []),
        category=recipe.category,
        glass_type=recipe.glass_type,
        garnish=recipe.garnish,
        creator=recipe.creator,
    )
    db.add(db_recipe)
    db.commit()
    db.refresh(db_recipe)
    return db_recipe


class SqlRecipeStorage:
    """Duplicate-check storage backed by a SQLAlchemy session.

    Queries run in the threadpool so awaiting them never blocks the event loop.
    """

    def __init__(self, db: Session):
        self.db = db

    async def user_has_recipe_by_name(self, user_id: str, name: str) -> bool:
        found = await run_in_threadpool(get_user_recipe_by_name, self.db, user_id, name)
        return found is not None

    async def get_user_recipes(self, user_id: str) -> List[schemas.UserRecipe]:
        def load():
            return [to_user_recipe(r) for r in get_user_recipes(self.db, user_id)]

        return await run_in_threadpool(load)

    async def get_all_global_recipes(self) -> List[schemas.GlobalRecipe]:
        def load():
            return [to_global_recipe(r) for r in get_all_global_recipes(self.db)]

        return await run_in_threadpool(load)
