import asyncio
import logging
import logging.config
from pathlib import Path

from barbook.config import GLOBAL_SIMILARITY_THRESHOLD, LOGGING_CONFIG
from barbook.crud import SqlRecipeStorage, create_global_recipe
from barbook.db import init_db, SessionLocal
from barbook.duplicates import check_global_duplicate
from barbook.recipes import load_recipes

logger = logging.getLogger("barbook.import_data")


async def import_recipes(db, recipes):
    storage = SqlRecipeStorage(db)
    added = 0
    for recipe in recipes:
        verdict = await check_global_duplicate(
            recipe.name,
            recipe.ingredients,
            storage,
            similarity_threshold=GLOBAL_SIMILARITY_THRESHOLD,
        )
        if verdict.is_duplicate:
            logger.info("Skipping '%s': %s", recipe.name, verdict.message)
            continue
        create_global_recipe(db, recipe)
        added += 1
    return added


def main():
    logging.config.dictConfig(LOGGING_CONFIG)
    init_db()
    p = Path(__file__).resolve().parents[1] / 'data' / 'global_recipes.json'
    if not p.exists():
        print('data/global_recipes.json not found')
        return
    db = SessionLocal()
    try:
        added = asyncio.run(import_recipes(db, load_recipes(p)))
    finally:
        db.close()
    print(f'Imported {added} recipes')


if __name__ == '__main__':
    main()
