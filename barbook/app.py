import logging
import logging.config
from contextlib import asynccontextmanager
from typing import List

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from . import crud, schemas
from .config import GLOBAL_SIMILARITY_THRESHOLD, LOGGING_CONFIG, USER_SIMILARITY_THRESHOLD
from .db import SessionLocal, init_db
from .duplicates import check_for_duplicates, check_global_duplicate

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.config.dictConfig(LOGGING_CONFIG)
    # Initialize DB once at startup
    init_db()
    yield


app = FastAPI(lifespan=lifespan)

# Allow CORS for API clients (adjust origins for production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_storage(db: Session = Depends(get_db)) -> crud.SqlRecipeStorage:
    return crud.SqlRecipeStorage(db)


def get_current_user(x_user_id: str | None = Header(default=None)) -> str:
    # Authentication happens upstream; we only need a stable user id
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return x_user_id


def _conflict(verdict: schemas.DuplicateVerdict) -> JSONResponse:
    return JSONResponse(status_code=409, content=verdict.to_response())


@app.get("/api/recipes", response_model=List[schemas.UserRecipe])
def list_recipes(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    return [crud.to_user_recipe(r) for r in crud.get_user_recipes(db, user_id)]


@app.post("/api/recipes", response_model=schemas.UserRecipe)
async def create_recipe(
    recipe: schemas.RecipeCreate,
    force: bool = False,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not force:
        verdict = await check_for_duplicates(
            recipe.name,
            recipe.ingredients,
            user_id,
            crud.SqlRecipeStorage(db),
            similarity_threshold=USER_SIMILARITY_THRESHOLD,
        )
        if verdict.is_duplicate:
            logger.info(
                "Rejected recipe '%s' for user %s: %s",
                recipe.name, user_id, verdict.duplicate_type.value,
            )
            return _conflict(verdict)
    created = await run_in_threadpool(crud.create_user_recipe, db, user_id, recipe)
    return crud.to_user_recipe(created)


@app.post("/api/recipes/check-duplicate")
async def check_recipe_duplicate(
    body: schemas.DuplicateCheckRequest,
    user_id: str = Depends(get_current_user),
    storage: crud.SqlRecipeStorage = Depends(get_storage),
):
    verdict = await check_for_duplicates(
        body.name,
        body.ingredients,
        user_id,
        storage,
        similarity_threshold=USER_SIMILARITY_THRESHOLD,
    )
    return verdict.to_response()


# must be registered before /api/recipes/{recipe_id}
@app.delete("/api/recipes/reset")
def reset_recipes(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    deleted = crud.reset_user_recipes(db, user_id)
    logger.info("Reset %d recipe(s) for user %s", deleted, user_id)
    return {"deleted": deleted}


@app.get("/api/recipes/{recipe_id}", response_model=schemas.UserRecipe)
def get_recipe(recipe_id: int, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    r = crud.get_user_recipe(db, user_id, recipe_id)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return crud.to_user_recipe(r)


@app.put("/api/recipes/{recipe_id}", response_model=schemas.UserRecipe)
def update_recipe(
    recipe_id: int,
    recipe: schemas.RecipeCreate,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    r = crud.update_user_recipe(db, user_id, recipe_id, recipe)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return crud.to_user_recipe(r)


@app.delete("/api/recipes/{recipe_id}")
def delete_recipe(recipe_id: int, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    if not crud.delete_user_recipe(db, user_id, recipe_id):
        raise HTTPException(status_code=404, detail="Recipe not found")
    return {"deleted": True}


def _link_header(request: Request, page: int, page_size: int, total: int) -> str:
    links = []
    if page > 1:
        prev_url = request.url.include_query_params(page=page - 1, page_size=page_size)
        links.append(f'<{prev_url}>; rel="prev"')
    if page * page_size < total:
        next_url = request.url.include_query_params(page=page + 1, page_size=page_size)
        links.append(f'<{next_url}>; rel="next"')
    return ", ".join(links)


@app.get("/api/global-recipes", response_model=schemas.GlobalRecipePage)
def list_global_recipes(
    request: Request,
    response: Response,
    q: str | None = None,
    page: int = 1,
    page_size: int = 20,
    db: Session = Depends(get_db),
):
    page = max(page, 1)
    page_size = min(max(page_size, 1), 100)
    items, total = crud.search_global_recipes(db, q=q, skip=(page - 1) * page_size, limit=page_size)
    link = _link_header(request, page, page_size, total)
    if link:
        response.headers["Link"] = link
    return {
        "items": [crud.to_global_recipe(r) for r in items],
        "total": total,
        "page": page,
        "page_size": page_size,
    }


@app.post("/api/global-recipes", response_model=schemas.GlobalRecipe)
async def create_global_recipe(
    recipe: schemas.GlobalRecipeCreate,
    force: bool = False,
    db: Session = Depends(get_db),
):
    if not force:
        verdict = await check_global_duplicate(
            recipe.name,
            recipe.ingredients,
            crud.SqlRecipeStorage(db),
            similarity_threshold=GLOBAL_SIMILARITY_THRESHOLD,
        )
        if verdict.is_duplicate:
            logger.info("Rejected global recipe '%s': %s", recipe.name, verdict.duplicate_type.value)
            return _conflict(verdict)
    created = await run_in_threadpool(crud.create_global_recipe, db, recipe)
    return crud.to_global_recipe(created)


@app.post("/api/global-recipes/check-duplicate")
async def check_global_recipe_duplicate(
    body: schemas.DuplicateCheckRequest,
    storage: crud.SqlRecipeStorage = Depends(get_storage),
):
    verdict = await check_global_duplicate(
        body.name,
        body.ingredients,
        storage,
        similarity_threshold=GLOBAL_SIMILARITY_THRESHOLD,
    )
    return verdict.to_response()


@app.get("/api/global-recipes/{slug}", response_model=schemas.GlobalRecipe)
def get_global_recipe(slug: str, db: Session = Depends(get_db)):
    r = crud.get_global_recipe_by_slug(db, slug)
    if not r:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return crud.to_global_recipe(r)
