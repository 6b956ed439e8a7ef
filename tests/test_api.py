# flake8: noqa
import sys
from pathlib import Path

# Ensure project root is on sys.path so `barbook` can be imported when tests are run
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import json
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient  # noqa: E402

from barbook import app as app_module
from barbook import models


SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
# Use StaticPool so the same in-memory database is shared across connections
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create tables in the in-memory database
models.Base.metadata.create_all(bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app_module.app.dependency_overrides[app_module.get_db] = override_get_db
client = TestClient(app_module.app)


def as_user(user_id):
    return {"X-User-Id": user_id}


DAIQUIRI = ["2 oz White Rum", "1 oz Lime Juice", "0.75 oz Simple Syrup"]


def test_missing_user_header():
    res = client.get("/api/recipes")
    assert res.status_code == 401


def test_create_and_list_recipes():
    res = client.post("/api/recipes", json={"name": "Daiquiri", "ingredients": DAIQUIRI}, headers=as_user("alice"))
    assert res.status_code == 200
    obj = res.json()
    assert obj["name"] == "Daiquiri"
    assert obj["ingredients"] == DAIQUIRI
    assert obj["user_id"] == "alice"

    res = client.get("/api/recipes", headers=as_user("alice"))
    assert res.status_code == 200
    assert [r["name"] for r in res.json()] == ["Daiquiri"]

    # other users don't see it
    res = client.get("/api/recipes", headers=as_user("bob"))
    assert res.json() == []


def test_duplicate_exact_name_is_rejected():
    headers = as_user("carol")
    client.post("/api/recipes", json={"name": "Daiquiri", "ingredients": DAIQUIRI}, headers=headers)

    res = client.post("/api/recipes", json={"name": "daiquiri", "ingredients": DAIQUIRI}, headers=headers)
    assert res.status_code == 409
    data = res.json()
    assert data["isDuplicate"] is True
    assert data["duplicateType"] == "exact_name"
    assert "existingRecipe" not in data
    assert "daiquiri" in data["message"]


def test_duplicate_similar_name_reports_existing_recipe():
    headers = as_user("dave")
    created = client.post("/api/recipes", json={"name": "The Last Word", "ingredients": []}, headers=headers).json()

    res = client.post("/api/recipes/check-duplicate", json={"name": "Last Word"}, headers=headers)
    assert res.status_code == 200
    data = res.json()
    assert data["duplicateType"] == "similar_name"
    assert data["existingRecipe"] == {"id": created["id"], "name": "The Last Word", "origin": "user"}


def test_duplicate_same_ingredients():
    headers = as_user("erin")
    client.post(
        "/api/recipes",
        json={"name": "Classic Negroni", "ingredients": ["1 oz Gin", "1 oz Campari", "1 oz Sweet Vermouth"]},
        headers=headers,
    )
    res = client.post(
        "/api/recipes",
        json={"name": "Negroni Twist", "ingredients": ["1 oz gin", "1 oz campari", "1 oz sweet vermouth"]},
        headers=headers,
    )
    assert res.status_code == 409
    assert res.json()["duplicateType"] == "same_ingredients"


def test_force_skips_duplicate_check():
    headers = as_user("frank")
    client.post("/api/recipes", json={"name": "Gimlet", "ingredients": ["2 oz Gin", "0.75 oz Lime Cordial"]}, headers=headers)
    res = client.post("/api/recipes?force=true", json={"name": "Gimlet", "ingredients": []}, headers=headers)
    assert res.status_code == 200
    assert len(client.get("/api/recipes", headers=headers).json()) == 2


def test_global_recipe_blocks_user_copy():
    res = client.post("/api/global-recipes", json={"name": "Paloma", "ingredients": ["2 oz Tequila", "Grapefruit Soda"]})
    assert res.status_code == 200
    assert res.json()["slug"] == "paloma"

    res = client.post("/api/recipes/check-duplicate", json={"name": " the paloma "}, headers=as_user("gina"))
    data = res.json()
    assert data["duplicateType"] == "global_recipe"
    assert data["existingRecipe"] == {"name": "Paloma", "origin": "global"}


def test_not_a_duplicate_response_shape():
    res = client.post(
        "/api/recipes/check-duplicate",
        json={"name": "Jungle Bird", "ingredients": ["1.5 oz Blackstrap Rum", "0.75 oz Campari", "1.5 oz Pineapple"]},
        headers=as_user("hank"),
    )
    assert res.status_code == 200
    assert res.json() == {"isDuplicate": False}


def test_get_and_delete_recipe_are_owner_scoped():
    rid = client.post("/api/recipes", json={"name": "Bee's Knees", "ingredients": []}, headers=as_user("ivy")).json()["id"]

    assert client.get(f"/api/recipes/{rid}", headers=as_user("ivy")).status_code == 200
    assert client.get(f"/api/recipes/{rid}", headers=as_user("jack")).status_code == 404
    assert client.delete(f"/api/recipes/{rid}", headers=as_user("jack")).status_code == 404

    res = client.delete(f"/api/recipes/{rid}", headers=as_user("ivy"))
    assert res.status_code == 200
    assert res.json().get("deleted") is True
    assert client.get(f"/api/recipes/{rid}", headers=as_user("ivy")).status_code == 404


def test_global_curation_rejects_duplicates():
    res = client.post("/api/global-recipes", json={"name": "Corpse Reviver No. 2", "ingredients": ["0.75 oz Gin", "0.75 oz Lillet Blanc"]})
    assert res.status_code == 200

    res = client.post("/api/global-recipes", json={"name": "The Corpse Reviver No 2", "ingredients": []})
    assert res.status_code == 409
    assert res.json()["duplicateType"] == "exact_name"

    res = client.post("/api/global-recipes/check-duplicate", json={"name": "Reviver Special", "ingredients": ["Lillet Blanc", "Gin"]})
    assert res.json()["duplicateType"] == "same_ingredients"


def test_global_force_creates_unique_slug():
    client.post("/api/global-recipes", json={"name": "Southside", "ingredients": []})
    res = client.post("/api/global-recipes?force=true", json={"name": "Southside", "ingredients": []})
    assert res.status_code == 200
    assert res.json()["slug"] == "southside-2"

    res = client.get("/api/global-recipes/southside-2")
    assert res.status_code == 200
    assert res.json()["name"] == "Southside"
    assert client.get("/api/global-recipes/no-such-drink").status_code == 404


def test_search_global_recipes():
    for name in ["Zombie", "Zombie Punch Royale", "Hurricane"]:
        client.post("/api/global-recipes?force=true", json={"name": name, "ingredients": []})

    res = client.get("/api/global-recipes?q=zombie&page=1&page_size=10")
    assert res.status_code == 200
    data = res.json()
    assert data["total"] == 2
    assert [it["name"] for it in data["items"]] == ["Zombie", "Zombie Punch Royale"]


def test_link_headers_pagination():
    # ensure we have multiple items
    for i in range(1, 12):
        client.post("/api/global-recipes?force=true", json={"name": f"Lnk{i}", "ingredients": ["x"]})

    # request page 2 with page_size 5 -> should have prev and next
    res = client.get("/api/global-recipes?q=lnk&page=2&page_size=5")
    assert res.status_code == 200
    link = res.headers.get("Link")
    assert link is not None
    assert 'rel="prev"' in link and 'rel="next"' in link

    # first page should not have prev
    res = client.get("/api/global-recipes?q=lnk&page=1&page_size=5")
    link = res.headers.get("Link")
    assert link is not None
    assert 'rel="prev"' not in link and 'rel="next"' in link

    # last page has no next
    res = client.get("/api/global-recipes?q=lnk&page=3&page_size=5")
    link = res.headers.get("Link")
    assert 'rel="next"' not in link
    assert len(res.json()["items"]) == 1


def test_stored_ingredients_are_json_lists():
    db = TestingSessionLocal()
    r = models.UserRecipe(user_id="kim", name="Sidecar", ingredients=json.dumps(["2 oz Cognac", "0.75 oz Cointreau"]))
    db.add(r)
    db.commit()
    db.close()

    res = client.post(
        "/api/recipes",
        json={"name": "Brandy Sour", "ingredients": ["1.5 oz cognac", "0.75 oz COINTREAU"]},
        headers=as_user("kim"),
    )
    assert res.status_code == 409
    assert res.json()["existingRecipe"]["name"] == "Sidecar"


def test_exact_name_with_accented_capitals():
    headers = as_user("lena")
    client.post("/api/recipes", json={"name": "PIÑA COLADA", "ingredients": []}, headers=headers)

    res = client.post("/api/recipes/check-duplicate", json={"name": "piña colada"}, headers=headers)
    data = res.json()
    assert data["isDuplicate"] is True
    assert data["duplicateType"] == "exact_name"


def test_update_recipe():
    headers = as_user("mia")
    rid = client.post("/api/recipes", json={"name": "Tom Collins", "ingredients": ["2 oz Gin"]}, headers=headers).json()["id"]

    res = client.put(f"/api/recipes/{rid}", json={"name": "John Collins", "ingredients": ["2 oz Bourbon"]}, headers=headers)
    assert res.status_code == 200
    assert res.json()["name"] == "John Collins"
    assert res.json()["ingredients"] == ["2 oz Bourbon"]

    # another user's recipe, or a missing one, is not found
    res = client.put(f"/api/recipes/{rid}", json={"name": "Stolen"}, headers=as_user("ned"))
    assert res.status_code == 404
    res = client.put("/api/recipes/999999", json={"name": "Ghost"}, headers=headers)
    assert res.status_code == 404


def test_reset_recipes_clears_only_callers_collection():
    client.post("/api/recipes", json={"name": "Aviation", "ingredients": []}, headers=as_user("olga"))
    client.post("/api/recipes", json={"name": "Bramble", "ingredients": []}, headers=as_user("olga"))
    client.post("/api/recipes", json={"name": "Aviation", "ingredients": []}, headers=as_user("pete"))

    res = client.delete("/api/recipes/reset", headers=as_user("olga"))
    assert res.status_code == 200
    assert res.json() == {"deleted": 2}
    assert client.get("/api/recipes", headers=as_user("olga")).json() == []
    assert len(client.get("/api/recipes", headers=as_user("pete")).json()) == 1

    # a reset collection no longer blocks re-adding
    res = client.post("/api/recipes", json={"name": "Aviation", "ingredients": []}, headers=as_user("olga"))
    assert res.status_code == 200
