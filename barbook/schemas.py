from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class DuplicateType(str, Enum):
    EXACT_NAME = "exact_name"
    SIMILAR_NAME = "similar_name"
    SAME_INGREDIENTS = "same_ingredients"
    GLOBAL_RECIPE = "global_recipe"


class RecipeOrigin(str, Enum):
    USER = "user"
    GLOBAL = "global"


class ExistingRecipeRef(BaseModel):
    id: Optional[int] = None
    name: str
    origin: RecipeOrigin


class DuplicateVerdict(BaseModel):
    """Outcome of a duplicate check.

    Serialize with ``to_response()`` for the camelCase wire shape; a clean
    result is exactly ``{"isDuplicate": false}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    is_duplicate: bool = Field(..., alias="isDuplicate")
    duplicate_type: Optional[DuplicateType] = Field(None, alias="duplicateType")
    existing_recipe: Optional[ExistingRecipeRef] = Field(None, alias="existingRecipe")
    message: Optional[str] = None

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class RecipeBase(BaseModel):
    name: str = Field(
        ..., json_schema_extra={"example": "Daiquiri"}
    )
    ingredients: List[str] = Field(
        default_factory=list,
        json_schema_extra={
            "example": ["2 oz White Rum", "1 oz Lime Juice", "0.75 oz Simple Syrup"]
        },
    )
    instructions: Optional[str] = Field(
        None,
        json_schema_extra={"example": "Shake with ice and fine strain into a coupe."},
    )
    category: Optional[str] = None
    glass_type: Optional[str] = None
    garnish: Optional[str] = None


class RecipeCreate(RecipeBase):
    pass


class UserRecipe(RecipeBase):
    id: int
    user_id: str

    model_config = ConfigDict(from_attributes=True)


class GlobalRecipeCreate(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "Paloma"})
    ingredients: List[str] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    category: Optional[str] = None
    glass_type: Optional[str] = None
    garnish: Optional[str] = None
    creator: Optional[str] = None


class GlobalRecipe(GlobalRecipeCreate):
    id: int
    slug: str

    model_config = ConfigDict(from_attributes=True)


class DuplicateCheckRequest(BaseModel):
    name: str
    ingredients: List[str] = Field(default_factory=list)


class GlobalRecipePage(BaseModel):
    items: List[GlobalRecipe]
    total: int
    page: int
    page_size: int
