from sqlalchemy import Column, Integer, String, Text
from .db import Base


class UserRecipe(Base):
    __tablename__ = "user_recipes"
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(100), index=True, nullable=False)
    name = Column(String(200), nullable=False)
    ingredients = Column(Text, nullable=True)  # JSON-encoded list
    instructions = Column(Text, nullable=True)
    category = Column(String(100), nullable=True)
    glass_type = Column(String(100), nullable=True)
    garnish = Column(String(200), nullable=True)


class GlobalRecipe(Base):
    __tablename__ = "global_recipes"
    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(200), unique=True, index=True, nullable=False)
    name = Column(String(200), index=True, nullable=False)
    description = Column(Text, nullable=True)
    ingredients = Column(Text, nullable=True)  # JSON-encoded list
    instructions = Column(Text, nullable=True)  # JSON-encoded list
    category = Column(String(100), nullable=True)
    glass_type = Column(String(100), nullable=True)
    garnish = Column(String(200), nullable=True)
    creator = Column(String(200), nullable=True)
