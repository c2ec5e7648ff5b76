from .database import init_db, get_db, get_db_dependency, engine, SessionLocal
from .models import Base, Category, Company, Review, BusinessUpdate

__all__ = [
    "init_db", "get_db", "get_db_dependency", "engine", "SessionLocal",
    "Base", "Category", "Company", "Review", "BusinessUpdate",
]
