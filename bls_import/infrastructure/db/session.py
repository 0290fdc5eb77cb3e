from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from bls_import.config import DATABASE_URL
from .base import Base

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

__all__ = ["Base", "engine", "SessionLocal"]
