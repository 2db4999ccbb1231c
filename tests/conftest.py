import os

# Antes de importar la app: BD SQLite en memoria compartida
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DEFAULT_API_VERSION"] = "1.0"

import pytest

from app import models
from app.cache import cache
from app.database import Base, SessionLocal, engine
from app.security import ROLE_ADMIN, ROLE_USER, hash_password

ADMIN = ("admin@bookapi.com", "password")
USER = ("user@bookapi.com", "password")


@pytest.fixture(autouse=True)
def fresh_state():
    """Tablas vacías, usuarios de prueba y caché vacío en cada test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    cache.clear()

    db = SessionLocal()
    # Pocas iteraciones para que los tests sean rápidos
    db.add(models.User(email=ADMIN[0], roles=[ROLE_ADMIN], password=hash_password(ADMIN[1], iterations=1000)))
    db.add(models.User(email=USER[0], roles=[ROLE_USER], password=hash_password(USER[1], iterations=1000)))
    db.commit()
    db.close()

    yield

    cache.clear()


def create_author(first_name="Victor", last_name="Hugo") -> int:
    db = SessionLocal()
    try:
        author = models.Author(first_name=first_name, last_name=last_name)
        db.add(author)
        db.commit()
        return author.id
    finally:
        db.close()


def create_book(title="Les Misérables", cover_text=None, comment=None, author_id=None) -> int:
    db = SessionLocal()
    try:
        book = models.Book(title=title, cover_text=cover_text, comment=comment, author_id=author_id)
        db.add(book)
        db.commit()
        return book.id
    finally:
        db.close()


def count(model) -> int:
    db = SessionLocal()
    try:
        return db.query(model).count()
    finally:
        db.close()


def fetch(model, obj_id):
    """Lee una fila con una sesión nueva (sin identity map de otras sesiones)."""
    db = SessionLocal()
    try:
        obj = db.get(model, obj_id)
        if obj is not None:
            db.expunge(obj)
        return obj
    finally:
        db.close()
