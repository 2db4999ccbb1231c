"""
app/fixtures.py

Datos de prueba para desarrollo:
- 2 usuarios: user@bookapi.com (ROLE_USER) y admin@bookapi.com (ROLE_ADMIN), contraseña "password"
- 10 autores: "Prénom {j}" / "Nom {j}"
- 20 libros: "Livre {i}" / "Texte du couverture{i}", con un autor al azar

Uso:
    python -m app.fixtures            # crea tablas y carga datos
    python -m app.fixtures --reset    # borra las tablas antes
"""

import argparse
import logging
import random
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app import models
from app.database import Base, SessionLocal, engine
from app.security import ROLE_ADMIN, ROLE_USER, hash_password

logger = logging.getLogger(__name__)

DEFAULT_PASSWORD = "password"


def load_fixtures(db: Session, rng: Optional[random.Random] = None) -> Dict[str, int]:
    """
    Inserta usuarios, autores y libros y hace un único commit.
    `rng` permite fijar la asignación de autores (tests).
    """
    rng = rng or random.Random()

    db.add(models.User(
        email="user@bookapi.com",
        roles=[ROLE_USER],
        password=hash_password(DEFAULT_PASSWORD),
    ))
    db.add(models.User(
        email="admin@bookapi.com",
        roles=[ROLE_ADMIN],
        password=hash_password(DEFAULT_PASSWORD),
    ))

    authors = []
    for j in range(10):
        author = models.Author(first_name=f"Prénom {j}", last_name=f"Nom {j}")
        db.add(author)
        authors.append(author)

    for i in range(20):
        db.add(models.Book(
            title=f"Livre {i}",
            cover_text=f"Texte du couverture{i}",
            author=rng.choice(authors),
        ))

    db.commit()

    counts = {"users": 2, "authors": len(authors), "books": 20}
    logger.info("Fixtures loaded: %s", counts)
    return counts


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Load development fixtures into the database")
    parser.add_argument("--reset", action="store_true", help="drop all tables before loading")
    parser.add_argument("--seed", type=int, default=None, help="random seed for author assignment")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    if args.reset:
        Base.metadata.drop_all(bind=engine)
        logger.info("Tables dropped")
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        load_fixtures(db, random.Random(args.seed))
    finally:
        db.close()


if __name__ == "__main__":
    main()
