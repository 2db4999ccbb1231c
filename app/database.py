from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import database_url

SQLALCHEMY_DATABASE_URL = database_url()

engine_kwargs = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # SQLite se usa desde el threadpool de FastAPI
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if SQLALCHEMY_DATABASE_URL in ("sqlite://", "sqlite:///:memory:"):
        # Una sola conexión compartida; si no, cada conexión ve una BD vacía
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(SQLALCHEMY_DATABASE_URL, **engine_kwargs)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Aquí se define la base para que models.py la pueda importar
Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

# Rango de las columnas Integer (ids) y de LIMIT/OFFSET (BIGINT) en SQLite y PostgreSQL
MAX_DB_ID = 2**31 - 1
MAX_DB_INT = 2**63 - 1
