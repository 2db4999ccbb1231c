"""
app/config.py

Configuración por variables de entorno.

Se leen en cada llamada (no al importar) para que los tests puedan
cambiarlas con monkeypatch.setenv.
"""

import os
from typing import Optional


def database_url() -> str:
    """
    URL de SQLAlchemy. En Docker apunta a PostgreSQL, en local a SQLite.
    Ejemplo: postgresql+psycopg2://user:pass@db:5432/library_db
    """
    return os.getenv("DATABASE_URL", "sqlite:///./bookapi.db")


def default_api_version() -> str:
    """Versión usada cuando el header Accept no trae 'version=X.Y'."""
    return os.getenv("DEFAULT_API_VERSION", "1.0")


def external_doc_url() -> str:
    return os.getenv(
        "EXTERNAL_DOC_URL", "https://api.github.com/repos/symfony/symfony-docs"
    )


def external_timeout() -> Optional[float]:
    """
    Timeout (segundos) de la llamada externa.
    Sin valor -> se usa el comportamiento por defecto de urllib.
    """
    raw = os.getenv("EXTERNAL_TIMEOUT")
    return float(raw) if raw else None


def log_level() -> str:
    return os.getenv("LOG_LEVEL", "INFO").upper()
