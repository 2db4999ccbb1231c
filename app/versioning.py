"""
app/versioning.py

Versionado de la API por el header Accept.

El cliente pide una versión así:
    Accept: application/json;version=2.0

Si no hay segmento 'version' (o no hay header), se usa la versión por
defecto configurada en DEFAULT_API_VERSION.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from app.config import default_api_version

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class ApiVersion:
    major: int
    minor: int = 0

    @classmethod
    def parse(cls, text: str) -> "ApiVersion":
        """
        "2.0" -> ApiVersion(2, 0), "2" -> ApiVersion(2, 0).
        Lanza ValueError si el texto no es una versión.
        """
        parts = text.strip().split(".")
        if not 1 <= len(parts) <= 2 or not all(p.isdigit() for p in parts):
            raise ValueError(f"Invalid API version: {text!r}")
        major = int(parts[0])
        minor = int(parts[1]) if len(parts) == 2 else 0
        return cls(major, minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


def negotiate_version(accept: Optional[str], default: ApiVersion) -> ApiVersion:
    """
    Extrae la versión del header Accept.

    - Se parte el header por ';' y gana el primer segmento que contenga 'version'.
    - Ese segmento se parte por '=' y se toma el segundo componente.
    - Sin header, sin segmento 'version' o con un valor mal formado -> default.
    """
    if not accept:
        return default

    for segment in accept.split(";"):
        if "version" not in segment:
            continue
        pieces = segment.split("=")
        if len(pieces) < 2:
            break
        try:
            return ApiVersion.parse(pieces[1])
        except ValueError:
            logger.debug("Ignoring malformed version in Accept header: %s", segment)
        break

    return default


FALLBACK_VERSION = ApiVersion(1, 0)


def _default_version() -> ApiVersion:
    """DEFAULT_API_VERSION; si está mal formada se usa 1.0."""
    raw = default_api_version()
    try:
        return ApiVersion.parse(raw)
    except ValueError:
        logger.warning("Invalid DEFAULT_API_VERSION=%r, using %s", raw, FALLBACK_VERSION)
        return FALLBACK_VERSION


def api_version(request: Request) -> ApiVersion:
    """Dependencia FastAPI: versión pedida en la petición actual."""
    return negotiate_version(request.headers.get("Accept"), _default_version())


def get_version(request: Request) -> str:
    """Versión de la petición actual como texto, p.ej. "2.0"."""
    return str(api_version(request))
