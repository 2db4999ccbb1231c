"""
Lectura del body JSON y gestión de errores de validación.

Los POST/PUT leen el body crudo una sola vez (read_json_body) y a partir
de él se valida el payload tipado; los endpoints de libros además necesitan campos
que no son del libro (idAuthor).
"""

import json
import logging
from typing import Any, Optional, Tuple, Type, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.schemas import violations

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


async def read_json_body(request: Request) -> Any:
    """
    Dependencia: body de la petición como estructura genérica.
    Un body vacío o que no es JSON se devuelve como None y lo rechaza
    después la validación (400).
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        logger.info("Request body is not valid JSON (path=%s)", request.url.path)
        return None


def handle_errors(model: Type[T], content: Any) -> Tuple[Optional[T], Optional[JSONResponse]]:
    """
    Valida `content` contra `model`.

    Devuelve (payload, None) si es válido, o (None, respuesta 400) con la
    lista de errores del validador.
    """
    try:
        return model.model_validate(content), None
    except ValidationError as e:
        errors = violations(e)
        logger.info("Validation failed for %s: %s", model.__name__, errors)
        return None, JSONResponse(status_code=400, content=errors)
