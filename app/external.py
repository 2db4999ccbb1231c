"""
app/external.py

Passthrough hacia una API externa.

GET /api/external/getSfDoc llama a EXTERNAL_DOC_URL (por defecto
https://api.github.com/repos/symfony/symfony-docs) y devuelve el body y el
status tal cual. Sin reintentos ni caché.

Los errores de la llamada (urllib.error.URLError / HTTPError) no se
capturan aquí: los convierte en 502 el handler registrado en main.py.
"""

import logging
import urllib.request

from fastapi import APIRouter, Response

from app.config import external_doc_url, external_timeout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/external", tags=["external"])


def _fetch(url: str):
    """GET a `url`. Devuelve (status, body en bytes)."""
    req = urllib.request.Request(url, method="GET", headers={"Accept": "application/json"})
    timeout = external_timeout()
    if timeout is None:
        opened = urllib.request.urlopen(req)
    else:
        opened = urllib.request.urlopen(req, timeout=timeout)
    with opened as resp:
        return resp.status, resp.read()


@router.get("/getSfDoc", name="external_api")
def get_symfony_doc():
    """Reenvía la respuesta de la API de GitHub sin modificarla."""
    url = external_doc_url()
    status, body = _fetch(url)
    logger.info("External call url=%s status=%s bytes=%s", url, status, len(body))
    return Response(content=body, status_code=status, media_type="application/json")
