"""
app/main.py

API de Libros y Autores (FastAPI).

- Autores y libros con relación uno-a-muchos (un autor tiene varios libros).
- Listados paginados con caché por tags (authorsCache / booksCache).
- Escritura protegida por roles (ROLE_ADMIN para alta/modificación).
- Versionado por header: Accept: application/json;version=2.0
- Passthrough a una API externa (GitHub).

Observabilidad:
- GET /health   -> healthcheck con verificación DB
- GET /metrics  -> métricas Prometheus
"""

import logging
import time
import urllib.error
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.config import log_level
from app.database import engine, Base
from app import models  # noqa: F401  (registra las tablas en Base.metadata)
from app import authors, books, external

logger = logging.getLogger("app")
logging.basicConfig(
    level=log_level(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Tablas verificadas/creadas correctamente.")
except SQLAlchemyError as e:
    # Otro proceso puede estar creándolas a la vez
    logger.warning("Aviso en DB: Las tablas ya existen o están siendo creadas: %s", e)

app = FastAPI(
    title="API de Libros",
    description="Gestión de autores y libros con caché, roles y versionado",
    version="1.0.0",
)

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "path"]
)

def _route_path(request: Request) -> str:
    """Plantilla de la ruta (/api/books/{book_id}) para no crear una serie por id."""
    route = request.scope.get("route")
    if route is None:
        return "<unmatched>"
    return getattr(route, "path_format", getattr(route, "path", "<unmatched>"))


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id", str(uuid4()))
    start = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.exception(
            "request_id=%s method=%s path=%s error=%s",
            request_id, request.method, request.url.path, str(exc)
        )
        raise

    duration_ms = int((time.time() - start) * 1000)
    logger.info(
        "request_id=%s method=%s path=%s status=%s duration_ms=%s",
        request_id, request.method, request.url.path, response.status_code, duration_ms
    )
    path = _route_path(request)
    REQUEST_COUNT.labels(request.method, path, str(response.status_code)).inc()
    REQUEST_LATENCY.labels(request.method, path).observe((time.time() - start))

    response.headers["X-Request-Id"] = request_id
    return response


@app.exception_handler(urllib.error.URLError)
async def external_api_error(request: Request, exc: urllib.error.URLError):
    """Fallo en la llamada saliente (transporte o status 4xx/5xx del upstream)."""
    logger.error("External API error path=%s error=%s", request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": f"External API error: {exc}"})


@app.get("/metrics", include_in_schema=False)
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(authors.router)
app.include_router(books.router)
app.include_router(external.router)


# ---------------------------------------------------------------------
# Utilidad / Observabilidad básica
# ---------------------------------------------------------------------

@app.get("/")
def read_root():
    return {
        "service": "Book API",
        "status": "Online",
        "message": "Bienvenido al sistema de gestión de libros y autores",
    }


@app.get("/health")
def health_check():
    """
    Healthcheck simple:
    - Devuelve healthy si puede ejecutar SELECT 1 en la BD.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        return {"status": "unhealthy", "error": str(e)}
