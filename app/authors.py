"""
app/authors.py

Recurso Autor: listado paginado (con caché), detalle, alta, modificación y baja.

Endpoints:
- GET    /api/authors?page=1&limit=3  -> listado paginado, cacheado con tag authorsCache
- GET    /api/authors/{author_id}     -> detalle
- POST   /api/authors                 -> alta (ROLE_ADMIN), 201 + Location
- PUT    /api/authors/{author_id}     -> modifica nombre/apellido (ROLE_ADMIN), 204
- DELETE /api/authors/{author_id}     -> baja (usuario autenticado), 204
"""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app import models
from app.cache import AUTHORS_CACHE_TAG, BOOKS_CACHE_TAG, TagAwareCache, get_cache
from app.database import MAX_DB_ID, MAX_DB_INT, get_db
from app.payloads import handle_errors, read_json_body
from app.schemas import AuthorPayload, author_view
from app.security import ROLE_ADMIN, ROLE_USER, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/authors", tags=["authors"])

# La vista de un libro incluye a su autor (y viceversa): se purgan ambos tags
INVALIDATE_ON_WRITE = [AUTHORS_CACHE_TAG, BOOKS_CACHE_TAG]


def _get_author_or_404(db: Session, author_id: int) -> models.Author:
    author = db.get(models.Author, author_id)
    if not author:
        raise HTTPException(status_code=404, detail="Author not found")
    return author


# -------------------------------
# GET /api/authors (listar autores)
# -------------------------------
@router.get("", name="list_authors")
def list_authors(
    page: int = Query(1, ge=1, le=MAX_DB_INT),
    limit: int = Query(3, ge=1, le=MAX_DB_INT),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
) -> List[Dict[str, Any]]:
    """
    Lista los autores de la página pedida.

    El resultado serializado se guarda en caché bajo getAllAuthors-{page}-{limit}
    con el tag authorsCache, para poder purgar todas las páginas de una vez.
    """
    id_cache = f"getAllAuthors-{page}-{limit}"

    def compute():
        offset = (page - 1) * limit
        if offset > MAX_DB_INT:
            return []
        stmt = (
            select(models.Author)
            .options(selectinload(models.Author.books))
            .order_by(models.Author.id)
            .offset(offset)
            .limit(limit)
        )
        return [author_view(a) for a in db.execute(stmt).scalars().all()]

    return cache.get(id_cache, compute, [AUTHORS_CACHE_TAG])


@router.get("/{author_id}", name="get_author")
def get_author(author_id: int = Path(..., ge=1, le=MAX_DB_ID), db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Detalle de un autor (vista getAuthors)."""
    return author_view(_get_author_or_404(db, author_id))


@router.post("", status_code=201, name="create_author")
def create_author(
    request: Request,
    _admin: models.User = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to create an author")
    ),
    content: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """
    Crea un autor.

    Body esperado:
      { "firstName": "Victor", "lastName": "Hugo" }
    """
    payload, error_response = handle_errors(AuthorPayload, content)
    if error_response:
        return error_response

    author = models.Author(first_name=payload.first_name, last_name=payload.last_name)
    db.add(author)
    db.commit()
    db.refresh(author)
    logger.info("Author created id=%s", author.id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)

    location = str(request.url_for("get_author", author_id=author.id))
    return JSONResponse(author_view(author), status_code=201, headers={"Location": location})


@router.put("/{author_id}", status_code=204, name="update_author")
def update_author(
    author_id: int = Path(..., ge=1, le=MAX_DB_ID),
    _admin: models.User = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to edit an author")
    ),
    content: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """Modifica solo firstName / lastName."""
    author = _get_author_or_404(db, author_id)

    payload, error_response = handle_errors(AuthorPayload, content)
    if error_response:
        return error_response

    author.first_name = payload.first_name
    author.last_name = payload.last_name
    db.commit()
    logger.info("Author updated id=%s", author_id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)
    return Response(status_code=204)


@router.delete("/{author_id}", status_code=204, name="delete_author")
def delete_author(
    author_id: int = Path(..., ge=1, le=MAX_DB_ID),
    _user: models.User = Depends(require_role(ROLE_USER)),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """
    Borra un autor. Sus libros se conservan con author = null.
    El caché se vacía después de confirmar el borrado.
    """
    author = _get_author_or_404(db, author_id)
    db.delete(author)
    db.commit()
    logger.info("Author deleted id=%s", author_id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)
    return Response(status_code=204)
