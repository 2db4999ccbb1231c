"""
app/books.py

Recurso Libro: listado paginado (con caché), detalle, alta, modificación,
baja y un endpoint de mantenimiento para vaciar el caché de libros.

Endpoints:
- GET    /api/books?page=1&limit=3  -> listado paginado, cacheado con tag booksCache
- GET    /api/books/clearCache      -> purga el tag booksCache
- GET    /api/books/{book_id}       -> detalle
- POST   /api/books                 -> alta (ROLE_ADMIN), 201 + Location
- PUT    /api/books/{book_id}       -> modificación (ROLE_ADMIN), 204
- DELETE /api/books/{book_id}       -> baja (usuario autenticado), 204

El autor del libro se indica con "idAuthor" en el body. No forma parte del
payload del libro: se lee aparte del body crudo. Si el id no existe, el
libro queda sin autor (no es un error).
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from app import models
from app.cache import AUTHORS_CACHE_TAG, BOOKS_CACHE_TAG, TagAwareCache, get_cache
from app.database import MAX_DB_ID, MAX_DB_INT, get_db
from app.payloads import handle_errors, read_json_body
from app.schemas import BookPayload, book_view, shape_book
from app.security import ROLE_ADMIN, ROLE_USER, require_role
from app.versioning import ApiVersion, api_version

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])

INVALIDATE_ON_WRITE = [BOOKS_CACHE_TAG, AUTHORS_CACHE_TAG]

# Valor usado cuando el body no trae idAuthor
NO_AUTHOR = -1


def _get_book_or_404(db: Session, book_id: int) -> models.Book:
    book = db.get(models.Book, book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return book


def _resolve_author(db: Session, content: Dict[str, Any]) -> Optional[models.Author]:
    """
    Busca el autor indicado por content["idAuthor"].
    Devuelve None si falta, no es un entero o no existe.
    """
    id_author = content.get("idAuthor", NO_AUTHOR)
    try:
        id_author = int(id_author)
    except (TypeError, ValueError, OverflowError):
        return None
    if not 1 <= id_author <= MAX_DB_ID:
        if id_author != NO_AUTHOR:
            logger.info("idAuthor=%s out of range, book left without author", id_author)
        return None
    author = db.get(models.Author, id_author)
    if author is None and id_author != NO_AUTHOR:
        logger.info("idAuthor=%s not found, book left without author", id_author)
    return author


# -------------------------------
# GET /api/books (listar libros)
# -------------------------------
@router.get("", name="list_books")
def list_books(
    page: int = Query(1, ge=1, le=MAX_DB_INT),
    limit: int = Query(3, ge=1, le=MAX_DB_INT),
    version: ApiVersion = Depends(api_version),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
) -> List[Dict[str, Any]]:
    """
    Lista los libros de la página pedida.

    En caché se guarda la vista completa (con comment); el recorte por
    versión se hace después, así una misma entrada sirve a todas las versiones.
    """
    id_cache = f"getAllBooks-{page}-{limit}"

    def compute():
        offset = (page - 1) * limit
        if offset > MAX_DB_INT:
            return []
        stmt = (
            select(models.Book)
            .options(joinedload(models.Book.author))
            .order_by(models.Book.id)
            .offset(offset)
            .limit(limit)
        )
        return [book_view(b) for b in db.execute(stmt).scalars().all()]

    books = cache.get(id_cache, compute, [BOOKS_CACHE_TAG])
    return [shape_book(b, version) for b in books]


# Debe declararse antes de /{book_id}
@router.get("/clearCache", name="clear_cache")
def clear_cache(cache: TagAwareCache = Depends(get_cache)):
    """Endpoint de mantenimiento: vacía el caché de libros."""
    cache.invalidate_tags([BOOKS_CACHE_TAG])
    return "Cache cleared"


@router.get("/{book_id}", name="get_book")
def get_book(
    book_id: int = Path(..., ge=1, le=MAX_DB_ID),
    version: ApiVersion = Depends(api_version),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return shape_book(book_view(_get_book_or_404(db, book_id)), version)


@router.post("", status_code=201, name="create_book")
def create_book(
    request: Request,
    _admin: models.User = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to create a book")
    ),
    content: Any = Depends(read_json_body),
    version: ApiVersion = Depends(api_version),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """
    Crea un libro.

    Body esperado:
      { "title": "Livre X", "coverText": "...", "comment": "...", "idAuthor": 3 }
    """
    payload, error_response = handle_errors(BookPayload, content)
    if error_response:
        return error_response

    book = models.Book(
        title=payload.title,
        cover_text=payload.cover_text,
        comment=payload.comment,
        author=_resolve_author(db, content),
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    logger.info("Book created id=%s author_id=%s", book.id, book.author_id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)

    location = str(request.url_for("get_book", book_id=book.id))
    return JSONResponse(
        shape_book(book_view(book), version),
        status_code=201,
        headers={"Location": location},
    )


@router.put("/{book_id}", status_code=204, name="update_book")
def update_book(
    book_id: int = Path(..., ge=1, le=MAX_DB_ID),
    _admin: models.User = Depends(
        require_role(ROLE_ADMIN, "You do not have sufficient rights to edit a book")
    ),
    content: Any = Depends(read_json_body),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """Modifica title / coverText y vuelve a resolver idAuthor."""
    book = _get_book_or_404(db, book_id)

    payload, error_response = handle_errors(BookPayload, content)
    if error_response:
        return error_response

    book.title = payload.title
    book.cover_text = payload.cover_text
    book.author = _resolve_author(db, content)
    db.commit()
    logger.info("Book updated id=%s author_id=%s", book_id, book.author_id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)
    return Response(status_code=204)


@router.delete("/{book_id}", status_code=204, name="delete_book")
def delete_book(
    book_id: int = Path(..., ge=1, le=MAX_DB_ID),
    _user: models.User = Depends(require_role(ROLE_USER)),
    db: Session = Depends(get_db),
    cache: TagAwareCache = Depends(get_cache),
):
    """Borra un libro. El caché se vacía después de confirmar el borrado."""
    book = _get_book_or_404(db, book_id)
    db.delete(book)
    db.commit()
    logger.info("Book deleted id=%s", book_id)

    cache.invalidate_tags(INVALIDATE_ON_WRITE)
    return Response(status_code=204)
