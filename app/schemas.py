from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, Dict, List, Optional

from app.versioning import ApiVersion

# Versión a partir de la cual se expone Book.comment
COMMENT_SINCE = ApiVersion(2, 0)


# ---------------------------------------------------------------------
# Payloads de entrada (POST / PUT)
# ---------------------------------------------------------------------

class AuthorPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName", min_length=1, max_length=255)
    last_name: str = Field(..., alias="lastName", min_length=1, max_length=255)


class BookPayload(BaseModel):
    # idAuthor NO forma parte del contrato del libro: se lee aparte del body crudo
    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255)
    cover_text: Optional[str] = Field(None, alias="coverText")
    comment: Optional[str] = None


# ---------------------------------------------------------------------
# Vistas de salida ("grupos" getAuthors / getBooks)
# ---------------------------------------------------------------------

class BookForAuthor(BaseModel):
    """Libro dentro de un autor: sin la referencia al autor (evita ciclos)."""
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    cover_text: Optional[str] = Field(None, alias="coverText")


class Author(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    books: List[BookForAuthor] = []


class AuthorForBook(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")


class Book(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    title: str
    cover_text: Optional[str] = Field(None, alias="coverText")
    author: Optional[AuthorForBook] = None
    comment: Optional[str] = None


def _self_link(href: str) -> Dict[str, Any]:
    return {"self": {"href": href}}


def author_view(author) -> Dict[str, Any]:
    """Vista getAuthors de un autor ORM, con su enlace self."""
    data = Author.model_validate(author).model_dump(by_alias=True)
    data["_links"] = _self_link(f"/api/authors/{author.id}")
    return data


def book_view(book) -> Dict[str, Any]:
    """
    Vista getBooks completa (incluye comment).

    Es independiente de la versión: así se puede guardar en caché y
    recortar después con shape_book().
    """
    data = Book.model_validate(book).model_dump(by_alias=True)
    data["_links"] = _self_link(f"/api/books/{book.id}")
    return data


def shape_book(data: Dict[str, Any], version: ApiVersion) -> Dict[str, Any]:
    """Aplica los campos versionados: comment solo existe desde la 2.0."""
    if version >= COMMENT_SINCE:
        return data
    return {k: v for k, v in data.items() if k != "comment"}


def violations(exc: ValidationError) -> List[Dict[str, str]]:
    """Lista de errores del validador: [{"property_path", "message"}]."""
    return [
        {
            "property_path": ".".join(str(p) for p in err["loc"]),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
