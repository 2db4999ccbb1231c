from sqlalchemy import Column, Integer, String, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from .database import Base


class Author(Base):
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)

    # Lado inverso: un autor tiene varios libros.
    # Al borrar el autor, el ORM deja sus libros sin autor (author_id = NULL)
    books = relationship("Book", back_populates="author", order_by="Book.id")


class Book(Base):
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    cover_text = Column(Text)
    # Solo visible a partir de la versión 2.0 de la API
    comment = Column(Text)

    author_id = Column(Integer, ForeignKey("authors.id", ondelete="SET NULL"), nullable=True)
    author = relationship("Author", back_populates="books")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(180), unique=True, nullable=False)
    roles = Column(JSON, nullable=False, default=list)
    # Hash pbkdf2, nunca la contraseña en claro
    password = Column(String(255), nullable=False)
