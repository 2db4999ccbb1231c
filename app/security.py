"""
app/security.py

Usuarios, contraseñas y control de roles.

- Autenticación: HTTP Basic (email + contraseña) contra la tabla users.
- Roles: ROLE_ADMIN incluye ROLE_USER; todo usuario autenticado tiene ROLE_USER.

Política de escritura de la API:
- POST / PUT  -> ROLE_ADMIN
- DELETE      -> cualquier usuario autenticado (ROLE_USER)
- GET         -> público
"""

import hashlib
import hmac
import logging
import secrets
from typing import Callable, Set

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.database import get_db
from app import models

logger = logging.getLogger(__name__)

ROLE_USER = "ROLE_USER"
ROLE_ADMIN = "ROLE_ADMIN"

ROLE_HIERARCHY = {
    ROLE_ADMIN: [ROLE_USER],
}

PBKDF2_ITERATIONS = 120_000

security = HTTPBasic()


def hash_password(password: str, iterations: int = PBKDF2_ITERATIONS) -> str:
    """
    Hash pbkdf2-sha256 con sal aleatoria.
    Formato: pbkdf2_sha256$<iteraciones>$<sal>$<hash hex>
    """
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), iterations)
    return f"pbkdf2_sha256${iterations}${salt}${digest.hex()}"


def verify_password(password: str, hashed: str) -> bool:
    try:
        algorithm, iterations, salt, expected = hashed.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def effective_roles(user: models.User) -> Set[str]:
    """Roles del usuario expandidos con la jerarquía."""
    roles = {ROLE_USER}
    for role in user.roles or []:
        roles.add(role)
        roles.update(ROLE_HIERARCHY.get(role, []))
    return roles


def get_current_user(
    credentials: HTTPBasicCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> models.User:
    user = db.scalar(select(models.User).where(models.User.email == credentials.username))
    if not user or not verify_password(credentials.password, user.password):
        logger.warning("Invalid credentials for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return user


def require_role(role: str, message: str = "Access denied") -> Callable[..., models.User]:
    """
    Dependencia que exige un rol. 401 si no hay credenciales válidas,
    403 con `message` si el usuario no tiene el rol.
    """
    def checker(user: models.User = Depends(get_current_user)) -> models.User:
        if role not in effective_roles(user):
            logger.warning("user=%s denied: missing %s", user.email, role)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=message)
        return user

    return checker
