"""Route middleware: named guards applied per route in a fixed priority order.

Routes declare guards by alias::

    @router.get("/users", dependencies=[Depends(middleware("jwt.auth", "admin"))])

Whatever order the aliases are listed in, the chain runs in the registry's
priority order, so authentication always happens before role checks.
"""
from typing import Callable, Iterable

import structlog
from fastapi import Depends, HTTPException, Request, status
from jose import JWTError
from sqlalchemy.orm import Session

from ...domain.entities import Role, User
from ...infrastructure.cache import is_revoked
from ...infrastructure.db import get_db
from ...infrastructure.metrics import guard_rejections_total
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import decode_token, extract_token

logger = structlog.get_logger()


class Guard:
    def handle(self, request: Request, db: Session) -> None:
        raise NotImplementedError

    def reject(self, request: Request, status_code: int, detail: str):
        name = type(self).__name__
        guard_rejections_total.labels(guard=name).inc()
        logger.info("guard_rejected", guard=name, path=request.url.path, status_code=status_code)
        headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
        raise HTTPException(status_code=status_code, detail=detail, headers=headers)


def _valid_claims(token: str | None) -> dict | None:
    if not token:
        return None
    try:
        claims = decode_token(token)
    except JWTError:
        return None
    if is_revoked(claims["jti"]):
        return None
    return claims


def resolve_session(request: Request, db: Session) -> tuple[User, dict] | None:
    """Активный пользователь и claims токена запроса, иначе None."""
    claims = _valid_claims(extract_token(request))
    if claims is None:
        return None
    try:
        user_id = int(claims["sub"])
    except ValueError:
        return None
    user = UserRepository(db).get_by_id(user_id)
    if user is None or not user.is_active:
        return None
    return user, claims


class JwtAuth(Guard):
    """Пропускает только запросы с действующим токеном активного пользователя."""

    def handle(self, request: Request, db: Session) -> None:
        session = resolve_session(request, db)
        if session is None:
            self.reject(request, status.HTTP_401_UNAUTHORIZED, "Unauthenticated")
        request.state.user, request.state.claims = session


class JwtGuest(Guard):
    """Только для гостей. Токен удалённого или неактивного пользователя не в счёт."""

    def handle(self, request: Request, db: Session) -> None:
        if resolve_session(request, db) is not None:
            self.reject(request, status.HTTP_403_FORBIDDEN, "Already authenticated")


class RoleGuard(Guard):
    role: Role

    def handle(self, request: Request, db: Session) -> None:
        user: User | None = getattr(request.state, "user", None)
        if user is None:
            self.reject(request, status.HTTP_401_UNAUTHORIZED, "Unauthenticated")
        if user.role != self.role:
            self.reject(request, status.HTTP_403_FORBIDDEN, "Forbidden")


class IsAdmin(RoleGuard):
    role = Role.ADMIN


class IsEmployee(RoleGuard):
    role = Role.EMPLOYEE


class IsClient(RoleGuard):
    role = Role.CLIENT


class MiddlewareRegistry:
    def __init__(self):
        self._aliases: dict[str, type[Guard]] = {}
        self._priority: list[type[Guard]] = []

    def alias(self, mapping: dict[str, type[Guard]]) -> "MiddlewareRegistry":
        self._aliases.update(mapping)
        return self

    def priority(self, guards: Iterable[type[Guard]]) -> "MiddlewareRegistry":
        self._priority = list(guards)
        return self

    def resolve(self, names: Iterable[str]) -> list[Guard]:
        classes: list[type[Guard]] = []
        for name in names:
            if name not in self._aliases:
                raise KeyError(f"Unknown middleware alias: {name}")
            cls = self._aliases[name]
            if cls not in classes:
                classes.append(cls)
        # сначала по приоритету, остальные в порядке объявления
        ranked = [cls for cls in self._priority if cls in classes]
        rest = [cls for cls in classes if cls not in self._priority]
        return [cls() for cls in ranked + rest]


route_middleware = MiddlewareRegistry().alias({
    "jwt.auth": JwtAuth,
    "jwt.guest": JwtGuest,
    "admin": IsAdmin,
    "employee": IsEmployee,
    "client": IsClient,
}).priority([
    JwtAuth,
    JwtGuest,
    IsAdmin,
    IsEmployee,
    IsClient,
])


def middleware(*names: str, registry: MiddlewareRegistry | None = None) -> Callable[..., User | None]:
    chain = (registry or route_middleware).resolve(names)

    def run_middleware(request: Request, db: Session = Depends(get_db)) -> User | None:
        for guard in chain:
            guard.handle(request, db)
        return getattr(request.state, "user", None)

    run_middleware.chain = chain
    return run_middleware
