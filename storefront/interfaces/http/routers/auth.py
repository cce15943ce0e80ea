import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from slowapi import Limiter
from sqlalchemy.orm import Session

from ....application.dto import RegisterUserInput
from ....application.use_cases.authenticate_user import AuthenticateUser, InvalidCredentials
from ....application.use_cases.register_user import RegisterUser
from ....config import settings
from ....domain.entities import User
from ....infrastructure.cache import revoke_token
from ....infrastructure.db import get_db
from ....infrastructure.metrics import auth_attempts_total
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, create_access_token
from ..middleware import middleware
from ..schemas import SignupReq, LoginReq, UserResp, TokenResp, MessageResp

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = structlog.get_logger()

guest_only = middleware("jwt.guest")
authenticated = middleware("jwt.auth")

def get_limiter(request: Request) -> Limiter:
    return request.app.state.limiter

_limited: dict = {}

def rate_limited(limiter: Limiter, limit: str, func):
    # декорируем один раз на лимитер, иначе slowapi копит лимиты маршрута
    key = (limiter, limit, func)
    if key not in _limited:
        _limited[key] = limiter.limit(limit)(func)
    return _limited[key]

def issue_token(user: User, response: Response) -> TokenResp:
    expires_in = settings.JWT_TTL_MINUTES * 60
    token = create_access_token(user)
    response.set_cookie(
        settings.AUTH_COOKIE_NAME, token,
        max_age=expires_in, httponly=True, samesite="lax",
    )
    return TokenResp(access_token=token, expires_in=expires_in, user=UserResp.from_user(user))

def _signup_impl(
    request: Request,
    payload: SignupReq,
    response: Response,
    db: Session,
):
    uc = RegisterUser(repo=UserRepository(db), hasher=PasswordHasher())
    try:
        user = uc.execute(RegisterUserInput(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role_id=payload.role_id,
        ))
    except ValueError as e:
        auth_attempts_total.labels(action="signup", outcome="rejected").inc()
        logger.info("signup_rejected", email=payload.email, reason=str(e))
        raise HTTPException(status_code=400, detail=str(e))
    auth_attempts_total.labels(action="signup", outcome="success").inc()
    logger.info("user_registered", user_id=user.id, role=user.role.label)
    return issue_token(user, response)

@router.post(
    "/signup",
    response_model=TokenResp,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(guest_only)],
)
def signup(
    request: Request,
    payload: SignupReq,
    response: Response,
    db: Session = Depends(get_db),
    limiter: Limiter = Depends(get_limiter)
):
    limited_func = rate_limited(limiter, f"{settings.RATE_LIMIT_PER_MINUTE}/minute", _signup_impl)
    return limited_func(request, payload, response, db)

def _login_impl(
    request: Request,
    payload: LoginReq,
    response: Response,
    db: Session,
):
    uc = AuthenticateUser(repo=UserRepository(db), hasher=PasswordHasher())
    try:
        user = uc.execute(payload.email, payload.password)
    except InvalidCredentials:
        auth_attempts_total.labels(action="login", outcome="rejected").inc()
        logger.info("login_failed", email=payload.email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    auth_attempts_total.labels(action="login", outcome="success").inc()
    return issue_token(user, response)

@router.post("/login", response_model=TokenResp, dependencies=[Depends(guest_only)])
def login(
    request: Request,
    payload: LoginReq,
    response: Response,
    db: Session = Depends(get_db),
    limiter: Limiter = Depends(get_limiter)
):
    # Более строгий лимит для логина (защита от брутфорса)
    limited_func = rate_limited(limiter, settings.LOGIN_RATE_LIMIT, _login_impl)
    return limited_func(request, payload, response, db)


@router.post("/logout", response_model=MessageResp)
def logout(request: Request, response: Response, user: User = Depends(authenticated)):
    revoke_token(request.state.claims)
    response.delete_cookie(settings.AUTH_COOKIE_NAME)
    logger.info("user_logged_out", user_id=user.id)
    return MessageResp(message="Successfully logged out")


@router.post("/refresh", response_model=TokenResp)
def refresh(request: Request, response: Response, user: User = Depends(authenticated)):
    revoke_token(request.state.claims)
    return issue_token(user, response)


@router.get("/me", response_model=UserResp)
def me(user: User = Depends(authenticated)):
    return UserResp.from_user(user)
