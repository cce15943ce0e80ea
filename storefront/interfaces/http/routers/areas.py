from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....domain.entities import User
from ....infrastructure.db import get_db
from ....infrastructure.repositories import UserRepository
from ..middleware import middleware
from ..schemas import AreaResp, UserResp

router = APIRouter(prefix="/api", tags=["areas"])

# --- Admin-only:

@router.get("/admin/users", response_model=list[UserResp])
def list_users(
    user: User = Depends(middleware("jwt.auth", "admin")),
    db: Session = Depends(get_db),
):
    return [UserResp.from_user(u) for u in UserRepository(db).list_all()]

# --- Role dashboards:

@router.get("/employee/dashboard", response_model=AreaResp)
def employee_dashboard(user: User = Depends(middleware("jwt.auth", "employee"))):
    return AreaResp(area="employee", user=UserResp.from_user(user))

@router.get("/client/dashboard", response_model=AreaResp)
def client_dashboard(user: User = Depends(middleware("jwt.auth", "client"))):
    return AreaResp(area="client", user=UserResp.from_user(user))
