from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from .models import UserORM, RoleORM
from ..domain.entities import User, Role
from ..application.use_cases.register_user import IUserRepository

def to_domain(u: UserORM) -> User:
    return User(id=u.id, name=u.name, email=u.email, role=Role(u.role_id), is_active=u.is_active)

class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_email(self, email: str) -> User | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_domain(row) if row else None

    def get_by_id(self, user_id: int) -> User | None:
        row = self.db.get(UserORM, user_id)
        return to_domain(row) if row else None

    def get_credentials(self, email: str) -> tuple[User, str] | None:
        row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return (to_domain(row), row.password_hash) if row else None

    def list_all(self) -> list[User]:
        rows = self.db.query(UserORM).order_by(UserORM.id).all()
        return [to_domain(r) for r in rows]

    def create(self, name: str, email: str, password_hash: str, role: Role = Role.CLIENT) -> User:
        row = UserORM(name=name, email=email, password_hash=password_hash, role_id=int(role))
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            # параллельная регистрация успела раньше
            self.db.rollback()
            raise ValueError("Email already registered")
        self.db.refresh(row)
        return to_domain(row)


def seed_roles(db: Session) -> None:
    existing = {r.id for r in db.query(RoleORM).all()}
    for role in Role:
        if role.value not in existing:
            db.add(RoleORM(id=role.value, name=role.label))
    db.commit()
