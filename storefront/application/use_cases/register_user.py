from ...domain.entities import User, Role, SIGNUP_ROLES
from ..dto import RegisterUserInput

class IUserRepository:
    def get_by_email(self, email: str) -> User | None: ...
    def get_by_id(self, user_id: int) -> User | None: ...
    def get_credentials(self, email: str) -> tuple[User, str] | None: ...
    def create(self, name: str, email: str, password_hash: str, role: Role = Role.CLIENT) -> User: ...

class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...

class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, data: RegisterUserInput) -> User:
        if "@" not in data.email:
            raise ValueError("Invalid email")
        if data.role_id not in {int(r) for r in SIGNUP_ROLES.values()}:
            raise ValueError("Role cannot be assigned at signup")
        email = data.email.strip().lower()
        if self.repo.get_by_email(email):
            raise ValueError("Email already registered")
        pwd_hash = self.hasher.hash(data.password)
        return self.repo.create(data.name, email, pwd_hash, Role(data.role_id))
