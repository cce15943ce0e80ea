from ...domain.entities import User
from .register_user import IUserRepository, IPasswordHasher


class InvalidCredentials(Exception):
    pass


class AuthenticateUser:
    """Проверка пары email/пароль. Неактивный пользователь не отличается от неверного пароля."""

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, email: str, password: str) -> User:
        found = self.repo.get_credentials(email.strip().lower())
        if found is None:
            raise InvalidCredentials("Invalid credentials")
        user, password_hash = found
        if not user.is_active or not self.hasher.verify(password, password_hash):
            raise InvalidCredentials("Invalid credentials")
        return user
