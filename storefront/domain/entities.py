from dataclasses import dataclass
from enum import IntEnum


class Role(IntEnum):
    ADMIN = 1
    EMPLOYEE = 2
    CLIENT = 3

    @property
    def label(self) -> str:
        return self.name.lower()


# роли, которые можно выбрать при регистрации
SIGNUP_ROLES = {"client": Role.CLIENT, "employee": Role.EMPLOYEE}


def role_id_for(role: str) -> int:
    try:
        return int(SIGNUP_ROLES[role])
    except KeyError:
        raise ValueError(f"Unknown signup role: {role!r}")


@dataclass(frozen=True)
class User:
    id: int | None
    name: str
    email: str
    role: Role = Role.CLIENT
    is_active: bool = True
