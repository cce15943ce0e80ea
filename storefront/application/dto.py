from dataclasses import dataclass

@dataclass
class RegisterUserInput:
    name: str
    email: str
    password: str
    role_id: int
