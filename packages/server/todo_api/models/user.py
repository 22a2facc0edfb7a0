"""User identity and credential records.

``User`` is the public identity handed to the rest of the application.
``UserWithPassword`` only leaves the credential store for authentication.
``UserRecord`` is the persisted row.
"""

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel):
    email: str
    username: str


class UserWithPassword(User):
    password_hash: str

    def without_password(self) -> User:
        return User.model_validate(self.model_dump(exclude={"password_hash"}))


class UserRecord(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, nullable=False, index=True, max_length=255)
    username: str = Field(unique=True, nullable=False, index=True, max_length=50)
    password_hash: str = Field(nullable=False)

    def to_user(self) -> User:
        return User.model_validate(self.model_dump(exclude={"password_hash"}))

    def to_user_with_password(self) -> UserWithPassword:
        return UserWithPassword.model_validate(self.model_dump())
