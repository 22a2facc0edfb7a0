from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


class Permission(str, Enum):
    # Todos
    TODOS_CREATE = "todos:create"
    TODOS_READ = "todos:read"
    TODOS_UPDATE = "todos:update"
    TODOS_DELETE = "todos:delete"
    TODOS_COMPLETE = "todos:complete"

    # Organization
    ORG_MEMBERS_READ = "org:members:read"
    ORG_MEMBERS_INVITE = "org:members:invite"
    ORG_MEMBERS_REMOVE = "org:members:remove"
    ORG_MEMBERS_UPDATE_ROLE = "org:members:update-role"
    ORG_SETTINGS_READ = "org:settings:read"
    ORG_SETTINGS_UPDATE = "org:settings:update"
    ORG_DELETE = "org:delete"


class ErrorResponse(BaseModel):
    message: str
    code: str
