"""ORM models."""

from .audit_log import AuditLog
from .deployment import Deployment, DeploymentStatus
from .permission import PermissionRecord
from .user import User
from .workspace import Workspace, WorkspaceMember

__all__ = [
    "AuditLog",
    "Deployment",
    "DeploymentStatus",
    "PermissionRecord",
    "User",
    "Workspace",
    "WorkspaceMember",
]
