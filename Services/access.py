# Services/access.py
from fastapi import Header, HTTPException, status
from typing import Optional

ADMINISTRATOR = "Administrator"
SUPERVISOR = "Supervisor"

# Roles allowed to drive lifecycle operations and edit fleet records
OPERATORS = (ADMINISTRATOR, SUPERVISOR)


def require_role(*roles: str):
    """Allow/deny gate run before a handler; identity is established upstream."""
    def dependency(x_user_role: Optional[str] = Header(default=None)) -> str:
        if not x_user_role:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing X-User-Role header"
            )
        if x_user_role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role not permitted to perform this action"
            )
        return x_user_role
    return dependency
