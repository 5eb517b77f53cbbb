"""Caller identity passed into every engine operation.

Authentication happens outside the engine; the engine only sees who is
calling and whether that identity holds the administrative capability.
"""

from dataclasses import dataclass

from src.wg_common.errors import PermissionDeniedError

SYSTEM_USER_ID = "SYSTEM"
PLATFORM_FEE_ACCOUNT = "PLATFORM_FEE"


@dataclass(frozen=True)
class Caller:
    user_id: str
    is_admin: bool = False

    @classmethod
    def system(cls) -> "Caller":
        """Identity used by the result feed; holds the admin capability."""
        return cls(user_id=SYSTEM_USER_ID, is_admin=True)


def require_admin(caller: Caller, action: str) -> None:
    """Raise PermissionDeniedError unless the caller holds the admin capability."""
    if not caller.is_admin:
        raise PermissionDeniedError(f"Administrative capability required to {action}")
