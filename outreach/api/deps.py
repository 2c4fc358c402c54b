from __future__ import annotations

from typing import Optional

from fastapi import Header

from ..identity import Identity, parse_role
from ..store import get_store  # noqa: F401  (re-exported as the store dependency)


def get_identity(
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Identity]:
    """
    Identity asserted by the upstream auth collaborator.

    Returns None when no session is present; the service layer decides whether
    the operation needs one. A present but unknown role is rejected here.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        return None
    return Identity(
        user_id=user_id,
        display_name=(x_user_name or "").strip(),
        email=(x_user_email or "").strip(),
        role=parse_role(x_user_role),
    )
