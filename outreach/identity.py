from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import AuthorizationError

SYSTEM_ACTOR = "SYSTEM"


class Role(str, Enum):
    ADMIN = "ADMIN"
    COLABORADOR = "COLABORADOR"


@dataclass(frozen=True)
class Identity:
    """
    Per-request identity asserted by the auth collaborator.

    The core never issues or validates credentials; it only receives this value
    and passes it explicitly into every protected operation.
    """

    user_id: str
    display_name: str = ""
    email: str = ""
    role: Role = Role.COLABORADOR

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def label(self) -> str:
        # Stamped into managedByDisplayName on write-through
        return (self.display_name or "").strip() or (self.email or "").strip() or self.user_id


def parse_role(raw: Optional[str]) -> Role:
    s = (raw or "").strip().upper()
    if s == Role.ADMIN.value:
        return Role.ADMIN
    if s == Role.COLABORADOR.value:
        return Role.COLABORADOR
    raise AuthorizationError(f"Unknown role: {raw!r}", status_code=401)


def require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None or not (identity.user_id or "").strip():
        raise AuthorizationError("Unauthorized", status_code=401)
    return identity


def require_admin(identity: Optional[Identity]) -> Identity:
    ident = require_identity(identity)
    if not ident.is_admin:
        raise AuthorizationError("Forbidden: administrator role required")
    return ident
