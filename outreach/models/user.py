from __future__ import annotations

from typing import Sequence

from pydantic import BaseModel

from .common import bool_cell, cell

USER_COLUMNS = [
    "user_id",
    "nombre",
    "email",
    "rol",
    "password_hash",
    "activo",
    "creado_en",
    "ultimo_login_en",
]


class User(BaseModel):
    """
    Roster row owned by the identity collaborator. Read-only here; the password
    hash column is never loaded.
    """

    user_id: str
    name: str = ""
    email: str = ""
    role: str = ""
    active: bool = True
    created_at: str = ""
    last_login_at: str = ""

    @classmethod
    def from_row(cls, row: Sequence[str]) -> "User":
        return cls(
            user_id=cell(row, 0),
            name=cell(row, 1),
            email=cell(row, 2),
            role=cell(row, 3).strip().upper(),
            active=bool_cell(cell(row, 5)),
            created_at=cell(row, 6),
            last_login_at=cell(row, 7),
        )
