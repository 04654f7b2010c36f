"""Identity domain model."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from typing_extensions import TypedDict


class IdentityDict(TypedDict):
    identity_id: str
    name: str
    directory: str
    created_at: str
    last_used_at: str | None


def new_identity_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True, eq=False)
class Identity:
    name: str
    directory: Path
    created_at: datetime
    identity_id: str = field(default_factory=new_identity_id)
    # Reserved; nothing updates it yet.
    last_used_at: datetime | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Identity):
            return NotImplemented
        return self.identity_id == other.identity_id

    def __hash__(self) -> int:
        return hash(self.identity_id)

    def to_dict(self) -> IdentityDict:
        return IdentityDict(
            identity_id=self.identity_id,
            name=self.name,
            directory=str(self.directory),
            created_at=self.created_at.isoformat(),
            last_used_at=self.last_used_at.isoformat() if self.last_used_at else None,
        )
