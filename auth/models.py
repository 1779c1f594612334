"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own the
domain shape; the store and the service do the work.

Layer rule: no imports from api/, core/, or storage/.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class User:
    """A registered identity.

    pass_hash is the raw bcrypt output. It never leaves the service: response
    models carry ids and tokens only. repr=False keeps it out of log lines.
    """

    id: int
    email: str
    pass_hash: bytes = field(repr=False)
    is_admin: bool = False


@dataclass(frozen=True)
class App:
    """A client application (tenant) that tokens are issued for.

    Each app signs with its own secret, so a token minted for one app cannot
    be verified by another and a leaked secret only exposes one tenant.
    """

    id: int
    name: str
    secret: bytes = field(repr=False)
