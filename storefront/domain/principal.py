from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """Identity resolved by the upstream auth layer."""

    user_id: int
    is_admin: bool = False
