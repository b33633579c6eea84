from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import Program


class ProgramRepository(Protocol):
    def get_by_id(self, program_id: str) -> Optional[Program]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Program]:
        raise NotImplementedError

    def list_between(self, *, start: date, end: date) -> Sequence[Program]:
        """Programs whose date is within [start, end], inclusive."""

        raise NotImplementedError

    def save(self, program: Program) -> None:
        raise NotImplementedError
