from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Tally


class TallyRepository(Protocol):
    def list_for_program(self, program_id: str) -> Sequence[Tally]:
        raise NotImplementedError

    def get_by_code(self, program_id: str, code: str) -> Optional[Tally]:
        """Codes are unique within a program, not globally."""

        raise NotImplementedError

    def save(self, tally: Tally) -> None:
        raise NotImplementedError

    def save_many(self, tallies: Sequence[Tally]) -> None:
        raise NotImplementedError
