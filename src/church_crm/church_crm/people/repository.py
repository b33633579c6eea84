from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PersonCategory
from .model import Person


class PersonRepository(Protocol):
    def get_by_id(self, person_id: str) -> Optional[Person]:
        raise NotImplementedError

    def list_all(self, *, category: Optional[PersonCategory] = None) -> Sequence[Person]:
        raise NotImplementedError

    def save(self, person: Person) -> None:
        """Insert or replace by id."""

        raise NotImplementedError
