from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.enums import AttendanceScope, GuestType
from ..people.model import Person


class ScopeStrategy(ABC):
    """Decides whether a person is expected at programs for a given scope."""

    @abstractmethod
    def includes(self, person: Person) -> bool:
        raise NotImplementedError


class EveryoneScope(ScopeStrategy):
    def includes(self, person: Person) -> bool:
        return True


class MembersOnlyScope(ScopeStrategy):
    def includes(self, person: Person) -> bool:
        return person.is_member


class GuestsOnlyScope(ScopeStrategy):
    def includes(self, person: Person) -> bool:
        return person.is_guest


class MembersAndRegularGuestsScope(ScopeStrategy):
    """Every member, plus guests currently classified regular."""

    def includes(self, person: Person) -> bool:
        if person.is_member:
            return True
        return person.is_guest and person.evolution.guest_type == GuestType.REGULAR


@dataclass
class ScopeStrategyFactory:
    def for_scope(self, scope: AttendanceScope) -> ScopeStrategy:
        scope = AttendanceScope(scope)
        if scope == AttendanceScope.MEMBERS_ONLY:
            return MembersOnlyScope()
        if scope == AttendanceScope.GUESTS_ONLY:
            return GuestsOnlyScope()
        if scope == AttendanceScope.MEMBERS_AND_REGULAR_GUESTS:
            return MembersAndRegularGuestsScope()
        return EveryoneScope()
