from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.service import AttendanceLedger
from .attendance.store_repository import StoreAttendanceRepository
from .followups.absentee import AbsenteeDetector
from .followups.birthdays import BirthdayAutomation
from .followups.scopes import ScopeStrategyFactory
from .followups.service import FollowUpService
from .followups.store_repository import StoreFollowUpRepository
from .notifications.messaging import MessagingChannel, UnconfiguredChannel
from .notifications.sink import Notifier, StoreNotificationSink
from .people.service import PersonService
from .people.store_repository import StorePersonRepository
from .programs.service import ProgramService
from .programs.store_repository import StoreProgramRepository
from .settings.repository import StoreConfigRepository
from .settings.service import ConfigService
from .storage.connection import DatabaseConnection, DBConfig
from .storage.mysql_store import MySQLStore
from .storage.store import InMemoryStore, Store, UnitOfWork
from .tally.service import TallyService
from .tally.store_repository import StoreTallyRepository


@dataclass(frozen=True)
class Container:
    store: Store
    uow: UnitOfWork

    config_repo: StoreConfigRepository
    people_repo: StorePersonRepository
    programs_repo: StoreProgramRepository
    attendance_repo: StoreAttendanceRepository
    tallies_repo: StoreTallyRepository
    follow_ups_repo: StoreFollowUpRepository
    notification_sink: StoreNotificationSink

    config_service: ConfigService
    person_service: PersonService
    program_service: ProgramService
    attendance_ledger: AttendanceLedger
    tally_service: TallyService
    follow_up_service: FollowUpService
    absentee_detector: AbsenteeDetector
    birthday_automation: BirthdayAutomation


def build_store(*, store_backend: str = "memory", db_config: Optional[dict] = None) -> Store:
    if store_backend == "mysql":
        if not db_config:
            raise ValueError("db_config is required for the mysql store backend")
        return MySQLStore(DatabaseConnection.get_instance(DBConfig.from_dict(db_config)))
    return InMemoryStore()


def build_container(
    *,
    store: Optional[Store] = None,
    store_backend: str = "memory",
    db_config: Optional[dict] = None,
    messaging: Optional[MessagingChannel] = None,
) -> Container:
    store = store or build_store(store_backend=store_backend, db_config=db_config)
    uow = UnitOfWork()

    config_repo = StoreConfigRepository(store)
    people_repo = StorePersonRepository(store)
    programs_repo = StoreProgramRepository(store)
    attendance_repo = StoreAttendanceRepository(store)
    tallies_repo = StoreTallyRepository(store)
    follow_ups_repo = StoreFollowUpRepository(store)
    notification_sink = StoreNotificationSink(store)

    notifier = Notifier(notification_sink, config_repo)
    messaging = messaging or UnconfiguredChannel()

    config_service = ConfigService(config_repo, uow)
    person_service = PersonService(people_repo, config_repo, uow, notifier=notifier, messaging=messaging)
    attendance_ledger = AttendanceLedger(attendance_repo, programs_repo, person_service, uow)
    tally_service = TallyService(tallies_repo, programs_repo, attendance_ledger, config_repo, uow)
    program_service = ProgramService(programs_repo, config_repo, uow, tallies=tally_service)
    follow_up_service = FollowUpService(follow_ups_repo, people_repo, config_repo, uow, notifier=notifier)
    absentee_detector = AbsenteeDetector(
        people_repo,
        programs_repo,
        attendance_repo,
        follow_up_service,
        config_repo,
        uow,
        scope_factory=ScopeStrategyFactory(),
    )
    birthday_automation = BirthdayAutomation(
        person_service,
        follow_up_service,
        config_repo,
        messaging=messaging,
        notifier=notifier,
    )

    return Container(
        store=store,
        uow=uow,
        config_repo=config_repo,
        people_repo=people_repo,
        programs_repo=programs_repo,
        attendance_repo=attendance_repo,
        tallies_repo=tallies_repo,
        follow_ups_repo=follow_ups_repo,
        notification_sink=notification_sink,
        config_service=config_service,
        person_service=person_service,
        program_service=program_service,
        attendance_ledger=attendance_ledger,
        tally_service=tally_service,
        follow_up_service=follow_up_service,
        absentee_detector=absentee_detector,
        birthday_automation=birthday_automation,
    )
