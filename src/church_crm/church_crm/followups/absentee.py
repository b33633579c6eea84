from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

import structlog

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_local
from ..core.enums import AttendanceScope, AttendanceStatus
from ..people.repository import PersonRepository
from ..programs.repository import ProgramRepository
from ..settings.model import AbsenteeRule
from ..settings.repository import ConfigProvider
from ..storage.store import UnitOfWork
from .model import AbsenteeDetail, AbsenteeRunResult
from .scopes import ScopeStrategyFactory
from .service import FollowUpService

logger = structlog.get_logger(__name__)


class AbsenteeDetector:
    """Finds expected people who missed recent programs and opens follow-ups.

    A program with no record for the person counts as missed, the same as
    an explicit `absent` mark.
    """

    def __init__(
        self,
        people: PersonRepository,
        programs: ProgramRepository,
        attendance: AttendanceRepository,
        follow_ups: FollowUpService,
        config: ConfigProvider,
        uow: UnitOfWork,
        *,
        scope_factory: Optional[ScopeStrategyFactory] = None,
    ):
        self._people = people
        self._programs = programs
        self._attendance = attendance
        self._follow_ups = follow_ups
        self._config = config
        self._uow = uow
        self._scope_factory = scope_factory or ScopeStrategyFactory()

    def run_absentee_automation(
        self,
        *,
        now: datetime | None = None,
        rule: Optional[AbsenteeRule] = None,
        scope: Optional[AttendanceScope] = None,
        created_by: str = "system",
    ) -> AbsenteeRunResult:
        now = now or now_local()
        try:
            return self._run(now=now, rule=rule, scope=scope, created_by=created_by)
        except Exception as exc:
            logger.exception("absentee_scan_failed", error=str(exc))
            return AbsenteeRunResult(rule_enabled=True, error=str(exc))

    def _run(
        self,
        *,
        now: datetime,
        rule: Optional[AbsenteeRule],
        scope: Optional[AttendanceScope],
        created_by: str,
    ) -> AbsenteeRunResult:
        config = self._config.get_config()
        rule = rule or config.follow_up.absentee_rule
        if not rule.enabled:
            return AbsenteeRunResult(rule_enabled=False)

        strategy = self._scope_factory.for_scope(scope or rule.scope)
        allowed_types = set(config.evolution.considered_program_types)
        create = rule.create_follow_up and config.follow_up.enabled

        details: list[AbsenteeDetail] = []
        with self._uow.atomic():
            programs = [
                p
                for p in self._programs.list_between(start=(now - timedelta(days=rule.within_days)).date(), end=now.date())
                if not allowed_types or p.type in allowed_types
            ]
            program_ids = [p.id for p in programs]

            people = [p for p in self._people.list_all() if strategy.includes(p)]
            if config.attendance.track_workers_only:
                people = [p for p in people if p.engagement.is_worker]

            present = {
                (r.program_id, r.person_id)
                for r in self._attendance.list_for_programs(program_ids)
                if r.status == AttendanceStatus.PRESENT
            }

            for person in people:
                missed = tuple(pid for pid in program_ids if (pid, person.id) not in present)
                if not missed or len(missed) < rule.missed_programs_count:
                    continue

                detail = AbsenteeDetail(
                    person_id=person.id,
                    missed_count=len(missed),
                    missed_program_ids=missed,
                    follow_up_created=False,
                )
                if person.engagement.do_not_contact:
                    detail = replace(detail, skipped_reason="do_not_contact")
                elif not create:
                    detail = replace(detail, skipped_reason="detection_only")
                elif self._follow_ups.has_open(person.id, rule.follow_up_type):
                    detail = replace(detail, skipped_reason="open_follow_up_exists")
                else:
                    follow_up = self._follow_ups.create(
                        person_id=person.id,
                        type=rule.follow_up_type,
                        title=f"Absentee follow-up: {person.personal_data.full_name}",
                        due_in_hours=config.follow_up.timeframes.absentee_hours,
                        priority=rule.follow_up_priority,
                        created_by=created_by,
                        notes=f"Missed {len(missed)} of {len(program_ids)} programs in the last {rule.within_days} days.",
                        now=now,
                    )
                    detail = replace(detail, follow_up_created=True, follow_up_id=follow_up.id)
                details.append(detail)

        result = AbsenteeRunResult(
            rule_enabled=True,
            programs_considered=len(programs),
            absentees_found=len(details),
            follow_ups_created=sum(1 for d in details if d.follow_up_created),
            details=tuple(details),
        )
        logger.info(
            "absentee_scan_complete",
            programs_considered=result.programs_considered,
            absentees_found=result.absentees_found,
            follow_ups_created=result.follow_ups_created,
        )
        return result
