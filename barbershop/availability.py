# barbershop/availability.py
"""
Weekly availability rules, date exceptions and their materialization.

Weekly rules and exceptions are the source of truth. The materializer
resolves them into ``AvailabilityBlock`` rows, one per working window and
date, which is what the slot calculator reads. It is the only writer of
that table.

Resolution for a single date, highest precedence first:

1. any ``custom`` exception: its hours are the day's blocks (weekly rules
   and ``off`` are ignored);
2. an ``off`` exception: no blocks;
3. every active weekly rule for the date's day of week.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from barbershop import repository
from barbershop.config import Settings
from barbershop.localtime import day_of_week, today
from barbershop.models import (
    AvailabilityBlock,
    AvailabilityException as ExceptionModel,
    WeeklyRule as WeeklyRuleModel,
)
from barbershop.schemas import (
    AvailabilityExceptionIn,
    CustomException,
    ExceptionKind,
    OffException,
    WeeklyRule,
    format_hhmm,
    parse_hhmm,
)

logger = logging.getLogger(__name__)


# ----- weekly rules -----

def get_weekly_rules(session: Session, employee_id: int) -> List[WeeklyRuleModel]:
    return session.exec(
        select(WeeklyRuleModel)
        .where(WeeklyRuleModel.employee_id == employee_id)
        .order_by(WeeklyRuleModel.day_of_week, WeeklyRuleModel.start_time)
    ).all()


def set_weekly_rules(session: Session, employee_id: int, rules: Sequence[WeeklyRule]) -> None:
    """Replace every weekly rule of the employee with ``rules``."""
    try:
        session.exec(delete(WeeklyRuleModel).where(WeeklyRuleModel.employee_id == employee_id))
        for rule in rules:
            session.add(WeeklyRuleModel(
                employee_id=employee_id,
                day_of_week=rule.day_of_week,
                start_time=parse_hhmm(rule.start_time),
                end_time=parse_hhmm(rule.end_time),
                active=rule.active,
            ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Replaced weekly rules for employee {employee_id} ({len(rules)} rules)")


def rule_to_schema(row: WeeklyRuleModel) -> WeeklyRule:
    return WeeklyRule(
        day_of_week=row.day_of_week,
        start_time=format_hhmm(row.start_time),
        end_time=format_hhmm(row.end_time),
        active=row.active,
    )


# ----- exceptions -----

def add_exception(session: Session, employee_id: int, exception: AvailabilityExceptionIn) -> bool:
    """Insert the exception unless (employee, date, type) is already recorded."""
    existing = session.exec(
        select(ExceptionModel.id)
        .where(ExceptionModel.employee_id == employee_id)
        .where(ExceptionModel.date == exception.date)
        .where(ExceptionModel.kind == exception.type)
    ).first()
    if existing is not None:
        return False

    row = ExceptionModel(
        employee_id=employee_id,
        date=exception.date,
        kind=exception.type,
        note=exception.note,
    )
    if isinstance(exception, CustomException):
        row.start_time = parse_hhmm(exception.start_time)
        row.end_time = parse_hhmm(exception.end_time)

    session.add(row)
    try:
        session.commit()
    except IntegrityError:
        # inserted concurrently under the same key
        session.rollback()
        return False

    logger.info(f"Recorded {exception.type} exception for employee {employee_id} on {exception.date}")
    return True


def list_exceptions(session: Session, employee_id: int, from_date: date, to_date: date) -> List[ExceptionModel]:
    return session.exec(
        select(ExceptionModel)
        .where(ExceptionModel.employee_id == employee_id)
        .where(ExceptionModel.date >= from_date)
        .where(ExceptionModel.date <= to_date)
        .order_by(ExceptionModel.date, ExceptionModel.kind, ExceptionModel.start_time)
    ).all()


def exception_to_schema(row: ExceptionModel) -> AvailabilityExceptionIn:
    if row.kind == ExceptionKind.off.value:
        return OffException(date=row.date, note=row.note)
    return CustomException(
        date=row.date,
        start_time=format_hhmm(row.start_time),
        end_time=format_hhmm(row.end_time),
        note=row.note,
    )


# ----- materialization -----

def resolve_day_blocks(
    day: date,
    rules: Sequence[WeeklyRuleModel],
    exceptions: Sequence[ExceptionModel],
) -> List[Tuple[time, time]]:
    custom = [ex for ex in exceptions if ex.kind == ExceptionKind.custom.value]
    if custom:
        return [(ex.start_time, ex.end_time) for ex in custom]

    if any(ex.kind == ExceptionKind.off.value for ex in exceptions):
        return []

    dow = day_of_week(day)
    return [
        (rule.start_time, rule.end_time)
        for rule in rules
        if rule.active and rule.day_of_week == dow
    ]


def materialize(session: Session, employee_id: int, from_date: date, days: int) -> int:
    """
    Rebuild the availability blocks of ``employee_id`` for ``days`` dates
    starting at ``from_date``.

    Existing blocks of every date in the range are replaced, all dates in a
    single transaction. Returns the number of dates processed.
    """
    days = max(0, days)
    if days == 0:
        return 0

    to_date = from_date + timedelta(days=days - 1)
    rules = get_weekly_rules(session, employee_id)

    exceptions_by_date: Dict[date, List[ExceptionModel]] = {}
    for ex in list_exceptions(session, employee_id, from_date, to_date):
        exceptions_by_date.setdefault(ex.date, []).append(ex)

    try:
        for offset in range(days):
            day = from_date + timedelta(days=offset)
            blocks = resolve_day_blocks(day, rules, exceptions_by_date.get(day, []))

            session.exec(
                delete(AvailabilityBlock)
                .where(AvailabilityBlock.employee_id == employee_id)
                .where(AvailabilityBlock.date == day)
            )
            for start_time, end_time in blocks:
                session.add(AvailabilityBlock(
                    employee_id=employee_id,
                    date=day,
                    start_at=datetime.combine(day, start_time),
                    end_at=datetime.combine(day, end_time),
                ))
        session.commit()
    except Exception:
        session.rollback()
        raise

    logger.info(f"Materialized availability for employee {employee_id}: {from_date} .. {to_date}")
    return days


def ensure_materialized_employee_availability(
    session: Session, employee_id: int, from_date: date, days: int
) -> int:
    """Materialize the range; no-op (returns 0) for an employee without weekly rules."""
    if not get_weekly_rules(session, employee_id):
        logger.debug(f"Employee {employee_id} has no weekly rules; nothing to materialize")
        return 0
    return materialize(session, employee_id, from_date, days)


def ensure_materialized_employee_day(session: Session, employee_id: int, day: date) -> None:
    """Materialize a single date unless blocks for it already exist."""
    if repository.has_blocks(session, employee_id, day):
        return
    ensure_materialized_employee_availability(session, employee_id, day, 1)


# ----- store + re-materialize, as used by the HTTP layer -----

def _clamp_days(days: Optional[int], settings: Settings) -> int:
    if days is None:
        days = settings.MATERIALIZE_DAYS_DEFAULT
    return max(1, min(days, settings.MATERIALIZE_DAYS_MAX))


def apply_weekly_rules(
    session: Session,
    employee_id: int,
    rules: Sequence[WeeklyRule],
    settings: Settings,
    from_date: Optional[date] = None,
    days: Optional[int] = None,
) -> int:
    set_weekly_rules(session, employee_id, rules)

    start = today(settings.BUSINESS_TIMEZONE)
    if from_date is not None and from_date > start:
        start = from_date
    return ensure_materialized_employee_availability(
        session, employee_id, start, _clamp_days(days, settings)
    )


def record_exception(
    session: Session,
    employee_id: int,
    exception: AvailabilityExceptionIn,
    settings: Settings,
    days: Optional[int] = None,
) -> Tuple[bool, int]:
    created = add_exception(session, employee_id, exception)

    start = max(today(settings.BUSINESS_TIMEZONE), exception.date)
    materialized = ensure_materialized_employee_availability(
        session, employee_id, start, _clamp_days(days, settings)
    )
    return created, materialized
