"""
Holiday rule management on top of the holidays table.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

import holidays
from sqlalchemy import delete, select

from order_scheduler.core.classifier import iter_days, weekday_index
from order_scheduler.errors import RuleValidationError
from order_scheduler.data.schemas import HolidayKind, HolidayRule, HolidayRuleCreate, Task
from order_scheduler.store.database import Database
from order_scheduler.store.models import HolidayRuleRecord

logger = logging.getLogger(__name__)


def _to_rule(record: HolidayRuleRecord) -> HolidayRule:
    return HolidayRule.model_validate(record, from_attributes=True)


def rule_applies_on(rule: HolidayRule, day: date) -> bool:
    """
    Check whether a rule targets a date, ignoring its cancelled flag.

    Used to find the orders a rule touches, e.g. right after it was cancelled.
    """
    if rule.kind in (HolidayKind.SPECIFIC_DATE, HolidayKind.EXCEPTION):
        return rule.holiday_date == day
    if rule.weekday is None or rule.effective_from is None:
        return False
    return rule.weekday == weekday_index(day) and day >= rule.effective_from


class HolidayRuleService:
    """Creates, cancels and queries holiday rules."""

    def __init__(self, database: Database):
        """
        Initialize the rule service.

        Args:
            database: Database holding the holidays table.
        """
        self.database = database

    def list_rules(self, include_cancelled: bool = True) -> List[HolidayRule]:
        """All rules, newest first."""
        query = select(HolidayRuleRecord).order_by(
            HolidayRuleRecord.created_at.desc(), HolidayRuleRecord.id.desc()
        )
        if not include_cancelled:
            query = query.where(HolidayRuleRecord.cancelled.is_(False))
        with self.database.session() as db:
            return [_to_rule(record) for record in db.scalars(query)]

    def active_rules(self) -> List[HolidayRule]:
        return self.list_rules(include_cancelled=False)

    def cancelled_rules(self) -> List[HolidayRule]:
        return [r for r in self.list_rules() if r.cancelled]

    def get(self, rule_id: int) -> HolidayRule:
        with self.database.session() as db:
            return _to_rule(Database.get_or_raise(db, HolidayRuleRecord, rule_id))

    def active_recurring_rule(self) -> Optional[HolidayRule]:
        """The active recurring weekday rule, if any."""
        for rule in self.active_rules():
            if rule.kind == HolidayKind.DAY_OF_WEEK:
                return rule
        return None

    def active_and_future(self, today: Optional[date] = None) -> List[HolidayRule]:
        """Active rules dated today or later, plus every active recurring rule."""
        today = today or date.today()
        return [
            rule for rule in self.active_rules()
            if rule.kind == HolidayKind.DAY_OF_WEEK
            or (rule.holiday_date is not None and rule.holiday_date >= today)
        ]

    def expired(self, today: Optional[date] = None) -> List[HolidayRule]:
        """Active specific-date holidays and exceptions in the past, newest first."""
        today = today or date.today()
        past = [
            rule for rule in self.active_rules()
            if rule.kind != HolidayKind.DAY_OF_WEEK
            and rule.holiday_date is not None
            and rule.holiday_date < today
        ]
        return sorted(past, key=lambda r: r.holiday_date, reverse=True)

    def create(self, form: HolidayRuleCreate, today: Optional[date] = None) -> HolidayRule:
        """
        Validate and store a new holiday rule.

        Args:
            form: Rule form data.
            today: Default start of a recurring rule without effective_from.

        Returns:
            The stored HolidayRule.

        Raises:
            RuleValidationError: If the form is incomplete or a recurring rule
                is already active.
        """
        if not form.name or not form.name.strip():
            raise RuleValidationError("Name and holiday type are required")

        if form.kind == HolidayKind.SPECIFIC_DATE and form.holiday_date is None:
            raise RuleValidationError("Date is required for specific date holidays")
        if form.kind == HolidayKind.EXCEPTION and form.holiday_date is None:
            raise RuleValidationError("Date is required for exceptions")
        if form.kind == HolidayKind.DAY_OF_WEEK and form.weekday is None:
            raise RuleValidationError("Day of week is required for recurring holidays")

        if form.kind == HolidayKind.DAY_OF_WEEK:
            existing = self.active_recurring_rule()
            if existing is not None:
                raise RuleValidationError(
                    "Only one active recurring holiday can exist at a time. "
                    f"Cancel '{existing.name}' (id {existing.id}) first."
                )

        effective_from = form.effective_from
        if form.kind == HolidayKind.SPECIFIC_DATE:
            effective_from = form.holiday_date
        elif form.kind == HolidayKind.DAY_OF_WEEK and effective_from is None:
            effective_from = today or date.today()

        now = datetime.now()
        record = HolidayRuleRecord(
            name=form.name.strip(),
            kind=form.kind.value,
            holiday_date=form.holiday_date if form.kind != HolidayKind.DAY_OF_WEEK else None,
            weekday=form.weekday if form.kind == HolidayKind.DAY_OF_WEEK else None,
            effective_from=effective_from,
            cancelled=False,
            cancelled_on=None,
            created_at=now,
            updated_at=now,
        )
        with self.database.session() as db:
            db.add(record)
            db.flush()
            rule = _to_rule(record)

        logger.info(f"Created holiday rule {rule.id}: {rule.name} ({rule.describe()})")
        return rule

    def cancel(
        self, rule_id: int, tasks: Iterable[Task] = (), today: Optional[date] = None
    ) -> List[Task]:
        """
        Soft-delete a rule.

        Args:
            rule_id: Rule to cancel.
            tasks: Orders to check for impact.
            today: Cancellation date.

        Returns:
            Orders whose range includes a day the rule applied to.

        Raises:
            RuleValidationError: If the rule is a past specific-date holiday or
                already cancelled.
        """
        today = today or date.today()
        rule = self.get(rule_id)

        if rule.cancelled:
            raise RuleValidationError(f"Holiday rule {rule_id} is already cancelled")
        if (
            rule.kind == HolidayKind.SPECIFIC_DATE
            and rule.holiday_date is not None
            and rule.holiday_date < today
        ):
            raise RuleValidationError(
                "Cannot cancel past holidays. They are part of historical record."
            )

        affected = self.affected_tasks(rule, tasks)
        with self.database.session() as db:
            record = Database.get_or_raise(db, HolidayRuleRecord, rule_id)
            record.cancelled = True
            record.cancelled_on = today
            record.updated_at = datetime.now()
        logger.info(
            f"Cancelled holiday rule {rule_id}: {rule.name} ({len(affected)} affected orders)"
        )
        return affected

    def clear_cancelled(self) -> int:
        """Permanently delete all cancelled rules and return how many were removed."""
        with self.database.session() as db:
            removed = db.execute(
                delete(HolidayRuleRecord).where(HolidayRuleRecord.cancelled.is_(True))
            ).rowcount
        logger.info(f"Cleared {removed} cancelled holiday rules")
        return removed

    def affected_tasks(self, rule: HolidayRule, tasks: Iterable[Task]) -> List[Task]:
        """Open orders whose [start, end] range contains a day the rule targets."""
        affected = []
        for task in tasks:
            if task.is_completed:
                continue
            if any(rule_applies_on(rule, day) for day in iter_days(task.start_date, task.end_date)):
                affected.append(task)
        return affected

    def import_public_holidays(
        self,
        country: str,
        years: Iterable[int],
        subdiv: Optional[str] = None,
        language: Optional[str] = None,
    ) -> List[HolidayRule]:
        """
        Create specific-date rules from the public holiday calendar of a country.

        Dates already covered by an active specific-date rule are skipped.

        Args:
            country: ISO country code, e.g. 'DE'.
            years: Years to import.
            subdiv: Optional subdivision code, e.g. 'HH'.
            language: Optional language for holiday names.

        Returns:
            The newly created rules.
        """
        try:
            calendar = holidays.country_holidays(
                country.upper(), subdiv=subdiv, years=list(years), language=language
            )
        except NotImplementedError:
            raise RuleValidationError(f"Unknown country or subdivision: {country} {subdiv or ''}".strip())

        covered = {
            rule.holiday_date for rule in self.active_rules()
            if rule.kind == HolidayKind.SPECIFIC_DATE
        }
        created = []
        for holiday_date, name in sorted(calendar.items()):
            if holiday_date in covered:
                continue
            created.append(
                self.create(
                    HolidayRuleCreate(
                        name=name, kind=HolidayKind.SPECIFIC_DATE, holiday_date=holiday_date
                    )
                )
            )
        logger.info(f"Imported {len(created)} public holidays for {country}")
        return created
