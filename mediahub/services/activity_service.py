"""Activity tracking service: audit log writes, feed queries and statistics."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import distinct, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mediahub.core.cache import ACTIVITY_PREFIX, CHARTS_PREFIX, CacheKeys, CacheService
from mediahub.core.clock import MonotonicClock, default_clock
from mediahub.core.config import settings
from mediahub.core.exceptions import ActivityQueryError, StorageError, ValidationError
from mediahub.models import ActivityEntity, ActivityLog, ActivityType, TimeRange, User
from mediahub.models.base import generate_cuid
from mediahub.models.enums import ACTIVITY_STATS_RANGES
from mediahub.schemas.activity import (
    ActiveUserCounts,
    ActivityFilters,
    ActivityItem,
    ActivityStats,
    ActivitySummary,
    ActivityUser,
    MostActiveUser,
    PaginatedActivities,
    RecentImport,
    TopUser,
    UserActivityMetrics,
)
from mediahub.services.time_windows import parse_time_range, resolve_since

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)

TOP_USERS_LIMIT = 5
RECENT_IMPORTS_LIMIT = 10
UNKNOWN_USER_NAME = "Unknown User"
UNKNOWN_USER_EMAIL = "unknown@unknown"

# Largest value a BIGINT LIMIT/OFFSET parameter can carry
MAX_PAGE_BOUND = 2**63 - 1

# Mutations of these entities change what the contact charts count
CHART_ENTITIES = frozenset(
    {
        ActivityEntity.MEDIA_CONTACT,
        ActivityEntity.CATEGORY,
        ActivityEntity.COUNTRY,
        ActivityEntity.BEAT,
    }
)


def _coerce_enum(enum_cls: type[E], value: E | str, field: str) -> E:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {field}: {value}") from exc


def _coerce_filters(filters: ActivityFilters | Mapping[str, Any] | None) -> ActivityFilters | None:
    if filters is None or isinstance(filters, ActivityFilters):
        return filters
    try:
        return ActivityFilters.model_validate(dict(filters))
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid activity filters: {exc.errors()[0]['msg']}") from exc


def _check_page_bounds(limit: int, offset: int) -> None:
    for name, value in (("limit", limit), ("offset", offset)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValidationError(f"{name} must be a non-negative integer")
        if value > MAX_PAGE_BOUND:
            raise ValidationError(f"{name} must not exceed {MAX_PAGE_BOUND}")


def _import_count(details: dict[str, Any] | None) -> int:
    # Importers record the number of rows as details["count"]
    count = details.get("count") if isinstance(details, dict) else None
    if isinstance(count, int) and not isinstance(count, bool) and count > 0:
        return count
    return 1


class ActivityTrackingService:
    """Append activity records and answer dashboard queries over them."""

    def __init__(
        self,
        db: Session,
        cache: CacheService | None = None,
        clock: MonotonicClock | None = None,
    ) -> None:
        """Initialize activity tracking service.

        Args:
            db: Database session
            cache: Optional shared cache for windowed statistics
            clock: Timestamp source for new records
        """
        self.db = db
        self.cache = cache
        self.clock = clock or default_clock

    # ------------------------------------------------------------------ writes

    def log_activity(
        self,
        type: ActivityType | str,
        entity: ActivityEntity | str,
        entity_id: str,
        entity_name: str,
        user_id: str,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog:
        """Append one immutable activity record.

        The user id comes from the auth provider and is stored as given.
        Duplicate logical events produce duplicate rows.

        Args:
            type: Mutation kind
            entity: Entity kind affected
            entity_id: Identifier of the affected row
            entity_name: Display name of the affected row at write time
            user_id: Acting user
            details: Free-form payload describing the change

        Returns:
            The stored record

        Raises:
            ValidationError: If type or entity is not a known member
            StorageError: If the row could not be written
        """
        activity_type = _coerce_enum(ActivityType, type, "activity type")
        activity_entity = _coerce_enum(ActivityEntity, entity, "activity entity")

        entry = ActivityLog(
            id=generate_cuid(),
            type=activity_type.value,
            entity=activity_entity.value,
            entity_id=entity_id,
            entity_name=entity_name,
            user_id=user_id,
            details=details,
            timestamp=self.clock.now(),
        )

        try:
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception(
                "Failed to log %s activity for %s %s", activity_type.value, activity_entity.value, entity_id
            )
            raise StorageError("Failed to write activity record") from exc

        self._invalidate_cached_aggregates(activity_entity)
        return entry

    def record_activity(
        self,
        type: ActivityType | str,
        entity: ActivityEntity | str,
        entity_id: str,
        entity_name: str,
        user_id: str,
        details: dict[str, Any] | None = None,
    ) -> ActivityLog | None:
        """Best-effort variant of ``log_activity`` for mutation handlers.

        Call it after the primary mutation has been committed. A storage
        failure is logged and swallowed so the mutation's response is not
        turned into an error; validation errors still propagate.

        Returns:
            The stored record, or None if the write failed
        """
        try:
            return self.log_activity(type, entity, entity_id, entity_name, user_id, details)
        except StorageError:
            logger.warning(
                "Activity not recorded: %s %s %s by user %s", type, entity, entity_id, user_id
            )
            return None

    # ------------------------------------------------------------------- feed

    def get_recent_activities(
        self,
        limit: int = 20,
        offset: int = 0,
        filters: ActivityFilters | Mapping[str, Any] | None = None,
    ) -> PaginatedActivities:
        """Get a page of the activity feed, newest first.

        The page and the total count share one predicate and run in the same
        session transaction, so ``hasMore`` agrees with ``totalCount``.
        Rows with the same timestamp are ordered by id descending.

        Args:
            limit: Page size (non-negative)
            offset: Rows to skip (non-negative)
            filters: Conjunctive filters

        Returns:
            Page of activities with total count and hasMore flag

        Raises:
            ValidationError: If limit/offset are negative or filters invalid
            ActivityQueryError: If the store cannot be queried
        """
        _check_page_bounds(limit, offset)
        conditions = self._build_conditions(_coerce_filters(filters))

        with self._query_errors("load recent activities"):
            query = self.db.query(ActivityLog).filter(*conditions)
            total_count = query.count()
            rows = (
                query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
            users_by_id = self._resolve_users({row.user_id for row in rows})

        return PaginatedActivities(
            activities=[self._to_item(row, users_by_id.get(row.user_id)) for row in rows],
            totalCount=total_count,
            hasMore=offset + limit < total_count,
        )

    def get_activities_by_type(
        self, type: ActivityType | str, limit: int = 20, offset: int = 0
    ) -> PaginatedActivities:
        return self.get_recent_activities(limit, offset, {"type": type})

    def get_activities_by_entity(
        self, entity: ActivityEntity | str, limit: int = 20, offset: int = 0
    ) -> PaginatedActivities:
        return self.get_recent_activities(limit, offset, {"entity": entity})

    def get_activities_by_user(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> PaginatedActivities:
        return self.get_recent_activities(limit, offset, {"userId": user_id})

    def get_activities_by_date_range(
        self, start_date: datetime, end_date: datetime, limit: int = 20, offset: int = 0
    ) -> PaginatedActivities:
        return self.get_recent_activities(
            limit, offset, {"startDate": start_date, "endDate": end_date}
        )

    # ------------------------------------------------------------- aggregates

    def get_activity_stats(self, time_range: TimeRange | str = TimeRange.LAST_30_DAYS) -> ActivityStats:
        """Get activity statistics for a lookback window.

        Args:
            time_range: "7d", "30d" or "3m"

        Returns:
            Total, complete per-type and per-entity breakdowns, and the top
            users ranked by count (ties broken by user id)

        Raises:
            ValidationError: If the time range is not supported
            ActivityQueryError: If any sub-query fails
        """
        window = parse_time_range(time_range, allowed=ACTIVITY_STATS_RANGES)
        if self.cache is None:
            return self._compute_stats(window)
        return self.cache.get_or_set(
            CacheKeys.activity_stats(window.value),
            lambda: self._compute_stats(window),
            settings.CACHE_TTL_ACTIVITY,
        )

    def get_activity_summary(self) -> ActivitySummary:
        """Get all-time totals: record count, distinct users, latest timestamp."""
        with self._query_errors("summarize activities"):
            total, unique_users, last_timestamp = self.db.query(
                func.count(ActivityLog.id),
                func.count(distinct(ActivityLog.user_id)),
                func.max(ActivityLog.timestamp),
            ).one()

        return ActivitySummary(
            totalActivities=total or 0,
            uniqueUsers=unique_users or 0,
            lastActivityAt=last_timestamp,
        )

    def get_user_activity_metrics(self) -> UserActivityMetrics:
        """Get the admin overview of user activity.

        Active-user windows start at midnight UTC today, seven days ago and
        the first of the current month. Most active users are ranked over the
        last 30 days, recent imports cover the last 7.

        Returns:
            Active user counts, user totals, most active users and recent imports

        Raises:
            ActivityQueryError: If any sub-query fails
        """
        if self.cache is None:
            return self._compute_user_metrics()
        return self.cache.get_or_set(
            CacheKeys.user_activity_metrics(),
            self._compute_user_metrics,
            settings.CACHE_TTL_ACTIVITY,
        )

    def _compute_stats(self, time_range: TimeRange) -> ActivityStats:
        since = resolve_since(time_range, self.clock.now())
        in_window = ActivityLog.timestamp >= since

        with self._query_errors("compute activity statistics"):
            total = self.db.query(func.count(ActivityLog.id)).filter(in_window).scalar() or 0

            type_rows = (
                self.db.query(ActivityLog.type, func.count(ActivityLog.id))
                .filter(in_window)
                .group_by(ActivityLog.type)
                .all()
            )
            entity_rows = (
                self.db.query(ActivityLog.entity, func.count(ActivityLog.id))
                .filter(in_window)
                .group_by(ActivityLog.entity)
                .all()
            )

            activity_count = func.count(ActivityLog.id).label("activity_count")
            user_rows = (
                self.db.query(ActivityLog.user_id, activity_count)
                .filter(in_window)
                .group_by(ActivityLog.user_id)
                .order_by(activity_count.desc(), ActivityLog.user_id.asc())
                .limit(TOP_USERS_LIMIT)
                .all()
            )
            users_by_id = self._resolve_users({user_id for user_id, _ in user_rows})

        by_type = {member.value: 0 for member in ActivityType}
        by_type.update({key: count for key, count in type_rows if key in by_type})
        by_entity = {member.value: 0 for member in ActivityEntity}
        by_entity.update({key: count for key, count in entity_rows if key in by_entity})

        top_users = []
        for user_id, count in user_rows:
            display = self._display_user(users_by_id.get(user_id))
            top_users.append(
                TopUser(userId=user_id, name=display.name, email=display.email, activityCount=count)
            )

        return ActivityStats(
            timeRange=time_range.value,
            since=since,
            total=total,
            byType=by_type,
            byEntity=by_entity,
            topUsers=top_users,
        )

    def _compute_user_metrics(self) -> UserActivityMetrics:
        now = self.clock.now()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        start_of_month = start_of_day.replace(day=1)

        with self._query_errors("compute user activity metrics"):
            active_users = ActiveUserCounts(
                today=self._count_active_users(start_of_day),
                thisWeek=self._count_active_users(now - timedelta(days=7)),
                thisMonth=self._count_active_users(start_of_month),
            )
            total_users = self.db.query(func.count(User.id)).scalar() or 0
            new_users = (
                self.db.query(func.count(User.id)).filter(User.created_at >= start_of_month).scalar()
                or 0
            )

            activity_count = func.count(ActivityLog.id).label("activity_count")
            last_active = func.max(ActivityLog.timestamp).label("last_active")
            user_rows = (
                self.db.query(ActivityLog.user_id, activity_count, last_active)
                .filter(ActivityLog.timestamp >= now - timedelta(days=30))
                .group_by(ActivityLog.user_id)
                .order_by(activity_count.desc(), ActivityLog.user_id.asc())
                .limit(TOP_USERS_LIMIT)
                .all()
            )
            imports = (
                self.db.query(ActivityLog)
                .filter(
                    ActivityLog.type == ActivityType.IMPORT.value,
                    ActivityLog.timestamp >= now - timedelta(days=7),
                )
                .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
                .limit(RECENT_IMPORTS_LIMIT)
                .all()
            )
            users_by_id = self._resolve_users(
                {row.user_id for row in user_rows} | {row.user_id for row in imports}
            )

        most_active = []
        for user_id, count, last in user_rows:
            display = self._display_user(users_by_id.get(user_id))
            most_active.append(
                MostActiveUser(
                    userId=user_id,
                    name=display.name,
                    email=display.email,
                    activityCount=count,
                    lastActive=last,
                )
            )

        return UserActivityMetrics(
            activeUsers=active_users,
            totalUsers=total_users,
            newUsersThisMonth=new_users,
            mostActiveUsers=most_active,
            recentImports=[
                RecentImport(
                    entity=ActivityEntity(row.entity),
                    count=_import_count(row.details),
                    timestamp=row.timestamp,
                    userId=row.user_id,
                    userName=self._display_user(users_by_id.get(row.user_id)).name,
                )
                for row in imports
            ],
        )

    def _count_active_users(self, since: datetime) -> int:
        return (
            self.db.query(func.count(distinct(ActivityLog.user_id)))
            .filter(ActivityLog.timestamp >= since)
            .scalar()
            or 0
        )

    # ---------------------------------------------------------------- helpers

    @contextmanager
    def _query_errors(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Failed to %s", operation)
            raise ActivityQueryError(f"Failed to {operation}") from exc

    def _build_conditions(self, filters: ActivityFilters | None) -> list:
        if filters is None:
            return []

        conditions = []
        if filters.type is not None:
            conditions.append(ActivityLog.type == filters.type.value)
        if filters.entity is not None:
            conditions.append(ActivityLog.entity == filters.entity.value)
        if filters.userId is not None:
            conditions.append(ActivityLog.user_id == filters.userId)
        if filters.startDate is not None:
            conditions.append(ActivityLog.timestamp >= filters.startDate)
        if filters.endDate is not None:
            conditions.append(ActivityLog.timestamp <= filters.endDate)
        return conditions

    def _resolve_users(self, user_ids: set[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        users = self.db.query(User).filter(User.id.in_(user_ids)).all()
        return {user.id: user for user in users}

    @staticmethod
    def _display_user(user: User | None) -> ActivityUser:
        # Users deleted since the write resolve to a placeholder
        if user is None:
            return ActivityUser(name=UNKNOWN_USER_NAME, email=UNKNOWN_USER_EMAIL)
        return ActivityUser(name=user.name or UNKNOWN_USER_NAME, email=user.email)

    def _to_item(self, row: ActivityLog, user: User | None) -> ActivityItem:
        return ActivityItem(
            id=row.id,
            type=ActivityType(row.type),
            entity=ActivityEntity(row.entity),
            entityId=row.entity_id,
            entityName=row.entity_name,
            userId=row.user_id,
            user=self._display_user(user),
            timestamp=row.timestamp,
            details=row.details,
        )

    def _invalidate_cached_aggregates(self, entity: ActivityEntity) -> None:
        if self.cache is None:
            return
        self.cache.clear_by_prefix(ACTIVITY_PREFIX)
        if entity in CHART_ENTITIES:
            self.cache.clear_by_prefix(CHARTS_PREFIX)
