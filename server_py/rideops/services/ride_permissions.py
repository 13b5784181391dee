"""Кто и какие поля поездки может менять в зависимости от статуса.

Чистые функции без обращения к БД: ``RideService`` находит поездку и
записывает то, что разрешил ``evaluate_ride_edit``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

PENDING = "Pending"
CONFIRMED = "Confirmed"
IN_PROGRESS = "In Progress"
COMPLETED = "Completed"
CANCELLED = "Cancelled"

RIDE_STATUSES = (PENDING, CONFIRMED, IN_PROGRESS, COMPLETED, CANCELLED)
CLOSED_STATUSES = frozenset({COMPLETED, CANCELLED})

ROLE_ADMIN = "admin"
ROLE_DRIVER = "driver"
ROLE_CUSTOMER = "customer"
ROLES = (ROLE_ADMIN, ROLE_DRIVER, ROLE_CUSTOMER)

ADMIN_EDITABLE_FIELDS = frozenset({
    "customer_id",
    "driver_id",
    "pickup_location",
    "dropoff_location",
    "pickup_date",
    "pickup_time",
    "status",
    "trip_type",
    "vehicle_type",
    "passengers",
    "price",
    "payment_status",
    "special_requirements",
    "admin_notes",
    "current_location",
    "estimated_arrival_time",
    "driver_notes",
})
DRIVER_EDITABLE_FIELDS = frozenset({"current_location", "estimated_arrival_time", "driver_notes"})
DRIVER_IN_PROGRESS_FIELDS = frozenset({"current_location", "estimated_arrival_time"})
CUSTOMER_EDITABLE_FIELDS = frozenset({"pickup_time", "pickup_date", "passengers", "special_requirements"})
CUSTOMER_IN_PROGRESS_FIELDS = frozenset({"special_requirements"})

# Rejection codes
NOT_FOUND = "not_found"
RIDE_CLOSED = "ride_closed"
NO_VALID_FIELDS = "no_valid_fields"
IN_PROGRESS_RESTRICTED = "in_progress_restricted"
UNKNOWN_ROLE = "unknown_role"

NOT_FOUND_MESSAGE = "Ride not found or unauthorized"


@dataclass(frozen=True)
class EditDecision:
    allowed: bool
    fields: FrozenSet[str] = frozenset()
    reason: str = ""
    code: Optional[str] = None

    @classmethod
    def allow(cls, fields: Iterable[str]) -> "EditDecision":
        return cls(allowed=True, fields=frozenset(fields))

    @classmethod
    def reject(cls, code: str, reason: str) -> "EditDecision":
        return cls(allowed=False, reason=reason, code=code)


def is_closed(status: str) -> bool:
    return status in CLOSED_STATUSES


def evaluate_ride_edit(
    status: str,
    role: str,
    requested_fields: Iterable[str],
    is_owner: bool = True,
) -> EditDecision:
    """Какие из ``requested_fields`` может изменить автор запроса.

    Правила по порядку:

    * не-админ должен быть владельцем поездки, иначе поездка "не найдена";
    * завершенные и отмененные поездки закрыты для водителей и клиентов;
    * админ меняет любые изменяемые колонки, в том числе у закрытых поездок;
    * водитель: местоположение, время прибытия, заметки; в пути заметки
      молча отбрасываются;
    * клиент: дата/время подачи, пассажиры, особые пожелания; в пути можно
      менять только особые пожелания, иначе отклоняется весь запрос.
    """
    requested = frozenset(requested_fields)

    if role not in ROLES:
        return EditDecision.reject(UNKNOWN_ROLE, f"Unknown role '{role}'")

    if role != ROLE_ADMIN and not is_owner:
        return EditDecision.reject(NOT_FOUND, NOT_FOUND_MESSAGE)

    if role != ROLE_ADMIN and is_closed(status):
        return EditDecision.reject(RIDE_CLOSED, "Cannot update completed or cancelled rides")

    if role == ROLE_ADMIN:
        allowed = requested & ADMIN_EDITABLE_FIELDS
    elif role == ROLE_DRIVER:
        editable = DRIVER_IN_PROGRESS_FIELDS if status == IN_PROGRESS else DRIVER_EDITABLE_FIELDS
        allowed = requested & editable
    else:
        if status == IN_PROGRESS and requested != CUSTOMER_IN_PROGRESS_FIELDS:
            return EditDecision.reject(
                IN_PROGRESS_RESTRICTED,
                "Only special requirements can be updated for rides in progress",
            )
        allowed = requested & CUSTOMER_EDITABLE_FIELDS

    if not allowed:
        return EditDecision.reject(NO_VALID_FIELDS, "No valid fields to update")
    return EditDecision.allow(allowed)


def can_change_status(current: str, new: str) -> Optional[str]:
    """Проверка смены статуса администратором. Возвращает текст ошибки или None."""
    if new not in RIDE_STATUSES:
        return "Invalid status value"
    if is_closed(current):
        return "Cannot update completed or cancelled rides"
    return None
