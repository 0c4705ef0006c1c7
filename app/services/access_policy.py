"""
Role-based access policy.

Every list, count and search query over a collection starts from the scope
computed here, and every point operation on a loaded record goes through
``enforce``. Keeping both in one module means the list endpoints, the
dashboard and the search fan-out cannot disagree about what a caller sees.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Tuple
import logging

from ..core.config import settings
from ..core.exceptions import NotFoundError
from ..core.security import AuthorizationError, UserRole

logger = logging.getLogger(__name__)

class Entity(str, Enum):
    APPOINTMENT = "appointment"
    HEALTH_RECORD = "health_record"
    PREVENTIVE_CARE = "preventive_care"
    PATIENT = "patient"
    USER = "user"

class Operation(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    CANCEL = "cancel"
    DELETE = "delete"

ALL_ROLES: FrozenSet[UserRole] = frozenset(UserRole)
STAFF: FrozenSet[UserRole] = frozenset({UserRole.DOCTOR, UserRole.ADMIN})
ADMIN_ONLY: FrozenSet[UserRole] = frozenset({UserRole.ADMIN})
PATIENT_ONLY: FrozenSet[UserRole] = frozenset({UserRole.PATIENT})

# Role gate per (entity, operation); a missing pair is never allowed
PERMISSIONS: Dict[Tuple[Entity, Operation], FrozenSet[UserRole]] = {
    (Entity.APPOINTMENT, Operation.LIST): ALL_ROLES,
    (Entity.APPOINTMENT, Operation.READ): ALL_ROLES,
    (Entity.APPOINTMENT, Operation.CREATE): ALL_ROLES,
    (Entity.APPOINTMENT, Operation.UPDATE): ALL_ROLES,
    (Entity.APPOINTMENT, Operation.CANCEL): ALL_ROLES,
    (Entity.HEALTH_RECORD, Operation.LIST): ALL_ROLES,
    (Entity.HEALTH_RECORD, Operation.READ): ALL_ROLES,
    (Entity.HEALTH_RECORD, Operation.CREATE): STAFF,
    (Entity.HEALTH_RECORD, Operation.UPDATE): STAFF,
    (Entity.HEALTH_RECORD, Operation.DELETE): ADMIN_ONLY,
    (Entity.PREVENTIVE_CARE, Operation.LIST): ALL_ROLES,
    (Entity.PREVENTIVE_CARE, Operation.READ): ALL_ROLES,
    (Entity.PREVENTIVE_CARE, Operation.CREATE): STAFF,
    (Entity.PREVENTIVE_CARE, Operation.UPDATE): ALL_ROLES,
    (Entity.PREVENTIVE_CARE, Operation.DELETE): ADMIN_ONLY,
    (Entity.PATIENT, Operation.LIST): STAFF,
    (Entity.PATIENT, Operation.READ): ALL_ROLES,
    (Entity.PATIENT, Operation.CREATE): PATIENT_ONLY,
    (Entity.PATIENT, Operation.UPDATE): ALL_ROLES,
    # Gates the users section of search; the /users routes are admin only
    (Entity.USER, Operation.LIST): STAFF,
}

# Field holding the caller's id when the caller is the patient owner
PATIENT_SELF_FIELD: Dict[Entity, str] = {
    Entity.APPOINTMENT: "patient_id",
    Entity.HEALTH_RECORD: "patient_id",
    Entity.PREVENTIVE_CARE: "patient_id",
    Entity.PATIENT: "user_id",
    Entity.USER: "id",
}

# Field holding the caller's id when the caller is the responsible doctor
DOCTOR_SELF_FIELD: Dict[Entity, Optional[str]] = {
    Entity.APPOINTMENT: "doctor_id",
    Entity.HEALTH_RECORD: "recorded_by_id",
    Entity.PREVENTIVE_CARE: "assigned_by_id",
    Entity.PATIENT: None,
    Entity.USER: None,
}

# Field that startDate / endDate filters apply to
DATE_FIELD: Dict[Entity, str] = {
    Entity.APPOINTMENT: "appointment_date",
    Entity.HEALTH_RECORD: "date",
    Entity.PREVENTIVE_CARE: "scheduled_date",
    Entity.PATIENT: "created_at",
    Entity.USER: "created_at",
}

# Entities where a doctor's explicit patient filter widens the default scope
CROSS_PATIENT_ENTITIES = frozenset({Entity.HEALTH_RECORD, Entity.PREVENTIVE_CARE})

@dataclass(frozen=True)
class Constraint:
    field: str
    op: str  # eq | gte | lte | lt | in
    value: Any

    def to_clause(self, model):
        column = getattr(model, self.field)
        if self.op == "eq":
            return column == self.value
        if self.op == "gte":
            return column >= self.value
        if self.op == "lte":
            return column <= self.value
        if self.op == "lt":
            return column < self.value
        if self.op == "in":
            return column.in_(self.value)
        raise ValueError(f"Unsupported constraint operator: {self.op}")

@dataclass(frozen=True)
class Scope:
    """An ordered, comparable conjunction of constraints."""

    constraints: Tuple[Constraint, ...] = ()

    def and_(self, *constraints: Constraint) -> "Scope":
        return Scope(self.constraints + tuple(constraints))

    def apply(self, query, model):
        for constraint in self.constraints:
            query = query.filter(constraint.to_clause(model))
        return query

    def fields(self) -> Tuple[str, ...]:
        return tuple(c.field for c in self.constraints)

@dataclass
class ListFilters:
    """Caller-supplied list filters, before the role scope is applied."""

    patient: Optional[int] = None
    doctor: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    # Plain equality filters on model columns (status, type, record_type, ...)
    fields: Dict[str, Any] = field(default_factory=dict)

def is_permitted(user, entity: Entity, operation: Operation) -> bool:
    return user.role in PERMISSIONS.get((entity, operation), frozenset())

def require_permission(user, entity: Entity, operation: Operation) -> None:
    """Role gate for an operation, independent of any particular record."""
    if not is_permitted(user, entity, operation):
        logger.warning(
            f"Denied {operation.value} on {entity.value} for user {user.id} with role {user.role.value}"
        )
        raise AuthorizationError(
            f"User role '{user.role.value}' is not authorized to access this route"
        )

def _owner_constraint(user, entity: Entity, filters: ListFilters) -> Tuple[Constraint, ...]:
    role = user.role

    if role == UserRole.PATIENT:
        return (Constraint(PATIENT_SELF_FIELD[entity], "eq", user.id),)

    if role == UserRole.DOCTOR:
        self_field = DOCTOR_SELF_FIELD[entity]
        patient_field = PATIENT_SELF_FIELD[entity]
        if filters.patient is not None and entity in (
            Entity.APPOINTMENT, Entity.HEALTH_RECORD, Entity.PREVENTIVE_CARE
        ):
            requested = Constraint(patient_field, "eq", filters.patient)
            if entity in CROSS_PATIENT_ENTITIES and settings.DOCTOR_CROSS_PATIENT_ACCESS:
                return (requested,)
            return (Constraint(self_field, "eq", user.id), requested)
        if self_field is None:
            return ()
        return (Constraint(self_field, "eq", user.id),)

    if role == UserRole.ADMIN:
        constraints = []
        if filters.patient is not None and entity in (
            Entity.APPOINTMENT, Entity.HEALTH_RECORD, Entity.PREVENTIVE_CARE
        ):
            constraints.append(Constraint(PATIENT_SELF_FIELD[entity], "eq", filters.patient))
        if filters.doctor is not None and DOCTOR_SELF_FIELD[entity] is not None:
            constraints.append(Constraint(DOCTOR_SELF_FIELD[entity], "eq", filters.doctor))
        return tuple(constraints)

    raise ValueError(f"Unhandled role: {role}")

def compute_scope(user, entity: Entity, filters: Optional[ListFilters] = None) -> Scope:
    """
    Build the query scope for listing, counting or searching ``entity``.

    Exactly one role branch contributes the owner constraint; the remaining
    filters are ANDed after it. Date bounds are inclusive on both ends.
    """
    filters = filters or ListFilters()
    scope = Scope(_owner_constraint(user, entity, filters))

    for name, value in filters.fields.items():
        if value is not None:
            scope = scope.and_(Constraint(name, "eq", value))

    date_field = DATE_FIELD[entity]
    if filters.start_date is not None:
        scope = scope.and_(Constraint(date_field, "gte", filters.start_date))
    if filters.end_date is not None:
        scope = scope.and_(Constraint(date_field, "lte", filters.end_date))

    return scope

def _is_owner(user, entity: Entity, record) -> bool:
    role = user.role

    if role == UserRole.ADMIN:
        return True

    if role == UserRole.PATIENT:
        return getattr(record, PATIENT_SELF_FIELD[entity]) == user.id

    if role == UserRole.DOCTOR:
        self_field = DOCTOR_SELF_FIELD[entity]
        if self_field is None:
            # Doctors are care staff for every patient profile
            return entity == Entity.PATIENT
        return getattr(record, self_field) == user.id

    raise ValueError(f"Unhandled role: {role}")

def verdict(user, entity: Entity, operation: Operation, record) -> bool:
    """Allow/deny for a point operation on an already-loaded record."""
    if not is_permitted(user, entity, operation):
        return False

    if (
        user.role == UserRole.DOCTOR
        and operation == Operation.READ
        and entity in CROSS_PATIENT_ENTITIES
        and settings.DOCTOR_CROSS_PATIENT_ACCESS
    ):
        return True

    return _is_owner(user, entity, record)

def enforce(user, entity: Entity, operation: Operation, record, not_found: str = "Resource not found"):
    """
    Return ``record`` if ``user`` may perform ``operation`` on it.

    A missing record is reported as not found before ownership is looked at,
    so callers learn nothing about ids they could not access anyway.
    """
    if record is None:
        raise NotFoundError(not_found)

    if not verdict(user, entity, operation, record):
        logger.warning(
            f"Denied {operation.value} on {entity.value} {record.id} for user {user.id}"
        )
        action = "cancel" if operation == Operation.CANCEL else operation.value
        if operation == Operation.READ:
            action = "view"
        raise AuthorizationError(f"Not authorized to {action} this {entity.value.replace('_', ' ')}")

    return record
