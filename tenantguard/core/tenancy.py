# tenantguard/core/tenancy.py
"""
Tenant isolation for every ORM read and write.

Reads: any SELECT that touches a tenant-scoped entity must carry the
``tenant_id`` execution option (``tenant_select`` sets it); the session hook
then adds an equality criterion on ``tenant_id`` to every tenant-scoped entity
in the statement, joined or not. A SELECT without the option is a programming
error and raises ``TenantIsolationViolation``.

Writes: new rows must name their tenant, and ``tenant_id`` never changes once
set. Objects can add their own invariants through ``check_tenant_invariants``.

The one sanctioned way around the filter is ``unscoped``, reserved for
authentication and the super-admin platform path.
"""
import logging

from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Session, declared_attr, validates, with_loader_criteria

from ..extensions import db
from .exceptions import TenantIsolationViolation

logger = logging.getLogger(__name__)

TENANT_OPTION = "tenant_id"
UNSCOPED_OPTION = "skip_tenant_scope"


class TenantScopedMixin:
    """Rows owned by exactly one tenant"""

    @declared_attr
    def tenant_id(cls):
        return db.Column(db.String(36), db.ForeignKey("tenants.id"), nullable=False, index=True)

    @validates("tenant_id")
    def _validate_tenant_id(self, key, value):
        if inspect(self).persistent:
            current = getattr(self, "tenant_id")
        else:
            current = self.__dict__.get("tenant_id")
        if current is not None and value != current:
            raise TenantIsolationViolation(
                f"{type(self).__name__} {self.id}: tenant_id is immutable ({current} -> {value})"
            )
        return value

    def check_tenant_invariants(self):
        """Hook for model-specific checks, run before every flush"""


def tenant_select(model, tenant_id):
    """SELECT over a tenant-scoped model, filtered to one tenant"""
    if tenant_id is None:
        raise TenantIsolationViolation(f"Query for {model.__name__} without a tenant")
    return (
        select(model)
        .where(model.tenant_id == tenant_id)
        .execution_options(**{TENANT_OPTION: tenant_id})
    )


def tenant_get(model, ident, tenant_id):
    """Load one row by primary key inside a tenant, or None"""
    if ident is None:
        return None
    stmt = tenant_select(model, tenant_id).where(model.id == ident)
    return db.session.execute(stmt).scalar_one_or_none()


def unscoped(statement, reason):
    """Mark a statement as deliberately crossing tenants"""
    logger.info(f"Unscoped tenant query: {reason}")
    return statement.execution_options(**{UNSCOPED_OPTION: True})


def _scoped_entities(orm_execute_state):
    return [
        mapper.class_
        for mapper in orm_execute_state.all_mappers
        if issubclass(mapper.class_, TenantScopedMixin)
    ]


def _enforce_tenant_scope(orm_execute_state):
    if orm_execute_state.is_column_load or orm_execute_state.is_relationship_load:
        return
    if not (
        orm_execute_state.is_select
        or orm_execute_state.is_update
        or orm_execute_state.is_delete
    ):
        return

    options = orm_execute_state.execution_options
    if options.get(UNSCOPED_OPTION, False):
        return

    scoped = _scoped_entities(orm_execute_state)
    if not scoped:
        return

    names = ", ".join(sorted(cls.__name__ for cls in scoped))
    if not orm_execute_state.is_select:
        raise TenantIsolationViolation(f"Bulk write against {names} bypasses tenant checks")

    tenant_id = options.get(TENANT_OPTION)
    if tenant_id is None:
        raise TenantIsolationViolation(f"SELECT on {names} without tenant scope")

    orm_execute_state.statement = orm_execute_state.statement.options(
        with_loader_criteria(
            TenantScopedMixin,
            lambda cls: cls.tenant_id == tenant_id,
            include_aliases=True,
        )
    )


def _guard_tenant_writes(session, flush_context, instances):
    for obj in session.new:
        if isinstance(obj, TenantScopedMixin):
            if obj.tenant_id is None:
                raise TenantIsolationViolation(f"{type(obj).__name__} created without a tenant")
            obj.check_tenant_invariants()

    for obj in session.dirty:
        if isinstance(obj, TenantScopedMixin):
            obj.check_tenant_invariants()


def init_tenant_isolation():
    """Install the session hooks once per process"""
    if not event.contains(Session, "do_orm_execute", _enforce_tenant_scope):
        event.listen(Session, "do_orm_execute", _enforce_tenant_scope)
    if not event.contains(Session, "before_flush", _guard_tenant_writes):
        event.listen(Session, "before_flush", _guard_tenant_writes)
