# tenantguard/models/user.py
from sqlalchemy import event, inspect, select
from sqlalchemy.orm import Session

from tenantguard.extensions import db
from tenantguard.core.constants import DEFAULT_ROLES, OverrideEffect, RoleType
from tenantguard.core.database import BaseModel
from tenantguard.core.exceptions import TenantIsolationViolation
from tenantguard.core.security import SecurityMixin
from tenantguard.core.tenancy import TenantScopedMixin, tenant_get, unscoped
from tenantguard.core.utils import utcnow
from .permission import Permission
from .role import Role


class PermissionOverride(BaseModel):
    """Per-user grant or revoke of one catalog permission"""

    __tablename__ = "user_permission_overrides"
    __table_args__ = (
        db.UniqueConstraint("user_id", "permission_id", name="uq_override_user_permission"),
    )

    user_id = db.Column(
        db.String(36), db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    permission_id = db.Column(
        db.String(36), db.ForeignKey("permissions.id", ondelete="CASCADE"), nullable=False
    )
    effect = db.Column(db.String(10), nullable=False)

    permission = db.relationship(Permission, lazy="joined")
    user = db.relationship("User", back_populates="overrides")

    def __repr__(self):
        return f"<PermissionOverride {self.effect} {self.permission_id} for {self.user_id}>"


class User(TenantScopedMixin, BaseModel, SecurityMixin):
    __tablename__ = "users"

    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(150))
    password_hash = db.Column(db.String(255))

    role_id = db.Column(db.String(36), db.ForeignKey("roles.id"), nullable=True)
    role_type = db.Column(db.String(20), default=RoleType.CUSTOM.value, nullable=False)
    is_super_admin = db.Column(db.Boolean, default=False, nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    is_archived = db.Column(db.Boolean, default=False, nullable=False)
    archived_at = db.Column(db.DateTime)
    archived_by = db.Column(db.String(36))
    last_login = db.Column(db.DateTime)

    # Bumped on every override write; part of the effective-set cache key
    overrides_version = db.Column(db.Integer, default=1, nullable=False)

    role = db.relationship(Role, foreign_keys=[role_id])
    overrides = db.relationship(
        PermissionOverride, back_populates="user", lazy="selectin", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User {self.email}>"

    def _override_names(self, effect):
        return frozenset(
            override.permission.name
            for override in self.overrides
            if override.effect == effect.value
        )

    def granted_permission_names(self):
        return self._override_names(OverrideEffect.GRANTED)

    def revoked_permission_names(self):
        return self._override_names(OverrideEffect.REVOKED)

    def set_custom_permissions(self, granted=(), revoked=()):
        """Replace all overrides. A name in both lists ends up revoked.

        Raises ValueError for names that are not in the catalog.
        """
        revoked = set(revoked)
        granted = set(granted) - revoked
        wanted = granted | revoked

        found = {}
        if wanted:
            rows = db.session.execute(select(Permission).where(Permission.name.in_(wanted)))
            found = {permission.name: permission for permission in rows.scalars()}
        missing = wanted - set(found)
        if missing:
            raise ValueError(f"Unknown permissions: {', '.join(sorted(missing))}")

        # Old rows must be gone before re-inserting the same (user, permission) pair
        self.overrides = []
        if inspect(self).persistent:
            db.session.flush()

        self.overrides = [
            PermissionOverride(permission=found[name], effect=OverrideEffect.GRANTED.value)
            for name in sorted(granted)
        ] + [
            PermissionOverride(permission=found[name], effect=OverrideEffect.REVOKED.value)
            for name in sorted(revoked)
        ]
        self.overrides_version = (self.overrides_version or 0) + 1

    def grant_permission(self, name):
        self._set_override(name, OverrideEffect.GRANTED)

    def revoke_permission(self, name):
        self._set_override(name, OverrideEffect.REVOKED)

    def _set_override(self, name, effect):
        permission = db.session.execute(
            select(Permission).where(Permission.name == name)
        ).scalar_one_or_none()
        if permission is None:
            raise ValueError(f"Unknown permissions: {name}")

        for override in self.overrides:
            if override.permission_id == permission.id:
                override.effect = effect.value
                break
        else:
            self.overrides.append(PermissionOverride(permission=permission, effect=effect.value))
        self.overrides_version = (self.overrides_version or 0) + 1

    def assign_role(self, role):
        """Point the user at a role of its own tenant"""
        if role.tenant_id != self.tenant_id:
            raise TenantIsolationViolation(
                f"User {self.id} of tenant {self.tenant_id} cannot take role {role.id} "
                f"of tenant {role.tenant_id}"
            )
        self.role = role
        self.role_id = role.id
        self.role_type = _role_type_for(role)
        self.overrides_version = (self.overrides_version or 0) + 1

    @property
    def role_level(self):
        """Level of the role inside the user's tenant; None when unresolvable"""
        role = tenant_get(Role, self.role_id, self.tenant_id)
        if role is None or not role.is_usable:
            return None
        return role.level

    def set_active(self, active):
        self.is_active = bool(active)
        self.overrides_version = (self.overrides_version or 0) + 1

    def archive(self, archived_by=None):
        self.is_archived = True
        self.is_active = False
        self.archived_at = utcnow()
        self.archived_by = archived_by
        self.overrides_version = (self.overrides_version or 0) + 1

    def check_tenant_invariants(self):
        role = self.__dict__.get("role")
        if role is not None:
            role_tenant_id = role.tenant_id
        elif self.role_id and inspect(self).attrs.role_id.history.has_changes():
            with db.session.no_autoflush:
                role_tenant_id = db.session.execute(
                    unscoped(
                        select(Role.tenant_id).where(Role.id == self.role_id),
                        "role tenant check on user write",
                    )
                ).scalar_one_or_none()
        else:
            return

        if role_tenant_id is not None and role_tenant_id != self.tenant_id:
            raise TenantIsolationViolation(
                f"User {self.id} of tenant {self.tenant_id} references role of tenant {role_tenant_id}"
            )

    def update_last_login(self):
        """Update the last login timestamp"""
        self.last_login = utcnow()
        db.session.commit()

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "tenant_id": self.tenant_id,
            "role_id": self.role_id,
            "role_type": self.role_type,
            "is_active": self.is_active,
            "is_archived": self.is_archived,
            "granted_permissions": sorted(self.granted_permission_names()),
            "revoked_permissions": sorted(self.revoked_permission_names()),
            "last_login": self.last_login.isoformat() if self.last_login else None,
        }


def _role_type_for(role):
    definition = DEFAULT_ROLES.get(role.name)
    if role.is_system_role and definition is not None:
        return definition["role_type"].value
    return RoleType.CUSTOM.value


def _changed(obj, key):
    return inspect(obj).attrs[key].history.has_changes()


def _override_owner(session, override):
    user = override.user
    if user is None and override.user_id:
        stmt = unscoped(select(User).where(User.id == override.user_id), "override version bump")
        user = session.execute(stmt).scalar_one_or_none()
    return user


@event.listens_for(Session, "before_flush")
def _bump_access_versions(session, flush_context, instances):
    """Move role and override versions for any write path touching an effective set"""
    users = set()
    for obj in session.dirty:
        if isinstance(obj, Role):
            touched = any(_changed(obj, key) for key in ("permissions", "is_active", "is_archived"))
            if touched and not _changed(obj, "version"):
                obj.bump_version()
        elif isinstance(obj, User):
            if _changed(obj, "overrides"):
                users.add(obj)
        elif isinstance(obj, PermissionOverride):
            if _changed(obj, "effect") or _changed(obj, "permission_id"):
                users.add(_override_owner(session, obj))

    for obj in list(session.new) + list(session.deleted):
        if isinstance(obj, PermissionOverride):
            users.add(_override_owner(session, obj))

    for user in users:
        if user is None or user in session.deleted or inspect(user).pending:
            continue
        if _changed(user, "overrides_version"):
            continue
        user.overrides_version = (user.overrides_version or 0) + 1
