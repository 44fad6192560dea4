# tenantguard/core/catalog.py
import logging
from collections import namedtuple
from typing import Dict, Iterable, Optional
from uuid import uuid4

from sqlalchemy import select

from ..extensions import cache, db
from .constants import PERMISSION_MODULES, PermissionAction, PermissionScope

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "permission_catalog"
CATALOG_VERSION_KEY = "permission_catalog:version"

_ACTIONS = {action.value for action in PermissionAction}
_SCOPES = {scope.value for scope in PermissionScope}


class PermissionName(namedtuple("PermissionName", ["module", "action", "scope"])):
    """Parsed ``module.action[.scope]`` identifier"""

    __slots__ = ()

    @classmethod
    def parse(cls, name: str) -> "PermissionName":
        if not isinstance(name, str):
            raise ValueError(f"Permission identifier must be a string: {name!r}")

        parts = name.split(".")
        if len(parts) not in (2, 3):
            raise ValueError(f"Malformed permission identifier: {name!r}")

        module, action = parts[0], parts[1]
        scope = parts[2] if len(parts) == 3 else None

        if module not in PERMISSION_MODULES:
            raise ValueError(f"Unknown permission module {module!r} in {name!r}")
        if action not in _ACTIONS:
            raise ValueError(f"Unknown permission action {action!r} in {name!r}")
        if scope is not None and scope not in _SCOPES:
            raise ValueError(f"Unknown permission scope {scope!r} in {name!r}")

        return cls(module, action, scope)

    def with_scope(self, scope: Optional[PermissionScope]) -> "PermissionName":
        return self._replace(scope=scope.value if scope else None)

    def __str__(self):
        if self.scope:
            return f"{self.module}.{self.action}.{self.scope}"
        return f"{self.module}.{self.action}"


class PermissionCatalog:
    """Read-only snapshot of the permission catalog: identifier -> active flag.

    Snapshots are cached process-wide under a version stamp; every catalog
    write must call ``invalidate`` so that snapshots and the effective
    permission sets derived from them are dropped.
    """

    def __init__(self, entries: Dict[str, bool], version: str = "static"):
        self._entries = dict(entries)
        self.version = version

    def __contains__(self, name):
        return name in self._entries

    def __len__(self):
        return len(self._entries)

    def is_grantable(self, name: str) -> bool:
        """True only for identifiers present in the catalog and active"""
        return self._entries.get(name, False)

    def active_names(self) -> frozenset:
        return frozenset(name for name, active in self._entries.items() if active)

    @staticmethod
    def current_version() -> str:
        version = cache.get(CATALOG_VERSION_KEY)
        if version is None:
            version = uuid4().hex
            cache.set(CATALOG_VERSION_KEY, version, timeout=0)
        return version

    @classmethod
    def current(cls) -> "PermissionCatalog":
        from ..models.permission import Permission

        version = cls.current_version()
        key = f"{CATALOG_CACHE_KEY}:{version}"
        entries = cache.get(key)
        if entries is None:
            rows = db.session.execute(select(Permission.name, Permission.is_active)).all()
            entries = {name: bool(active) for name, active in rows}
            cache.set(key, entries, timeout=0)
            logger.debug(f"Loaded permission catalog version {version} ({len(entries)} entries)")
        return cls(entries, version)

    @staticmethod
    def invalidate():
        version = uuid4().hex
        cache.set(CATALOG_VERSION_KEY, version, timeout=0)
        logger.info(f"Permission catalog invalidated, new version {version}")

    @classmethod
    def seed(cls, definitions: Iterable = None) -> int:
        """Insert missing catalog entries; returns the number created"""
        from ..models.permission import Permission
        from .constants import DEFAULT_PERMISSIONS

        definitions = DEFAULT_PERMISSIONS if definitions is None else definitions
        existing = set(db.session.execute(select(Permission.name)).scalars())

        created = 0
        for module, action, scope in definitions:
            name = str(PermissionName(module, action, scope))
            if name in existing:
                continue
            db.session.add(Permission.from_name(name))
            existing.add(name)
            created += 1

        db.session.commit()
        if created:
            cls.invalidate()
        logger.info(f"Seeded {created} permissions")
        return created
