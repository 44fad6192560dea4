class BaseAPIException(Exception):
    """Base exception class for API errors"""

    code = "BAD_REQUEST"

    def __init__(self, message, status_code=400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class Unauthenticated(BaseAPIException):
    """Raised when no authenticated principal is available"""

    code = "UNAUTHORIZED"

    def __init__(self, message="Authentication required", status_code=401):
        super().__init__(message, status_code)


class ResourceNotFound(BaseAPIException):
    """Raised when a resource does not exist inside the caller's tenant"""

    code = "NOT_FOUND"

    def __init__(self, message="Resource not found", status_code=404):
        super().__init__(message, status_code)


class TenantMismatch(ResourceNotFound):
    """Raised when a principal reaches for data of another tenant.

    Deliberately a ResourceNotFound: externally it must look exactly like a
    resource that does not exist. The real tenants are kept for server logs.
    """

    def __init__(self, principal_tenant_id=None, target_tenant_id=None):
        super().__init__()
        self.principal_tenant_id = principal_tenant_id
        self.target_tenant_id = target_tenant_id


class PermissionDenied(BaseAPIException):
    """Raised when user doesn't have required permissions"""

    code = "FORBIDDEN"

    def __init__(
        self, message="Permission denied", status_code=403, required_permission=None, role=None
    ):
        super().__init__(message, status_code)
        self.required_permission = required_permission
        self.role = role


class RoleNotFound(PermissionDenied):
    """Raised when a principal references a missing or archived role; resolves to deny-all"""

    def __init__(self, role_id=None, user_id=None):
        super().__init__("Permission denied")
        self.role_id = role_id
        self.user_id = user_id


class HierarchyViolation(PermissionDenied):
    """Raised when the acting principal does not outrank its target"""

    def __init__(self, message="Insufficient role level for this action", role=None, required_level=None):
        super().__init__(message, role=role)
        self.required_level = required_level


class ProtectedRole(PermissionDenied):
    """Raised when modifying a role that may not be changed"""


class RoleInUse(BaseAPIException):
    """Raised when archiving a role that is still assigned"""

    code = "CONFLICT"

    def __init__(self, message="Role is still assigned to users", status_code=400):
        super().__init__(message, status_code)


class TenantIsolationViolation(RuntimeError):
    """A data-access path tried to cross or omit the tenant boundary.

    This is a programming error, not a denial: it is never caught and
    translated into a softer outcome.
    """
