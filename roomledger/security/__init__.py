from .rbac import admin_required, current_user, ensure_owns, is_admin, require_role, scope_to_renter

__all__ = ["admin_required", "current_user", "ensure_owns", "is_admin", "require_role", "scope_to_renter"]
