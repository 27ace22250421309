from rest_framework.permissions import BasePermission, SAFE_METHODS

from authentication.models import CustomUser

# =====================================================
# Generic Role Permissions
# =====================================================

class IsOwner(BasePermission):
    """
    Allows access only to users with global role OWNER
    """
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_owner


class IsEditorOrAbove(BasePermission):
    """
    Allows access to users whose global role is EDITOR or OWNER
    """
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.has_minimum_role(CustomUser.Role.EDITOR)


# =====================================================
# Read-Only Permission for Certain Roles
# =====================================================

class ReadOnlyOrEditor(BasePermission):
    """
    Any authenticated role may read (GET, HEAD, OPTIONS); writes need EDITOR
    """
    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        if request.method in SAFE_METHODS:
            return True
        return request.user.has_minimum_role(CustomUser.Role.EDITOR)


# =====================================================
# Store-scoped checks
# =====================================================

def has_store_role(user, store_id, required_role):
    """
    Global OWNER passes every store check. Everyone else needs a StoreRole
    on that store at or above `required_role`.
    """
    if not user or not user.is_authenticated:
        return False
    if user.is_owner:
        return True

    from store.models import StoreRole

    store_role = StoreRole.objects.filter(user=user, store_id=store_id).first()
    if store_role is None:
        return False
    return CustomUser.role_level(store_role.role) >= CustomUser.role_level(required_role)


class HasStoreRole(BasePermission):
    """
    Object-level check for catalog objects exposing `owning_store_id`.
    Reads need VIEWER, writes EDITOR. Objects owned by no store (global
    discounts) fall through to the OWNER-only branch of has_store_role.
    """
    def has_object_permission(self, request, view, obj):
        store_id = getattr(obj, "owning_store_id", None)
        required = CustomUser.Role.VIEWER if request.method in SAFE_METHODS else CustomUser.Role.EDITOR
        return has_store_role(request.user, store_id, required)
