"""Role and permission registry.

The registry is built once at startup and never mutated afterwards.
Route guards receive it through the `get_role_registry` dependency, so
tests can override it like any other collaborator.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from functools import lru_cache
from types import MappingProxyType
from typing import Annotated

from fastapi import Depends

from shopcore.user.models import UserRole


class Permission(StrEnum):
    """Fine-grained ``resource:action`` capabilities."""

    # User management
    USER_VIEW = "user:view"
    USER_CREATE = "user:create"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"

    # Catalog
    PRODUCT_VIEW = "product:view"
    PRODUCT_CREATE = "product:create"
    PRODUCT_UPDATE = "product:update"
    PRODUCT_DELETE = "product:delete"
    PRODUCT_PUBLISH = "product:publish"
    CATEGORY_VIEW = "category:view"
    CATEGORY_CREATE = "category:create"
    CATEGORY_UPDATE = "category:update"
    CATEGORY_DELETE = "category:delete"

    # Reviews
    REVIEW_VIEW = "review:view"
    REVIEW_MODERATE = "review:moderate"
    REVIEW_DELETE = "review:delete"
    REVIEW_REPLY = "review:reply"

    # Content
    CONTENT_VIEW = "content:view"
    CONTENT_CREATE = "content:create"
    CONTENT_UPDATE = "content:update"
    CONTENT_DELETE = "content:delete"
    ARTICLE_VIEW = "article:view"
    ARTICLE_CREATE = "article:create"
    ARTICLE_UPDATE = "article:update"
    ARTICLE_DELETE = "article:delete"
    ARTICLE_PUBLISH = "article:publish"
    MEDIA_VIEW = "media:view"
    MEDIA_UPLOAD = "media:upload"
    MEDIA_DELETE = "media:delete"

    # Newsletter
    NEWSLETTER_VIEW = "newsletter:view"
    NEWSLETTER_SEND = "newsletter:send"
    NEWSLETTER_MANAGE = "newsletter:manage"

    # Analytics
    ANALYTICS_VIEW = "analytics:view"
    ANALYTICS_EXPORT = "analytics:export"

    # Settings / system
    SETTINGS_VIEW = "settings:view"
    SETTINGS_UPDATE = "settings:update"
    SYSTEM_BACKUP = "system:backup"
    SYSTEM_RESTORE = "system:restore"
    SYSTEM_LOGS = "system:logs"


ROLE_HIERARCHY: tuple[UserRole, ...] = (
    UserRole.customer,
    UserRole.staff,
    UserRole.admin,
)

ROLE_DISPLAY_NAMES: Mapping[UserRole, str] = MappingProxyType(
    {
        UserRole.admin: "Administrator",
        UserRole.staff: "Staff",
        UserRole.customer: "Customer",
    }
)

STAFF_PERMISSIONS = frozenset(
    {
        Permission.PRODUCT_VIEW,
        Permission.PRODUCT_CREATE,
        Permission.PRODUCT_UPDATE,
        Permission.PRODUCT_PUBLISH,
        Permission.CATEGORY_VIEW,
        Permission.CATEGORY_CREATE,
        Permission.CATEGORY_UPDATE,
        Permission.REVIEW_VIEW,
        Permission.REVIEW_MODERATE,
        Permission.REVIEW_REPLY,
        Permission.CONTENT_VIEW,
        Permission.CONTENT_UPDATE,
        Permission.ARTICLE_VIEW,
        Permission.ARTICLE_CREATE,
        Permission.ARTICLE_UPDATE,
        Permission.ARTICLE_PUBLISH,
        Permission.MEDIA_VIEW,
        Permission.MEDIA_UPLOAD,
        Permission.NEWSLETTER_VIEW,
        Permission.NEWSLETTER_SEND,
        Permission.ANALYTICS_VIEW,
    }
)

CUSTOMER_PERMISSIONS = frozenset({Permission.PRODUCT_VIEW, Permission.REVIEW_VIEW})


@dataclass(frozen=True)
class RoleRegistry:
    """Immutable role → permission lookup plus the role ordering."""

    role_permissions: Mapping[UserRole, frozenset[Permission]]
    hierarchy: tuple[UserRole, ...] = ROLE_HIERARCHY
    display_names: Mapping[UserRole, str] = ROLE_DISPLAY_NAMES

    def permissions_for(self, role: UserRole | str) -> frozenset[Permission]:
        try:
            return self.role_permissions[UserRole(role)]
        except (KeyError, ValueError):
            return frozenset()

    def has_permission(
        self, role: UserRole | str, permission: Permission | str
    ) -> bool:
        return permission in self.permissions_for(role)

    def has_all(
        self, role: UserRole | str, permissions: Iterable[Permission | str]
    ) -> bool:
        granted = self.permissions_for(role)
        return all(p in granted for p in permissions)

    def has_any(
        self, role: UserRole | str, permissions: Iterable[Permission | str]
    ) -> bool:
        granted = self.permissions_for(role)
        return any(p in granted for p in permissions)

    def can_perform(self, role: UserRole | str, action: str, resource: str) -> bool:
        return self.has_permission(role, f"{resource}:{action}")

    def rank(self, role: UserRole | str) -> int:
        """Position in the hierarchy; -1 for unknown roles."""
        try:
            return self.hierarchy.index(UserRole(role))
        except ValueError:
            return -1

    def is_at_least(self, role: UserRole | str, minimum: UserRole | str) -> bool:
        rank = self.rank(role)
        return rank >= 0 and rank >= self.rank(minimum)

    def is_higher_than(self, role: UserRole | str, other: UserRole | str) -> bool:
        return self.rank(role) > self.rank(other)

    def display_name(self, role: UserRole | str) -> str:
        """Human label for ``role``; unknown roles are returned unchanged."""
        try:
            return self.display_names[UserRole(role)]
        except (KeyError, ValueError):
            return str(role)

    @property
    def top_role(self) -> UserRole:
        return self.hierarchy[-1]


def build_role_registry() -> RoleRegistry:
    """Build the registry; admin implicitly holds every defined permission."""
    mapping = {
        UserRole.admin: frozenset(Permission),
        UserRole.staff: STAFF_PERMISSIONS,
        UserRole.customer: CUSTOMER_PERMISSIONS,
    }
    return RoleRegistry(role_permissions=MappingProxyType(mapping))


@lru_cache
def get_role_registry() -> RoleRegistry:
    return build_role_registry()


RoleRegistryDep = Annotated[RoleRegistry, Depends(get_role_registry)]
