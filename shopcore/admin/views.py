from sqladmin import ModelView

from shopcore.auth.rbac import get_role_registry
from shopcore.session.models import SessionRecord
from shopcore.user.models import User


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"

    column_list = [
        User.email,
        User.name,
        User.role,
        User.status,
        User.email_verified,
        User.last_login_at,
        User.id,
        User.created_at,
        User.updated_at,
    ]

    column_searchable_list = [User.email, User.name]
    column_sortable_list = [
        User.email,
        User.name,
        User.role,
        User.status,
        User.last_login_at,
        User.created_at,
    ]

    # Credential material is never shown or edited through the UI.
    column_details_exclude_list = [
        User.password_hash,
        User.password_reset_token_hash,
        User.password_reset_expires_at,
        User.email_verification_token_hash,
        User.email_verification_expires_at,
    ]
    form_excluded_columns = [
        User.password_hash,
        User.password_reset_token_hash,
        User.password_reset_expires_at,
        User.email_verification_token_hash,
        User.email_verification_expires_at,
        User.created_at,
        User.updated_at,
    ]
    column_formatters = {
        User.role: lambda model, _: get_role_registry().display_name(model.role)
    }

    # Accounts are managed through the /users API only.
    can_create = False
    can_edit = False
    can_delete = False


class SessionAdmin(ModelView, model=SessionRecord):
    name = "Session"
    name_plural = "Sessions"
    icon = "fa-solid fa-key"

    column_list = [
        SessionRecord.user_email,
        SessionRecord.user_role,
        SessionRecord.created_at,
        SessionRecord.last_seen_at,
        SessionRecord.expires_at,
        SessionRecord.ip_address,
    ]
    column_searchable_list = [SessionRecord.user_email]
    column_sortable_list = [
        SessionRecord.created_at,
        SessionRecord.last_seen_at,
        SessionRecord.expires_at,
    ]
    # The id is the session cookie value.
    column_details_exclude_list = [SessionRecord.id]

    can_create = False
    can_edit = False
