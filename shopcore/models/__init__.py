"""
Model package.

`SQLModel.metadata` is populated only when the table models are imported;
`init_db()` imports this module so every `table=True` model is registered.
"""

from shopcore.session.models import SessionRecord  # noqa: F401
from shopcore.user.models import User  # noqa: F401
