"""Shared dependency type aliases for FastAPI routes.

    from shopcore.core.deps import DbSessionDep, SettingsDep
"""

from typing import Annotated

from fastapi import Depends
from sqlmodel import Session

from shopcore.core.settings import Settings, get_settings
from shopcore.db.engine import get_session

# Database session
DbSessionDep = Annotated[Session, Depends(get_session)]

# Application settings
SettingsDep = Annotated[Settings, Depends(get_settings)]
