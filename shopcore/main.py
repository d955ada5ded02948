from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from sqladmin import Admin

from shopcore.admin.auth import AdminAuth
from shopcore.admin.views import SessionAdmin, UserAdmin
from shopcore.auth.rate_limit import limiter
from shopcore.auth.router import router as auth_router
from shopcore.core.cors import add_cors_middleware
from shopcore.core.email import get_mailer
from shopcore.core.exception_handlers import register_exception_handlers
from shopcore.core.http import close_email_client
from shopcore.core.logging import configure_logging
from shopcore.core.request_logging import add_request_logging_middleware
from shopcore.core.settings import get_settings
from shopcore.db.engine import engine, init_db
from shopcore.health.router import router as health_router
from shopcore.user.router import public_router as user_public_router
from shopcore.user.router import router as user_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    yield
    # Cleanup HTTP clients
    await close_email_client()
    get_mailer.cache_clear()


app = FastAPI(title=get_settings().app_name, version="0.1.0", lifespan=lifespan)

# slowapi looks the limiter up on app.state
app.state.limiter = limiter

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(user_public_router)
api_router.include_router(user_router)

app.include_router(api_router)

add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
admin.add_view(UserAdmin)
admin.add_view(SessionAdmin)
