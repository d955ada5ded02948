from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shopcore.core.settings import get_settings


def add_cors_middleware(app: FastAPI) -> None:
    settings = get_settings()

    # Cookie auth needs credentials; the CSRF header must be allowed explicitly.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", settings.csrf_header_name],
    )
