"""Per-request session resolution.

`get_request_context` looks the session cookie up once per request
(FastAPI caches the dependency) and hands the result down as an explicit
`RequestContext` value. The principal is also placed on
``request.state`` so the request logger can attribute the call.
"""

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request

from shopcore.core.deps import SettingsDep
from shopcore.session.store import Principal, SessionStoreDep


@dataclass(frozen=True)
class RequestContext:
    session_id: str | None = None
    principal: Principal | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.principal is not None


def get_request_context(
    request: Request, store: SessionStoreDep, settings: SettingsDep
) -> RequestContext:
    record = store.get(request.cookies.get(settings.session_cookie_name))
    if record is None:
        context = RequestContext()
    else:
        context = RequestContext(
            session_id=record.id, principal=Principal.from_record(record)
        )
    request.state.principal = context.principal
    return context


RequestContextDep = Annotated[RequestContext, Depends(get_request_context)]
