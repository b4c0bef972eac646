"""Authentication routes for the SAML sign-on flow."""

import html
import logging
from typing import Annotated
from urllib.parse import quote

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse

from shelfgate.domain.auth.command.login import (
    CompleteLogin,
    CompleteLoginHandler,
    InitiateLogin,
    InitiateLoginHandler,
)
from shelfgate.domain.auth.command.logout import Logout, LogoutHandler
from shelfgate.domain.auth.model.profile import SESSION_PROFILE_KEY, SessionProfile
from shelfgate.domain.auth.port.provider_registry import ProviderRegistry
from shelfgate.domain.auth.port.saml_strategy import SamlRequest
from shelfgate.domain.auth.query.metadata import GetMetadata, GetMetadataHandler
from shelfgate.domain.auth.service.gate import LOGIN_REDIRECT_KEY

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"], route_class=DishkaRoute)


def _safe_redirect(target: object) -> str:
    """Only same-site paths are followed after login."""
    if isinstance(target, str) and target.startswith("/") and not target.startswith("//"):
        return target
    return "/"


def _chooser_page(registry: ProviderRegistry) -> str:
    items = []
    for code in registry.available_providers():
        strategy = registry.get(code)
        name = strategy.idp.name if strategy else code
        href = html.escape("/login/" + quote(code, safe=""))
        items.append(f'<li><a href="{href}">{html.escape(name)}</a></li>')
    body = "<ul>" + "".join(items) + "</ul>" if items else "<p>No login options are available.</p>"
    return f"<!DOCTYPE html><html><head><title>Login</title></head><body>{body}</body></html>"


@router.get("/login")
async def choose_provider(
    registry: FromDishka[ProviderRegistry],
    idp: Annotated[str | None, Query()] = None,
) -> Response:
    """Send the caller to an IdP, or let them pick one."""
    if idp:
        return RedirectResponse(url=f"/login/{quote(idp, safe='')}", status_code=302)

    available = registry.available_providers()
    if len(available) == 1:
        return RedirectResponse(url=f"/login/{quote(available[0], safe='')}", status_code=302)

    status_code = 200 if available else 503
    return HTMLResponse(_chooser_page(registry), status_code=status_code)


@router.get("/login/{code}")
async def initiate_login(
    code: str,
    handler: FromDishka[InitiateLoginHandler],
) -> Response:
    """Redirect into the IdP's single sign-on endpoint."""
    result = await handler.run(InitiateLogin(idp_code=code))
    logger.debug("SAML login initiated for idp=%s", code)
    return RedirectResponse(url=result.login_url, status_code=302)


@router.post("/login/{code}/callback")
async def login_callback(
    code: str,
    request: Request,
    handler: FromDishka[CompleteLoginHandler],
) -> Response:
    """Assertion consumer service: bind the provisioned profile to the session."""
    form = await request.form()
    saml_request = SamlRequest(
        path=request.url.path,
        get_data=dict(request.query_params),
        post_data={key: str(value) for key, value in form.items()},
    )
    result = await handler.run(CompleteLogin(idp_code=code, request=saml_request))

    session = request.session
    redirect_to = _safe_redirect(session.pop(LOGIN_REDIRECT_KEY, None))
    # Fresh id on privilege change
    session.regenerate()
    session[SESSION_PROFILE_KEY] = result.profile.to_session()

    logger.debug("Bound profile to session: idp=%s, user_id=%s", code, result.profile.id)
    return RedirectResponse(url=redirect_to, status_code=302)


@router.get("/login/{code}/metadata.xml")
async def sp_metadata(
    code: str,
    handler: FromDishka[GetMetadataHandler],
) -> Response:
    """Signed service-provider metadata for one IdP."""
    result = await handler.run(GetMetadata(idp_code=code))
    return Response(content=result.metadata, media_type="application/xml")


@router.get("/logout")
async def logout(
    request: Request,
    handler: FromDishka[LogoutHandler],
) -> Response:
    """Start single logout when possible, otherwise end the session locally."""
    profile = SessionProfile.from_session(request.session)
    result = await handler.run(Logout(profile=profile))
    return RedirectResponse(url=result.redirect_url, status_code=302)


@router.api_route("/logout/callback", methods=["GET", "POST"])
async def logout_callback(request: Request) -> Response:
    """Destroy the session and return to the library."""
    request.session.destroy()
    return RedirectResponse(url="/", status_code=302)
