"""SAML strategy adapter built on python3-saml (OneLogin toolkit)."""

import logging
from typing import Any
from urllib.parse import urlparse

from cryptography import x509
from cryptography.hazmat.primitives.serialization import load_pem_private_key
from onelogin.saml2.auth import OneLogin_Saml2_Auth
from onelogin.saml2.constants import OneLogin_Saml2_Constants
from onelogin.saml2.errors import OneLogin_Saml2_Error
from onelogin.saml2.settings import OneLogin_Saml2_Settings
from onelogin.saml2.utils import OneLogin_Saml2_Utils

from shelfgate.domain.auth.command.logout import LOGOUT_CALLBACK_PATH
from shelfgate.domain.auth.model.idp import Idp
from shelfgate.domain.auth.model.profile import SessionProfile
from shelfgate.domain.auth.port.saml_strategy import AssertionInfo, SamlRequest, SamlStrategy
from shelfgate.domain.shared.error import AuthenticationError, FederationConfigError

logger = logging.getLogger(__name__)

SP_ISSUER_PATH = "/shibboleth"
NAME_ID_FORMAT = OneLogin_Saml2_Constants.NAMEID_UNSPECIFIED

_REQUIRED_FIELDS = ("code", "name", "entry_point", "idp_cert", "sp_key", "sp_cert")


def login_path(code: str) -> str:
    return f"/login/{code}"


def callback_path(code: str) -> str:
    return f"/login/{code}/callback"


def metadata_path(code: str) -> str:
    return f"/login/{code}/metadata.xml"


def _check_credentials(idp: Idp) -> None:
    """Parse every certificate and key so bad material fails at startup."""
    for label, value in (("idp_cert", idp.idp_cert), ("sp_cert", idp.sp_cert)):
        pem = OneLogin_Saml2_Utils.format_cert(value)
        try:
            x509.load_pem_x509_certificate(pem.encode())
        except ValueError as e:
            raise FederationConfigError(
                f"IdP {idp.code}: unparsable {label}", code="bad_certificate"
            ) from e

    try:
        load_pem_private_key(OneLogin_Saml2_Utils.format_private_key(idp.sp_key).encode(), None)
    except (ValueError, TypeError) as e:
        raise FederationConfigError(
            f"IdP {idp.code}: unparsable sp_key", code="bad_certificate"
        ) from e


def build_settings(idp: Idp, app_url: str) -> dict[str, Any]:
    """Build the python3-saml settings dict for one IdP.

    Every strategy shares the SP issuer and logout callback; the assertion
    consumer service is specific to the IdP code.
    """
    settings: dict[str, Any] = {
        "strict": True,
        "debug": False,
        "sp": {
            "entityId": app_url + SP_ISSUER_PATH,
            "assertionConsumerService": {
                "url": app_url + callback_path(idp.code),
                "binding": OneLogin_Saml2_Constants.BINDING_HTTP_POST,
            },
            "singleLogoutService": {
                "url": app_url + LOGOUT_CALLBACK_PATH,
                "binding": OneLogin_Saml2_Constants.BINDING_HTTP_REDIRECT,
            },
            "NameIDFormat": NAME_ID_FORMAT,
            "x509cert": idp.sp_cert,
            # Same key decrypts assertions and signs requests
            "privateKey": idp.sp_key,
        },
        "idp": {
            "entityId": idp.issuer,
            "singleSignOnService": {
                "url": idp.entry_point,
                "binding": OneLogin_Saml2_Constants.BINDING_HTTP_REDIRECT,
            },
            "x509cert": idp.idp_cert,
        },
        "security": {
            "authnRequestsSigned": True,
            "logoutRequestSigned": True,
            "signMetadata": True,
            "requestedAuthnContext": False,
            "wantAssertionsSigned": False,
            "wantMessagesSigned": False,
        },
    }

    if idp.logout_url:
        settings["idp"]["singleLogoutService"] = {
            "url": idp.logout_url,
            "binding": OneLogin_Saml2_Constants.BINDING_HTTP_REDIRECT,
        }

    return settings


def _flatten_attributes(attributes: dict[str, list[str]]) -> dict[str, Any]:
    """Unwrap single-valued attributes; keep multi-valued ones as lists."""
    flat: dict[str, Any] = {}
    for name, values in attributes.items():
        if isinstance(values, list) and len(values) == 1:
            flat[name] = values[0]
        else:
            flat[name] = values
    return flat


class OneLoginSamlStrategy(SamlStrategy):
    """SamlStrategy implementation for one federation member."""

    def __init__(self, idp: Idp, app_url: str) -> None:
        missing = [f for f in _REQUIRED_FIELDS if not getattr(idp, f)]
        if missing:
            raise FederationConfigError(
                f"IdP {idp.code or '?'}: missing {', '.join(missing)}", code="incomplete_idp"
            )
        _check_credentials(idp)

        self._idp = idp
        self._app_url = app_url.rstrip("/")
        try:
            self._settings = OneLogin_Saml2_Settings(build_settings(idp, self._app_url))
        except OneLogin_Saml2_Error as e:
            raise FederationConfigError(
                f"IdP {idp.code}: rejected SAML settings: {e}", code="bad_settings"
            ) from e

    @property
    def idp(self) -> Idp:
        return self._idp

    def _request_data(self, request: SamlRequest) -> dict[str, Any]:
        """Request dict for python3-saml, anchored at the public app URL.

        Destination checks compare against this URL, so it is derived from
        configuration rather than from proxy-rewritten request headers.
        """
        parsed = urlparse(self._app_url)
        https = parsed.scheme == "https"
        return {
            "https": "on" if https else "off",
            "http_host": parsed.hostname or "",
            "server_port": parsed.port or (443 if https else 80),
            "script_name": parsed.path.rstrip("/") + request.path,
            "get_data": dict(request.get_data),
            "post_data": dict(request.post_data),
        }

    def _auth(self, request: SamlRequest) -> OneLogin_Saml2_Auth:
        return OneLogin_Saml2_Auth(self._request_data(request), old_settings=self._settings)

    def get_login_url(self, relay_state: str | None = None) -> str:
        auth = self._auth(SamlRequest(path=login_path(self._idp.code)))
        return auth.login(return_to=relay_state)

    def process_response(self, request: SamlRequest) -> AssertionInfo:
        auth = self._auth(request)
        try:
            # InResponseTo is not tracked: IdP-initiated logins are accepted
            auth.process_response(request_id=None)
        # Undecodable payloads surface as binascii (ValueError) or lxml (SyntaxError) errors
        except (OneLogin_Saml2_Error, ValueError, SyntaxError) as e:
            logger.warning("SAML response rejected: idp=%s, error=%s", self._idp.code, e)
            raise AuthenticationError("Bad login.", code="bad_login") from e

        errors = auth.get_errors()
        if errors:
            logger.warning(
                "SAML response invalid: idp=%s, errors=%s, reason=%s",
                self._idp.code,
                errors,
                auth.get_last_error_reason(),
            )
            raise AuthenticationError("Bad login.", code="bad_login")

        if not auth.is_authenticated():
            raise AuthenticationError("Bad login.", code="bad_login")

        attributes = _flatten_attributes(auth.get_attributes())
        attributes["nameID"] = auth.get_nameid()
        attributes["nameIDFormat"] = auth.get_nameid_format()
        attributes["sessionIndex"] = auth.get_session_index()
        return AssertionInfo(attributes=attributes)

    def get_metadata(self) -> str:
        # signMetadata signs with the SP key and certificate
        metadata = self._settings.get_sp_metadata()
        if isinstance(metadata, bytes):
            metadata = metadata.decode("utf-8")

        errors = self._settings.validate_metadata(metadata)
        if errors:
            raise FederationConfigError(
                f"IdP {self._idp.code}: invalid SP metadata: {', '.join(errors)}",
                code="bad_metadata",
            )
        return metadata

    def get_logout_url(self, profile: SessionProfile) -> str | None:
        if not self._idp.logout_url or not profile.supports_single_logout:
            return None

        auth = self._auth(SamlRequest(path=LOGOUT_CALLBACK_PATH))
        return auth.logout(
            name_id=profile.name_id,
            session_index=profile.session_index,
            name_id_format=profile.name_id_format,
        )
