"""Identity provider record for the auth domain."""

from pydantic import BaseModel, ConfigDict


class Idp(BaseModel):
    """An institutional SAML identity provider, loaded once at startup.

    `code` is globally unique; it keys the SAML strategy table and joins
    against book licenses and user records.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    entry_point: str  # IdP single sign-on URL
    entity_id: str | None = None  # Issuer expected in assertions; defaults to entry_point
    logout_url: str | None = None  # IdP single logout URL, if supported
    idp_cert: str  # IdP signing certificate (PEM, headers optional)
    sp_key: str  # Our private key for this federation
    sp_cert: str  # Our certificate, published in metadata
    language: str | None = None
    logo_src: str | None = None
    small_logo_src: str | None = None

    @property
    def issuer(self) -> str:
        return self.entity_id or self.entry_point
