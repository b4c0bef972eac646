"""Key material for SAML adapter tests."""

from datetime import UTC, datetime, timedelta

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

from shelfgate.domain.auth.model.idp import Idp


def _self_signed(common_name: str) -> tuple[str, str]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.TraditionalOpenSSL,
        serialization.NoEncryption(),
    ).decode()
    cert_pem = cert.public_bytes(serialization.Encoding.PEM).decode()
    return key_pem, cert_pem


@pytest.fixture(scope="session")
def sp_credentials() -> tuple[str, str]:
    return _self_signed("read.example.com")


@pytest.fixture(scope="session")
def idp_certificate() -> str:
    return _self_signed("idp.uni1.edu")[1]


@pytest.fixture
def make_idp(sp_credentials, idp_certificate):
    """Factory for a well-formed Idp with real key material."""
    sp_key, sp_cert = sp_credentials

    def factory(**overrides) -> Idp:
        fields = {
            "code": "uni1",
            "name": "University One",
            "entry_point": "https://idp.uni1.edu/idp/profile/SAML2/Redirect/SSO",
            "entity_id": "https://idp.uni1.edu/idp/shibboleth",
            "idp_cert": idp_certificate,
            "sp_key": sp_key,
            "sp_cert": sp_cert,
        }
        fields.update(overrides)
        return Idp(**fields)

    return factory
