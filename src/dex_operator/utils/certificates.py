"""Generation of the mutual-TLS material for Dex's gRPC API."""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from ..constants import (
    GRPC_SERVICE_NAME,
    SECRET_FIELD_CA_CERT,
    SECRET_FIELD_CA_KEY,
    SECRET_FIELD_CLIENT_CERT,
    SECRET_FIELD_CLIENT_KEY,
    SECRET_FIELD_SERVER_CERT,
    SECRET_FIELD_SERVER_KEY,
)

_ORGANIZATION = "identitatem"


@dataclass(frozen=True)
class MTLSBundle:
    """PEM encoded CA, server and client material. One PEM block per field."""

    ca_cert: str
    ca_key: str
    server_cert: str
    server_key: str
    client_cert: str
    client_key: str

    def as_secret_data(self) -> dict[str, str]:
        return {
            SECRET_FIELD_CA_CERT: self.ca_cert,
            SECRET_FIELD_CA_KEY: self.ca_key,
            SECRET_FIELD_SERVER_CERT: self.server_cert,
            SECRET_FIELD_SERVER_KEY: self.server_key,
            SECRET_FIELD_CLIENT_CERT: self.client_cert,
            SECRET_FIELD_CLIENT_KEY: self.client_key,
        }


def _generate_key(key_size: int) -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=key_size)


def _key_pem(key: rsa.RSAPrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _cert_pem(cert: x509.Certificate) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


def _name(common_name: str) -> x509.Name:
    return x509.Name(
        [
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, _ORGANIZATION),
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
        ]
    )


def grpc_dns_names(namespace: str) -> list[str]:
    """DNS names under which the gRPC service is reachable in-cluster."""
    return [
        GRPC_SERVICE_NAME,
        f"{GRPC_SERVICE_NAME}.{namespace}",
        f"{GRPC_SERVICE_NAME}.{namespace}.svc",
        f"{GRPC_SERVICE_NAME}.{namespace}.svc.cluster.local",
    ]


def _issue(
    ca_cert: x509.Certificate,
    ca_key: rsa.RSAPrivateKey,
    subject: x509.Name,
    key: rsa.RSAPrivateKey,
    usage: x509.ObjectIdentifier,
    not_before: datetime.datetime,
    not_after: datetime.datetime,
    dns_names: list[str] | None = None,
) -> x509.Certificate:
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(ca_cert.subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.ExtendedKeyUsage([usage]), critical=False)
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
    )
    if dns_names:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(n) for n in dns_names]),
            critical=False,
        )
    return builder.sign(ca_key, hashes.SHA256())


def generate_mtls_bundle(
    namespace: str,
    validity_days: int | None = None,
    key_size: int | None = None,
) -> MTLSBundle:
    """Generate a fresh CA plus a server and a client certificate signed by it.

    Args:
        namespace: Namespace of the gRPC service, used for the server SANs
        validity_days: Certificate lifetime (default from MTLS_CERT_VALIDITY_DAYS)
        key_size: RSA key size (default from MTLS_KEY_SIZE)

    Returns:
        MTLSBundle with PEM strings
    """
    if validity_days is None:
        validity_days = int(os.getenv("MTLS_CERT_VALIDITY_DAYS", "3650"))
    if key_size is None:
        key_size = int(os.getenv("MTLS_KEY_SIZE", "4096"))

    now = datetime.datetime.now(datetime.timezone.utc)
    not_before = now - datetime.timedelta(minutes=5)
    not_after = now + datetime.timedelta(days=validity_days)

    ca_key = _generate_key(key_size)
    ca_subject = _name(f"dex-grpc-ca.{namespace}")
    ca_cert = (
        x509.CertificateBuilder()
        .subject_name(ca_subject)
        .issuer_name(ca_subject)
        .public_key(ca_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=True,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(x509.SubjectKeyIdentifier.from_public_key(ca_key.public_key()), critical=False)
        .sign(ca_key, hashes.SHA256())
    )

    server_key = _generate_key(key_size)
    server_cert = _issue(
        ca_cert,
        ca_key,
        _name(f"{GRPC_SERVICE_NAME}.{namespace}.svc"),
        server_key,
        ExtendedKeyUsageOID.SERVER_AUTH,
        not_before,
        not_after,
        dns_names=grpc_dns_names(namespace),
    )

    client_key = _generate_key(key_size)
    client_cert = _issue(
        ca_cert,
        ca_key,
        _name(f"dex-grpc-client.{namespace}"),
        client_key,
        ExtendedKeyUsageOID.CLIENT_AUTH,
        not_before,
        not_after,
    )

    return MTLSBundle(
        ca_cert=_cert_pem(ca_cert),
        ca_key=_key_pem(ca_key),
        server_cert=_cert_pem(server_cert),
        server_key=_key_pem(server_key),
        client_cert=_cert_pem(client_cert),
        client_key=_key_pem(client_key),
    )
