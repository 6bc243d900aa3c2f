"""Tests for mTLS material generation."""

from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509.oid import ExtendedKeyUsageOID

from dex_operator.utils.certificates import generate_mtls_bundle, grpc_dns_names


@pytest.fixture(scope="module")
def bundle():
    return generate_mtls_bundle("idp", validity_days=30, key_size=2048)


def _verify_signed_by(cert: x509.Certificate, ca: x509.Certificate) -> None:
    ca.public_key().verify(
        cert.signature,
        cert.tbs_certificate_bytes,
        padding.PKCS1v15(),
        cert.signature_hash_algorithm,
    )


class TestGenerateMTLSBundle:
    """Test cases for generate_mtls_bundle."""

    def test_each_field_is_a_single_pem_block(self, bundle):
        """Test that no certificate is duplicated or concatenated."""
        for value in bundle.as_secret_data().values():
            assert value.count("-----BEGIN ") == 1
            assert value.count("-----END ") == 1

    def test_secret_field_names(self, bundle):
        """Test the secret field names."""
        assert set(bundle.as_secret_data()) == {
            "ca.crt", "ca.key", "tls.crt", "tls.key", "client.crt", "client.key",
        }

    def test_ca_is_self_signed_authority(self, bundle):
        """Test the CA certificate."""
        ca = x509.load_pem_x509_certificate(bundle.ca_cert.encode())
        assert ca.subject == ca.issuer
        assert ca.extensions.get_extension_for_class(x509.BasicConstraints).value.ca is True
        _verify_signed_by(ca, ca)

    def test_server_cert_signed_by_ca(self, bundle):
        """Test the server certificate chains to the CA and serves the grpc names."""
        ca = x509.load_pem_x509_certificate(bundle.ca_cert.encode())
        server = x509.load_pem_x509_certificate(bundle.server_cert.encode())
        assert server.issuer == ca.subject
        _verify_signed_by(server, ca)

        usage = server.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        assert ExtendedKeyUsageOID.SERVER_AUTH in usage
        sans = server.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        assert sans.get_values_for_type(x509.DNSName) == grpc_dns_names("idp")

    def test_client_cert_signed_by_ca(self, bundle):
        """Test the client certificate chains to the CA."""
        ca = x509.load_pem_x509_certificate(bundle.ca_cert.encode())
        client_cert = x509.load_pem_x509_certificate(bundle.client_cert.encode())
        _verify_signed_by(client_cert, ca)
        usage = client_cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        assert ExtendedKeyUsageOID.CLIENT_AUTH in usage

    def test_keys_match_certificates(self, bundle):
        """Test that each private key belongs to its certificate."""
        from cryptography.hazmat.primitives.serialization import load_pem_private_key

        pairs = [
            (bundle.ca_cert, bundle.ca_key),
            (bundle.server_cert, bundle.server_key),
            (bundle.client_cert, bundle.client_key),
        ]
        for cert_pem, key_pem in pairs:
            cert = x509.load_pem_x509_certificate(cert_pem.encode())
            key = load_pem_private_key(key_pem.encode(), password=None)
            assert cert.public_key().public_numbers() == key.public_key().public_numbers()

    def test_fresh_material_per_call(self, bundle):
        """Test that two bundles never share a CA."""
        other = generate_mtls_bundle("idp", validity_days=30, key_size=2048)
        assert other.ca_key != bundle.ca_key
        assert other.ca_cert != bundle.ca_cert
