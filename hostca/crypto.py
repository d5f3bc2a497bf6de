import datetime
from typing import Tuple
from zope.interface import Interface, implementer
from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID
from .exceptions import UnsupportedDigestError
from .wrapper import Cert, Request, PrivateKey, SerialNumber, Name


DIGESTS = {
    'md5': hashes.MD5,
    'sha1': hashes.SHA1,
    'sha224': hashes.SHA224,
    'sha256': hashes.SHA256,
    'sha384': hashes.SHA384,
    'sha512': hashes.SHA512,
    'sha3-224': hashes.SHA3_224,
    'sha3-256': hashes.SHA3_256,
    'sha3-384': hashes.SHA3_384,
    'sha3-512': hashes.SHA3_512,
}


def normalize_digest_name(name: str) -> str:
    return name.strip().lower().replace('_', '-')


class ICryptoProvider(Interface):

    def get_digest(name):
        """Hash algorithm instance for a digest name, raise UnsupportedDigestError if unknown."""

    def generate_key(keylength):
        """Generate a new private key."""

    def create_request(common_name, key):
        """Create a certificate signing request for common_name signed with key."""

    def create_ca(common_name, key, serial, ttl_days):
        """Create a self-signed CA certificate."""

    def sign_request(request, ca_cert, ca_key, serial, ttl_days):
        """Issue a certificate for the request, signed by the CA."""

    def verify(cert, ca_chain, revoked_serials):
        """Return None if the certificate is valid, else the reason why it is not."""


@implementer(ICryptoProvider)
class CryptoProvider:
    """Key, request and certificate operations with the cryptography library."""

    def get_digest(self, name: str) -> hashes.HashAlgorithm:
        try:
            return DIGESTS[normalize_digest_name(name)]()
        except KeyError:
            raise UnsupportedDigestError(name) from None

    def generate_key(self, keylength: int=4096) -> PrivateKey:
        key = rsa.generate_private_key(public_exponent=65537, key_size=keylength)
        return PrivateKey.from_key(key)

    def create_request(self, common_name: str, key: PrivateKey) -> Request:
        subject = Name(common_name).to_x509()
        csr = (x509.CertificateSigningRequestBuilder()
               .subject_name(subject)
               .sign(key.to_key(), hashes.SHA256()))
        return Request.from_x509(csr)

    def create_ca(self, common_name: str, key: PrivateKey, serial: SerialNumber,
                  ttl_days: int) -> Cert:
        name = Name(common_name).to_x509()
        public_key = key.to_key().public_key()
        builder = self._base_builder(name, name, public_key, serial, ttl_days)
        builder = (builder
                   .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
                   .add_extension(x509.KeyUsage(
                       digital_signature=False, content_commitment=False, key_encipherment=False,
                       data_encipherment=False, key_agreement=False, key_cert_sign=True,
                       crl_sign=True, encipher_only=False, decipher_only=False), critical=True)
                   .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key),
                                  critical=False))
        return Cert.from_x509(builder.sign(key.to_key(), hashes.SHA256()))

    def sign_request(self, request: Request, ca_cert: Cert, ca_key: PrivateKey,
                     serial: SerialNumber, ttl_days: int) -> Cert:
        csr = request.to_x509()
        public_key = csr.public_key()
        issuer = ca_cert.to_x509()
        builder = self._base_builder(csr.subject, issuer.subject, public_key, serial, ttl_days)
        builder = (builder
                   .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
                   .add_extension(x509.KeyUsage(
                       digital_signature=True, content_commitment=False, key_encipherment=True,
                       data_encipherment=False, key_agreement=False, key_cert_sign=False,
                       crl_sign=False, encipher_only=False, decipher_only=False), critical=True)
                   .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH,
                                                         ExtendedKeyUsageOID.CLIENT_AUTH]),
                                  critical=False)
                   .add_extension(x509.SubjectKeyIdentifier.from_public_key(public_key),
                                  critical=False)
                   .add_extension(x509.AuthorityKeyIdentifier.from_issuer_public_key(
                       issuer.public_key()), critical=False))
        return Cert.from_x509(builder.sign(ca_key.to_key(), hashes.SHA256()))

    @staticmethod
    def _base_builder(subject, issuer, public_key, serial, ttl_days):
        now = datetime.datetime.now(datetime.timezone.utc)
        return (x509.CertificateBuilder()
                .subject_name(subject)
                .issuer_name(issuer)
                .public_key(public_key)
                .serial_number(int(serial))
                # allow some clock skew between the CA and the clients
                .not_valid_before(now - datetime.timedelta(days=1))
                .not_valid_after(now + datetime.timedelta(days=ttl_days)))

    def verify(self, cert: Cert, ca_chain: Tuple[Cert, ...], revoked_serials) -> str:
        ca_cert = ca_chain[0]
        try:
            cert.to_x509().verify_directly_issued_by(ca_cert.to_x509())
        except (ValueError, TypeError, InvalidSignature):
            return 'certificate signature failure'
        now = datetime.datetime.now(datetime.timezone.utc)
        if now < cert.not_valid_before:
            return 'certificate is not yet valid'
        if now > cert.not_valid_after:
            return 'certificate has expired'
        if cert.serial_number in revoked_serials:
            return 'certificate revoked'
        return None
