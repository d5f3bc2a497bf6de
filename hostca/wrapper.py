"""
    Wrapper around the cryptography x509 module for a nicer API.
"""
import datetime
from pathlib import Path
from typing import NewType, Iterable
from cryptography import x509
from cryptography.x509.oid import NameOID
from cryptography.hazmat.primitives import hashes, serialization


SerialHex = NewType('SerialHex', str)


class SerialNumber:

    def __init__(self, serial: str):
        # might have 0x prefix, and/or colons
        serial = serial.lower()
        if serial.startswith('0x'):
            serial = serial[2:]
        if ':' in serial:
            serial = self._decolonize(serial)
        int(serial, 16)
        serial = self._zero_prefix(serial)
        serial = self.colonize(serial)
        self._value = serial

    @classmethod
    def from_int(cls, serial: int):
        return cls(hex(serial))

    @classmethod
    def parse(cls, value: str):
        """Parse user input given as a decimal number or a hexadecimal number prefixed by '0x'.
        Returns None if the value is neither.
        """
        if value.isdigit():
            return cls.from_int(int(value))
        if value.lower().startswith('0x'):
            try:
                return cls(value)
            except ValueError:
                return None
        return None

    def __str__(self):
        return self._value

    def __repr__(self):
        return f'<{self.__class__.__name__}: {self._value}>'

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return int(self) == int(other)

    def __hash__(self):
        return hash(int(self))

    def __int__(self):
        return int(self.as_hex(), 16)

    def as_hex(self, prefix=False):
        serial_hex = self._decolonize(self._value)
        return '0x' + serial_hex if prefix else serial_hex

    @staticmethod
    def _zero_prefix(serial: SerialHex):
        if len(serial) % 2 == 1:
            serial = '0' + serial
        return serial

    @staticmethod
    def colonize(serial: SerialHex):
        return ':'.join(serial[i:i+2] for i in range(0, len(serial), 2))

    @staticmethod
    def _decolonize(serial: str):
        return serial.replace(':', '')


class Name:
    _human_friendly = {
        NameOID.COUNTRY_NAME: 'Country',
        NameOID.STATE_OR_PROVINCE_NAME: 'State/Province',
        NameOID.LOCALITY_NAME: 'Locality',
        NameOID.ORGANIZATION_NAME: 'Organization',
        NameOID.ORGANIZATIONAL_UNIT_NAME: 'Organizational Unit',
        NameOID.COMMON_NAME: 'Common Name',
        NameOID.EMAIL_ADDRESS: 'Email Address',
    }

    def __init__(self, common_name: str):
        self._name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented
        return self._name == other._name

    def __str__(self):
        return self._name.rfc4514_string()

    @classmethod
    def from_x509(cls, name: x509.Name):
        obj = cls.__new__(cls)
        obj._name = name
        return obj

    def to_x509(self) -> x509.Name:
        return self._name

    @property
    def common_name(self):
        attributes = self._name.get_attributes_for_oid(NameOID.COMMON_NAME)
        return attributes[0].value if attributes else None

    @property
    def formatted_lines(self):
        fields = [(self._human_friendly.get(a.oid, a.oid.dotted_string), a.value)
                  for a in self._name]
        if not fields:
            return iter(())
        max_length = max(len(field) for field, _ in fields)
        return (f'{field}:'.ljust(max_length + 3) + str(value) for field, value in fields)


class FromFileMixin:
    @classmethod
    def from_file(cls, path):
        return cls(Path(path).read_bytes())


class _PemMixin:

    def __str__(self):
        return self.pem.decode()

    def fingerprint(self, algorithm: hashes.HashAlgorithm) -> str:
        digest = hashes.Hash(algorithm)
        digest.update(self.der)
        return ':'.join(f'{b:02X}' for b in digest.finalize())


class Cert(_PemMixin, FromFileMixin):

    def __init__(self, pem_data: bytes):
        if isinstance(pem_data, str):
            pem_data = pem_data.encode()
        self._cert = x509.load_pem_x509_certificate(pem_data)

    @classmethod
    def from_x509(cls, cert: x509.Certificate):
        obj = cls.__new__(cls)
        obj._cert = cert
        return obj

    def to_x509(self) -> x509.Certificate:
        return self._cert

    @property
    def pem(self) -> bytes:
        return self._cert.public_bytes(serialization.Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self._cert.public_bytes(serialization.Encoding.DER)

    @property
    def serial_number(self):
        return SerialNumber.from_int(self._cert.serial_number)

    @property
    def not_valid_before(self):
        return self._cert.not_valid_before_utc

    @property
    def not_valid_after(self):
        return self._cert.not_valid_after_utc

    @property
    def version(self):
        return self._cert.version.name

    @property
    def issuer(self):
        return Name.from_x509(self._cert.issuer)

    @property
    def subject(self):
        return Name.from_x509(self._cert.subject)

    @property
    def ca(self):
        try:
            return self._cert.extensions.get_extension_for_class(x509.BasicConstraints).value.ca
        except x509.ExtensionNotFound:
            return False

    @property
    def key_usages(self):
        try:
            usage = self._cert.extensions.get_extension_for_class(x509.KeyUsage).value
        except x509.ExtensionNotFound:
            return
        for name in ('digital_signature', 'content_commitment', 'key_encipherment',
                     'data_encipherment', 'key_agreement', 'key_cert_sign', 'crl_sign'):
            if getattr(usage, name):
                yield self._camel_case(name)

    @property
    def extended_key_usages(self):
        try:
            usages = self._cert.extensions.get_extension_for_class(x509.ExtendedKeyUsage).value
        except x509.ExtensionNotFound:
            return
        for oid in usages:
            yield oid._name

    @staticmethod
    def _camel_case(name):
        """Reformat the words as defined in RFC5280. E.g. keyEncipherment."""
        words = name.split('_')
        return ''.join(words[0:1] + [w.title() for w in words[1:]])

    @property
    def public_key(self):
        return PublicKey(self._cert.public_key())

    @property
    def signature_algorithm(self):
        return self._cert.signature_algorithm_oid._name


class Request(_PemMixin, FromFileMixin):
    """Certificate Signing Request (PKCS#10)."""

    def __init__(self, pem_data: bytes):
        if isinstance(pem_data, str):
            pem_data = pem_data.encode()
        self._csr = x509.load_pem_x509_csr(pem_data)

    @classmethod
    def from_x509(cls, csr: x509.CertificateSigningRequest):
        obj = cls.__new__(cls)
        obj._csr = csr
        return obj

    def to_x509(self) -> x509.CertificateSigningRequest:
        return self._csr

    @property
    def pem(self) -> bytes:
        return self._csr.public_bytes(serialization.Encoding.PEM)

    @property
    def der(self) -> bytes:
        return self._csr.public_bytes(serialization.Encoding.DER)

    @property
    def subject(self):
        return Name.from_x509(self._csr.subject)

    @property
    def public_key(self):
        return PublicKey(self._csr.public_key())

    @property
    def signature_valid(self):
        return self._csr.is_signature_valid


class PrivateKey(FromFileMixin):

    def __init__(self, pem_data: bytes):
        if isinstance(pem_data, str):
            pem_data = pem_data.encode()
        self._key = serialization.load_pem_private_key(pem_data, password=None)

    @classmethod
    def from_key(cls, key):
        obj = cls.__new__(cls)
        obj._key = key
        return obj

    def to_key(self):
        return self._key

    @property
    def pem(self) -> bytes:
        return self._key.private_bytes(serialization.Encoding.PEM,
                                       serialization.PrivateFormat.PKCS8,
                                       serialization.NoEncryption())

    def __str__(self):
        return self.pem.decode()


class PublicKey:

    def __init__(self, public_key):
        self._public_key = public_key

    @property
    def bit_size(self):
        return self._public_key.key_size

    @property
    def algorithm(self):
        return self._public_key.__class__.__name__.replace('PublicKey', '').lstrip('_').upper()

    @property
    def modulus(self):
        hex_modulus = f'{self._public_key.public_numbers().n:x}'
        # the leading zero byte marks the modulus as a positive number
        return '00:' + SerialNumber.colonize(SerialNumber._zero_prefix(hex_modulus))

    @property
    def exponent(self):
        return self._public_key.public_numbers().e

    @property
    def hex_exponent(self):
        return hex(self.exponent)


class RevokedCert:

    def __init__(self, serial_number: SerialNumber, revocation_date: datetime.datetime):
        self.serial_number = serial_number
        self.revocation_date = revocation_date

    @classmethod
    def from_x509(cls, revoked_cert: x509.RevokedCertificate):
        return cls(SerialNumber.from_int(revoked_cert.serial_number),
                   revoked_cert.revocation_date_utc)


class Crl(FromFileMixin):

    def __init__(self, crl_pem: bytes):
        if isinstance(crl_pem, str):
            crl_pem = crl_pem.encode()
        try:
            self._crl = x509.load_pem_x509_crl(crl_pem)
        except ValueError:
            raise ValueError('This not seem like a Certificate Revocation List.') from None

    @classmethod
    def build(cls, ca_cert: Cert, ca_key: PrivateKey, revoked: Iterable[RevokedCert],
              next_update: datetime.timedelta=datetime.timedelta(days=5 * 365)):
        now = datetime.datetime.now(datetime.timezone.utc)
        builder = (x509.CertificateRevocationListBuilder()
                   .issuer_name(ca_cert.subject.to_x509())
                   .last_update(now)
                   .next_update(now + next_update))
        for rc in revoked:
            revoked_cert = (x509.RevokedCertificateBuilder()
                            .serial_number(int(rc.serial_number))
                            .revocation_date(rc.revocation_date)
                            .build())
            builder = builder.add_revoked_certificate(revoked_cert)
        obj = cls.__new__(cls)
        obj._crl = builder.sign(ca_key.to_key(), hashes.SHA256())
        return obj

    def __iter__(self):
        return iter(RevokedCert.from_x509(c) for c in self._crl)

    @property
    def pem(self) -> bytes:
        return self._crl.public_bytes(serialization.Encoding.PEM)

    def is_signature_valid(self, ca_cert: Cert):
        return self._crl.is_signature_valid(ca_cert.to_x509().public_key())
