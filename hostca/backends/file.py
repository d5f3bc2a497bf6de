import os
import logging
import datetime
import tempfile
from pathlib import Path
from zope.interface import implementer
from ..config import Param
from ..exceptions import BackendError, UnreadableEntryError
from ..models import HostFilter
from ..wrapper import Cert, Request, PrivateKey, Crl, RevokedCert, SerialNumber
from .base import BaseStore
from .interfaces import ICertificateStore


log = logging.getLogger(__name__)


@implementer(ICertificateStore)
class FileBackend(BaseStore):
    """Certificates are stored as PEM files in an SSL directory:

    ssldir/ca/ca_crt.pem         CA certificate
    ssldir/ca/ca_key.pem         CA private key
    ssldir/ca/ca_crl.pem         Certificate Revocation List
    ssldir/ca/serial             next serial number in hex
    ssldir/ca/requests/HOST.pem  pending certificate requests
    ssldir/ca/signed/HOST.pem    signed certificates
    ssldir/ca/private_keys/HOST.pem  keys of the generated certificates
    """
    name = 'File'
    description = 'Certificates are simply stored in PEM files'
    version = 'PEM files'

    init_requires = (
        Param('ssldir', help='Directory where the CA files are stored', convert=Path),
    )

    def __init__(self, ssldir: Path):
        super().__init__()
        ssldir = Path(ssldir).expanduser()
        if ssldir.exists() and not ssldir.is_dir():
            raise BackendError(f'{ssldir} is not a directory')
        self._ssldir = ssldir
        self._ca_dir = ssldir / 'ca'
        self._requests_dir = self._ca_dir / 'requests'
        self._signed_dir = self._ca_dir / 'signed'
        self._keys_dir = self._ca_dir / 'private_keys'

    def __repr__(self):
        return f'<FileBackend: {self._ssldir}>'

    @property
    def _ca_cert_file(self):
        return self._ca_dir / 'ca_crt.pem'

    @property
    def _ca_key_file(self):
        return self._ca_dir / 'ca_key.pem'

    @property
    def _crl_file(self):
        return self._ca_dir / 'ca_crl.pem'

    @property
    def _serial_file(self):
        return self._ca_dir / 'serial'

    def _has_ca(self):
        return self._ca_cert_file.exists()

    def _save_ca(self, cert, key):
        for directory in (self._ca_dir, self._requests_dir, self._signed_dir, self._keys_dir):
            directory.mkdir(parents=True, exist_ok=True)
        self._write(self._ca_key_file, key.pem, private=True)
        self._write(self._ca_cert_file, cert.pem)
        self._write(self._crl_file, Crl.build(cert, key, []).pem)

    def _write(self, path: Path, data: bytes, private=False):
        # write to a temporary file first, so readers never see a half written file
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix='.' + path.name)
        try:
            if private:
                os.chmod(tmp_name, 0o600)
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            os.unlink(tmp_name)
            raise
        log.debug('Wrote %s', path)

    @staticmethod
    def _host_file(directory: Path, host: str):
        return directory / f'{host}.pem'

    def _read(self, cls, directory, host):
        path = self._host_file(directory, host)
        if not path.exists():
            return None
        try:
            return cls.from_file(path)
        except ValueError as e:
            log.warning('Could not parse %s: %s', path, e)
            raise UnreadableEntryError(host, path) from None

    def get_request(self, host):
        return self._read(Request, self._requests_dir, host)

    def put_request(self, host, request):
        with self.lock(host):
            self._requests_dir.mkdir(parents=True, exist_ok=True)
            self._write(self._host_file(self._requests_dir, host), request.pem)

    def get_certificate(self, host):
        return self._read(Cert, self._signed_dir, host)

    def put_certificate(self, host, cert):
        with self.lock(host):
            self._signed_dir.mkdir(parents=True, exist_ok=True)
            self._write(self._host_file(self._signed_dir, host), cert.pem)
            self._unlink(self._host_file(self._requests_dir, host))

    def get_private_key(self, host):
        return self._read(PrivateKey, self._keys_dir, host)

    def put_private_key(self, host, key):
        with self.lock(host):
            self._keys_dir.mkdir(parents=True, exist_ok=True)
            self._write(self._host_file(self._keys_dir, host), key.pem, private=True)

    def _unlink(self, path: Path):
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        log.debug('Removed %s', path)
        return True

    def delete_all(self, host):
        with self.lock(host):
            removed = [self._unlink(self._host_file(directory, host))
                       for directory in (self._requests_dir, self._signed_dir, self._keys_dir)]
        return any(removed)

    def get_crl(self):
        if not self._crl_file.exists():
            return []
        try:
            return list(Crl.from_file(self._crl_file))
        except ValueError:
            raise BackendError(f'Certificate Revocation List {self._crl_file} is corrupt') from None

    def append_to_crl(self, serial: SerialNumber):
        with self._global_lock:
            revoked = self.get_crl()
            if any(rc.serial_number == serial for rc in revoked):
                return
            now = datetime.datetime.now(datetime.timezone.utc)
            revoked.append(RevokedCert(serial, now))
            crl = Crl.build(self.get_ca_chain()[0], self.get_ca_key(), revoked)
            self._write(self._crl_file, crl.pem)

    def revoked_serials(self):
        with self._global_lock:
            return frozenset(rc.serial_number for rc in self.get_crl())

    def find_by_serial(self, serial: SerialNumber):
        for host in self.list_hosts(HostFilter.CERTIFICATES):
            try:
                cert = self.get_certificate(host)
            except UnreadableEntryError:
                continue
            if cert is not None and cert.serial_number == serial:
                return host
        return None

    @staticmethod
    def _hosts_in(directory: Path):
        if not directory.is_dir():
            return set()
        return {path.stem for path in directory.glob('*.pem')}

    def list_hosts(self, host_filter=HostFilter.ANY):
        if host_filter == HostFilter.REQUESTS:
            hosts = self._hosts_in(self._requests_dir)
        elif host_filter == HostFilter.CERTIFICATES:
            hosts = self._hosts_in(self._signed_dir)
        else:
            hosts = self._hosts_in(self._requests_dir) | self._hosts_in(self._signed_dir)
        return sorted(hosts)

    def get_ca_chain(self):
        if not self._has_ca():
            raise BackendError(f'CA certificate not found in {self._ca_dir}, run setup first')
        return (Cert.from_file(self._ca_cert_file),)

    def get_ca_key(self):
        if not self._ca_key_file.exists():
            raise BackendError(f'CA key not found in {self._ca_dir}, run setup first')
        return PrivateKey.from_file(self._ca_key_file)

    def next_serial(self):
        with self._global_lock:
            self._ca_dir.mkdir(parents=True, exist_ok=True)
            if self._serial_file.exists():
                serial = int(self._serial_file.read_text().strip(), 16)
            else:
                serial = 1
            self._write(self._serial_file, f'{serial + 1:04X}\n'.encode())
            return SerialNumber.from_int(serial)
