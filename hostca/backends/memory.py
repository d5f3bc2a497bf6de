import datetime
from zope.interface import implementer
from ..exceptions import BackendError
from ..models import HostFilter
from ..wrapper import SerialNumber, RevokedCert
from .base import BaseStore
from .interfaces import ICertificateStore


@implementer(ICertificateStore)
class MemoryBackend(BaseStore):
    name = 'Memory'
    description = 'Everything is kept in memory, lost when the process exits'
    version = 'in-memory'

    init_requires = ()

    def __init__(self):
        super().__init__()
        self._requests = {}
        self._certs = {}
        self._keys = {}
        self._crl = {}
        self._serial = 0
        self._ca_cert = None
        self._ca_key = None

    def _has_ca(self):
        return self._ca_cert is not None

    def _save_ca(self, cert, key):
        self._ca_cert = cert
        self._ca_key = key

    def get_request(self, host):
        return self._requests.get(host)

    def put_request(self, host, request):
        with self.lock(host):
            self._requests[host] = request

    def get_certificate(self, host):
        return self._certs.get(host)

    def put_certificate(self, host, cert):
        with self.lock(host):
            self._certs[host] = cert
            self._requests.pop(host, None)

    def get_private_key(self, host):
        return self._keys.get(host)

    def put_private_key(self, host, key):
        with self.lock(host):
            self._keys[host] = key

    def delete_all(self, host):
        with self.lock(host):
            removed = [store.pop(host, None) for store in (self._requests, self._certs, self._keys)]
        return any(entry is not None for entry in removed)

    def append_to_crl(self, serial: SerialNumber):
        with self._global_lock:
            self._crl.setdefault(serial, datetime.datetime.now(datetime.timezone.utc))

    def revoked_serials(self):
        with self._global_lock:
            return frozenset(self._crl)

    def get_crl(self):
        with self._global_lock:
            return [RevokedCert(serial, date) for serial, date in self._crl.items()]

    def find_by_serial(self, serial: SerialNumber):
        for host, cert in list(self._certs.items()):
            if cert.serial_number == serial:
                return host
        return None

    def list_hosts(self, host_filter=HostFilter.ANY):
        if host_filter == HostFilter.REQUESTS:
            hosts = set(self._requests)
        elif host_filter == HostFilter.CERTIFICATES:
            hosts = set(self._certs)
        else:
            hosts = set(self._requests) | set(self._certs)
        return sorted(hosts)

    def get_ca_chain(self):
        if self._ca_cert is None:
            raise BackendError('CA is not initialized, run setup first')
        return (self._ca_cert,)

    def get_ca_key(self):
        if self._ca_key is None:
            raise BackendError('CA is not initialized, run setup first')
        return self._ca_key

    def next_serial(self):
        with self._global_lock:
            self._serial += 1
            return SerialNumber.from_int(self._serial)
