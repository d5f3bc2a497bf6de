import threading
from contextlib import contextmanager
from ..config import Param, positive_int
from ..crypto import CryptoProvider
from ..exceptions import BackendError


class BaseStore:
    """Locking and CA generation shared by the backends."""

    threadsafe = True

    setup_requires = (
        Param('ca_name', default='hostca CA', help='Common Name of the CA certificate'),
        Param('ca_ttl', default=5 * 365, convert=positive_int,
              help='Validity of the CA certificate (days)'),
        Param('keylength', default=4096, convert=positive_int,
              help='Bit length of the generated RSA keys'),
    )

    def __init__(self):
        # guards the lock table, serial allocation and the CRL
        self._global_lock = threading.RLock()
        # host -> [lock, number of callers using it], dropped when nobody uses it
        self._host_locks = {}

    @contextmanager
    def lock(self, host):
        with self._global_lock:
            entry = self._host_locks.setdefault(host, [threading.RLock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._global_lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._host_locks[host]

    def validate_setup(self, **setup_params):
        """Check if setup would be successful."""
        if self._has_ca():
            raise ValueError('CA is already initialized!')

    def setup(self, *, ca_name, ca_ttl, keylength, crypto=None):
        crypto = crypto or CryptoProvider()
        with self._global_lock:
            if self._has_ca():
                raise BackendError('CA is already initialized')
            key = crypto.generate_key(keylength)
            cert = crypto.create_ca(ca_name, key, self.next_serial(), ca_ttl)
            self._save_ca(cert, key)

    def _has_ca(self):
        raise NotImplementedError

    def _save_ca(self, cert, key):
        raise NotImplementedError
