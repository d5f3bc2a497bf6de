import pytest
from hostca.backends.memory import MemoryBackend
from hostca.crypto import CryptoProvider
from hostca.dispatcher import CertificateAuthority
from hostca.models import Options


TEST_KEYLENGTH = 2048


@pytest.fixture(scope='session')
def crypto():
    return CryptoProvider()


@pytest.fixture(scope='session')
def client_key(crypto):
    # generating RSA keys is slow, every client request in the tests shares this one
    return crypto.generate_key(TEST_KEYLENGTH)


@pytest.fixture
def options():
    return Options(keylength=TEST_KEYLENGTH)


@pytest.fixture
def store(crypto):
    store = MemoryBackend()
    store.setup(ca_name='Test CA', ca_ttl=30, keylength=TEST_KEYLENGTH, crypto=crypto)
    return store


@pytest.fixture
def submit_request(crypto, client_key):
    def submit(store, host):
        request = crypto.create_request(host, client_key)
        store.put_request(host, request)
        return request
    return submit


@pytest.fixture
def sign_host(store, crypto, submit_request):
    """Put a signed certificate for the host into the store, skipping the dispatcher."""
    def sign(host):
        request = submit_request(store, host)
        cert = crypto.sign_request(request, store.get_ca_chain()[0], store.get_ca_key(),
                                   store.next_serial(), 30)
        store.put_certificate(host, cert)
        return cert
    return sign


@pytest.fixture
def ca(store, crypto):
    return CertificateAuthority(store, crypto)
