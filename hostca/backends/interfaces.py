from zope.interface import Interface, Attribute


class ICertificateStore(Interface):
    name = Attribute('Official name of the backend')
    description = Attribute('One-line description about the backend')
    threadsafe = Attribute('Tells if the backend can be used from multiple threads')
    init_requires = Attribute('Params required for backend init like a directory path')
    setup_requires = Attribute('Params required for setting up the backend for the first time')
    version = Attribute('Backend software or storage format version')

    def setup(**kwargs):
        """Initialize storage and generate the CA key and certificate."""

    def lock(host):
        """Context manager serializing read-modify-write sequences for one host."""

    def get_request(host):
        """Pending certificate request of the host or None.
        UnreadableEntryError is raised when the stored request can't be parsed.
        """

    def put_request(host, request):
        """Store a certificate request."""

    def get_certificate(host):
        """Signed certificate of the host or None."""

    def put_certificate(host, cert):
        """Store a signed certificate and drop the pending request of the host."""

    def get_private_key(host):
        """Private key of the host or None."""

    def put_private_key(host, key):
        """Store the private key of a host."""

    def delete_all(host):
        """Remove request, certificate and key of the host. Return True if anything was removed."""

    def append_to_crl(serial):
        """Add a serial number to the Certificate Revocation List."""

    def revoked_serials():
        """Set of the revoked serial numbers."""

    def get_crl():
        """Revoked certificates with revocation dates."""

    def find_by_serial(serial):
        """Host name of the certificate with the given serial number or None."""

    def list_hosts(host_filter):
        """Sorted host names having a request, a certificate or any of those."""

    def get_ca_chain():
        """CA certificate chain, the issuing CA certificate first."""

    def get_ca_key():
        """Private key of the CA."""

    def next_serial():
        """Allocate a new, never used serial number."""
