class HostcaError(Exception):
    """Base Exception for all kinds of hostca related errors."""


class ConfigurationError(HostcaError):
    """Something is wrong with hostca's configuration.
    It's possible that we can't even find the backend because of this.
    """


class BackendConfigurationError(HostcaError):
    """Something is wrong with the backend configuration."""

    def __init__(self, backend_name, message):
        super().__init__(f'{backend_name}: {message}')
        self.backend_name = backend_name
        self.message = message


class BackendError(HostcaError):
    """Something is wrong with the backend, the configuration might be good.
    e.g. directory is missing, CA is not generated yet.
    """


class CAError(HostcaError):
    """An action could not be applied.
    Raised for one host, the dispatcher records it in the report instead of stopping.
    """

    @property
    def kind(self):
        return self.__class__.__name__


class EmptyTargetError(CAError):
    def __init__(self, action):
        super().__init__(f'No hosts to {action}, give host names or use --all')
        self.action = action


class UnknownActionError(CAError):
    def __init__(self, name):
        super().__init__(f'Unknown action: {name}')
        self.name = name


class InvalidHostNameError(CAError):
    def __init__(self, host):
        super().__init__(f'Invalid host name: {host!r}')
        self.host = host


class NoRequestError(CAError):
    def __init__(self, host):
        super().__init__(f'Could not find certificate request for {host}')
        self.host = host


class AlreadyExistsError(CAError):
    def __init__(self, host):
        super().__init__(f'{host} already has a certificate or a request')
        self.host = host


class NotSignedError(CAError):
    def __init__(self, host):
        super().__init__(f'{host} has no signed certificate to revoke')
        self.host = host


class AlreadyRevokedError(CAError):
    def __init__(self, host, serial):
        super().__init__(f'Certificate of {host} (serial {serial}) is already revoked')
        self.host = host
        self.serial = serial


class NotFoundError(CAError):
    def __init__(self, host, what='certificate'):
        super().__init__(f'Could not find {what} for {host}')
        self.host = host


class UnsupportedDigestError(CAError):
    def __init__(self, digest):
        super().__init__(f'Unsupported digest algorithm: {digest}')
        self.digest = digest


class CertificateInvalidError(CAError):
    """Verification failed, reason is an opaque diagnostic string."""

    def __init__(self, host, reason):
        super().__init__(f'{host}: {reason}')
        self.host = host
        self.reason = reason


class UnreadableEntryError(BackendError):
    """A file stored for one host could not be parsed.
    Only that host is affected, the dispatcher records it like a CAError.
    """

    def __init__(self, host, path):
        super().__init__(f'Could not read {path} stored for {host}')
        self.host = host
        self.path = path
