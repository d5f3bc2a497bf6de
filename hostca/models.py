import enum
from typing import Optional, Tuple
import attr


class CertificateStatus(enum.Enum):
    REQUESTED = 'requested'
    SIGNED = 'signed'
    REVOKED = 'revoked'
    # only a verification outcome, never stored
    INVALID = 'invalid'


class HostFilter(enum.Enum):
    ANY = 'any'
    REQUESTS = 'requests'
    CERTIFICATES = 'certificates'


class TargetSelector:
    """Which hosts an action applies to: every host, signed hosts only, or the given names."""

    @staticmethod
    def all():
        return AllHosts()

    @staticmethod
    def signed():
        return SignedHosts()

    @staticmethod
    def explicit(hosts):
        return ExplicitHosts(tuple(hosts))


@attr.s(frozen=True)
class AllHosts(TargetSelector):
    pass


@attr.s(frozen=True)
class SignedHosts(TargetSelector):
    pass


@attr.s(frozen=True)
class ExplicitHosts(TargetSelector):
    hosts = attr.ib(converter=tuple)


DEFAULT_DIGEST = 'md5'
DEFAULT_TTL_DAYS = 5 * 365
DEFAULT_KEYLENGTH = 4096


@attr.s(frozen=True)
class Options:
    digest = attr.ib(default=DEFAULT_DIGEST, converter=lambda d: d or DEFAULT_DIGEST)
    ttl_days = attr.ib(default=DEFAULT_TTL_DAYS)
    keylength = attr.ib(default=DEFAULT_KEYLENGTH)


@attr.s(frozen=True)
class Fingerprint:
    algorithm = attr.ib()
    value = attr.ib()

    def __str__(self):
        return f'({self.algorithm.upper()}) {self.value}'


@attr.s(frozen=True)
class Verification:
    valid = attr.ib()
    reason = attr.ib(default=None)

    def __str__(self):
        return 'OK' if self.valid else self.reason


@attr.s(frozen=True)
class ListEntry:
    host = attr.ib()
    status = attr.ib()
    marker = attr.ib(default='')
    reason = attr.ib(default=None)

    def __str__(self):
        line = f'{self.marker}{self.host}'
        if self.reason:
            line += f' ({self.reason})'
        return line


@attr.s(frozen=True)
class HostOutcome:
    host = attr.ib()
    value = attr.ib(default=None)
    error = attr.ib(default=None)

    @property
    def ok(self):
        return self.error is None

    @property
    def kind(self) -> Optional[str]:
        if self.error is None:
            return None
        return getattr(self.error, 'kind', self.error.__class__.__name__)

    @property
    def message(self) -> Optional[str]:
        return None if self.error is None else str(self.error)


@attr.s(frozen=True)
class Report:
    action = attr.ib()
    outcomes: Tuple[HostOutcome, ...] = attr.ib(converter=tuple, default=())

    @property
    def success(self):
        return all(outcome.ok for outcome in self.outcomes)

    @property
    def failures(self):
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def hosts(self):
        return [outcome.host for outcome in self.outcomes]

    def __iter__(self):
        return iter(self.outcomes)

    def __len__(self):
        return len(self.outcomes)
