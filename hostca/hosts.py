from typing import Iterable, Optional, Tuple
from .exceptions import EmptyTargetError, InvalidHostNameError, UnreadableEntryError
from .models import AllHosts, SignedHosts, ExplicitHosts, CertificateStatus, HostFilter


def normalize(host: str) -> str:
    """Host names are case insensitive, every name is handled in lower case."""
    name = host.strip().lower()
    if not name or name.startswith('.') or '/' in name or '\\' in name or '\0' in name:
        raise InvalidHostNameError(host)
    return name


def unique(hosts: Iterable[str]) -> Tuple[str, ...]:
    seen = set()
    result = []
    for host in hosts:
        if host not in seen:
            seen.add(host)
            result.append(host)
    return tuple(result)


def status_of(store, host, revoked_serials=None) -> Optional[CertificateStatus]:
    """Stored status of a host. None means there is nothing stored for it."""
    cert = store.get_certificate(host)
    if cert is not None:
        if revoked_serials is None:
            revoked_serials = store.revoked_serials()
        if cert.serial_number in revoked_serials:
            return CertificateStatus.REVOKED
        return CertificateStatus.SIGNED
    if store.get_request(host) is not None:
        return CertificateStatus.REQUESTED
    return None


def _is_signed(store, host, revoked):
    try:
        return status_of(store, host, revoked) == CertificateStatus.SIGNED
    except UnreadableEntryError:
        # kept, so the action reports the broken entry
        return True


def resolve(selector, store, action='apply', requires_targets=True) -> Tuple[str, ...]:
    if isinstance(selector, AllHosts):
        hosts = tuple(store.list_hosts(HostFilter.ANY))
    elif isinstance(selector, SignedHosts):
        revoked = store.revoked_serials()
        hosts = tuple(host for host in store.list_hosts(HostFilter.CERTIFICATES)
                      if _is_signed(store, host, revoked))
    elif isinstance(selector, ExplicitHosts):
        hosts = unique(normalize(host) for host in selector.hosts)
    else:
        raise TypeError(f'Not a target selector: {selector!r}')

    if not hosts and requires_targets:
        raise EmptyTargetError(action)
    return hosts
