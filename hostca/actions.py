"""
    Closed set of certificate authority actions and their handlers.

    Per-host handlers get the handler context and one host name, they either return a value
    or raise a CAError. Whole-set handlers get every resolved host at once and return a
    HostOutcome for each of them.
"""
import enum
import attr
from .exceptions import (
    UnknownActionError, NoRequestError, AlreadyExistsError, NotSignedError, AlreadyRevokedError,
    NotFoundError, CertificateInvalidError, UnreadableEntryError,
)
from .formatter import render_certificate
from .crypto import normalize_digest_name
from .hosts import status_of
from .models import (
    AllHosts, ExplicitHosts, CertificateStatus, HostFilter, HostOutcome, ListEntry, Fingerprint,
    Verification,
)
from .wrapper import SerialNumber


class Action(enum.Enum):
    SIGN = 'sign'
    GENERATE = 'generate'
    REVOKE = 'revoke'
    DESTROY = 'destroy'
    LIST = 'list'
    PRINT = 'print'
    FINGERPRINT = 'fingerprint'
    VERIFY = 'verify'


# legacy names accepted from users
ALIASES = {
    'clean': Action.DESTROY,
}


class Cardinality(enum.Enum):
    PER_HOST = 'per-host'
    WHOLE_SET = 'whole-set'


@attr.s(frozen=True)
class ActionContext:
    store = attr.ib()
    crypto = attr.ib()
    options = attr.ib()
    selector = attr.ib()
    ca_chain = attr.ib()


@attr.s(frozen=True)
class ActionSpec:
    cardinality = attr.ib()
    handler = attr.ib()
    requires_targets = attr.ib(default=True)
    # handlers run before the action over the same hosts, their errors are suppressed
    pre_actions = attr.ib(default=())


def lookup(name) -> Action:
    if isinstance(name, Action):
        return name
    normalized = str(name).strip().lower()
    if normalized in ALIASES:
        return ALIASES[normalized]
    try:
        return Action(normalized)
    except ValueError:
        raise UnknownActionError(name) from None


def action_names():
    """Every name the users can give, including the legacy aliases."""
    return sorted([action.value for action in Action] + list(ALIASES))


def sign(ctx, host):
    store = ctx.store
    with store.lock(host):
        request = store.get_request(host)
        if request is None:
            raise NoRequestError(host)
        if store.get_certificate(host) is not None:
            raise AlreadyExistsError(host)
        cert = ctx.crypto.sign_request(request, ctx.ca_chain[0], store.get_ca_key(),
                                       store.next_serial(), ctx.options.ttl_days)
        store.put_certificate(host, cert)
    return cert


def generate(ctx, host):
    store = ctx.store
    with store.lock(host):
        if status_of(store, host) is not None or store.get_private_key(host) is not None:
            raise AlreadyExistsError(host)
        key = ctx.crypto.generate_key(ctx.options.keylength)
        request = ctx.crypto.create_request(host, key)
        cert = ctx.crypto.sign_request(request, ctx.ca_chain[0], store.get_ca_key(),
                                       store.next_serial(), ctx.options.ttl_days)
        store.put_private_key(host, key)
        store.put_certificate(host, cert)
    return cert


def _find_owner(store, target):
    """The target can be a serial number (decimal or 0x prefixed hex) instead of a host name."""
    if store.get_certificate(target) is not None or store.get_request(target) is not None:
        return target
    serial = SerialNumber.parse(target)
    if serial is None:
        return target
    return store.find_by_serial(serial) or target


def _revoke_locked(store, host):
    cert = store.get_certificate(host)
    if cert is None:
        raise NotSignedError(host)
    serial = cert.serial_number
    if serial in store.revoked_serials():
        raise AlreadyRevokedError(host, serial)
    store.append_to_crl(serial)
    return serial


def revoke_host(ctx, host):
    store = ctx.store
    with store.lock(host):
        return _revoke_locked(store, host)


def revoke(ctx, host):
    return revoke_host(ctx, _find_owner(ctx.store, host))


def destroy(ctx, host):
    """Revoke the certificate if it's still valid, then remove everything stored for the host.
    Returns False when there was nothing to remove.
    """
    store = ctx.store
    with store.lock(host):
        try:
            cert = store.get_certificate(host)
        except UnreadableEntryError:
            # without a readable certificate there is no serial to revoke
            cert = None
        if cert is not None and cert.serial_number not in store.revoked_serials():
            store.append_to_crl(cert.serial_number)
        return store.delete_all(host)


def list_hosts(ctx, hosts):
    store = ctx.store
    if not hosts and isinstance(ctx.selector, ExplicitHosts):
        # without host names only the outstanding requests are listed
        hosts = store.list_hosts(HostFilter.REQUESTS)
    show_markers = isinstance(ctx.selector, AllHosts)
    revoked = store.revoked_serials()
    outcomes = []
    for host in hosts:
        try:
            status = status_of(store, host, revoked)
            cert = store.get_certificate(host)
        except UnreadableEntryError as e:
            outcomes.append(HostOutcome(host, error=e))
            continue
        if status is None:
            outcomes.append(HostOutcome(host, error=NotFoundError(host, 'certificate or request')))
            continue
        marker, reason = '', None
        if status != CertificateStatus.REQUESTED:
            reason = ctx.crypto.verify(cert, ctx.ca_chain, revoked)
            if reason is None:
                marker = '+'
            else:
                marker = '-'
                if status == CertificateStatus.SIGNED:
                    status = CertificateStatus.INVALID
        entry = ListEntry(host, status, marker if show_markers else '', reason)
        outcomes.append(HostOutcome(host, entry))
    return outcomes


def print_certificate(ctx, host):
    cert = ctx.store.get_certificate(host)
    if cert is None:
        raise NotFoundError(host)
    return render_certificate(cert)


def fingerprint(ctx, host):
    algorithm = ctx.crypto.get_digest(ctx.options.digest)
    store = ctx.store
    # the certificate if signed already, the request otherwise
    item = store.get_certificate(host) or store.get_request(host)
    if item is None:
        raise NotFoundError(host, 'certificate or request')
    return Fingerprint(normalize_digest_name(ctx.options.digest), item.fingerprint(algorithm))


def verify(ctx, host):
    cert = ctx.store.get_certificate(host)
    if cert is None:
        raise NotFoundError(host)
    reason = ctx.crypto.verify(cert, ctx.ca_chain, ctx.store.revoked_serials())
    if reason is not None:
        raise CertificateInvalidError(host, reason)
    return Verification(valid=True)


REGISTRY = {
    Action.SIGN: ActionSpec(Cardinality.PER_HOST, sign),
    Action.GENERATE: ActionSpec(Cardinality.PER_HOST, generate),
    Action.REVOKE: ActionSpec(Cardinality.PER_HOST, revoke),
    Action.DESTROY: ActionSpec(Cardinality.PER_HOST, destroy, pre_actions=(revoke_host,)),
    Action.LIST: ActionSpec(Cardinality.WHOLE_SET, list_hosts, requires_targets=False),
    Action.PRINT: ActionSpec(Cardinality.PER_HOST, print_certificate),
    Action.FINGERPRINT: ActionSpec(Cardinality.PER_HOST, fingerprint),
    Action.VERIFY: ActionSpec(Cardinality.PER_HOST, verify),
}
