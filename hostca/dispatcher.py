from concurrent.futures import ThreadPoolExecutor
from .actions import REGISTRY, Action, ActionContext, Cardinality, lookup
from .crypto import CryptoProvider
from .exceptions import CAError, UnreadableEntryError
from .hosts import resolve
from .models import Options, HostOutcome, Report


class CertificateAuthority:
    """Applies actions to the certificates of hosts.

    Errors of one host are recorded in the returned Report and never stop processing the
    other hosts. Errors which make the whole call meaningless (unknown action, no hosts to
    work on, unsupported digest, unusable store) are raised before any host is touched.
    Nothing is logged or printed here, the caller decides how to present the Report.
    """

    def __init__(self, store, crypto=None, max_workers=1):
        self._store = store
        self._crypto = crypto or CryptoProvider()
        self._max_workers = max_workers

    @property
    def store(self):
        return self._store

    def apply(self, action, target, options: Options=None) -> Report:
        action = lookup(action)
        spec = REGISTRY[action]
        options = options or Options()
        if action == Action.FINGERPRINT:
            self._crypto.get_digest(options.digest)

        ca_chain = self._store.get_ca_chain()
        hosts = resolve(target, self._store, action.value, spec.requires_targets)
        ctx = ActionContext(self._store, self._crypto, options, target, ca_chain)

        if spec.cardinality == Cardinality.WHOLE_SET:
            return Report(action, spec.handler(ctx, hosts))

        for pre_action in spec.pre_actions:
            # best effort, the outcomes are thrown away
            self._run_per_host(pre_action, ctx, hosts)

        return Report(action, self._run_per_host(spec.handler, ctx, hosts))

    def _run_per_host(self, handler, ctx, hosts):
        if self._max_workers > 1 and len(hosts) > 1 and getattr(self._store, 'threadsafe', False):
            with ThreadPoolExecutor(max_workers=self._max_workers) as executor:
                futures = [executor.submit(self._run_one, handler, ctx, host) for host in hosts]
                # keep the resolved order, not the completion order
                return [future.result() for future in futures]
        return [self._run_one(handler, ctx, host) for host in hosts]

    @staticmethod
    def _run_one(handler, ctx, host):
        try:
            return HostOutcome(host, handler(ctx, host))
        except (CAError, UnreadableEntryError, OSError) as e:
            return HostOutcome(host, error=e)
