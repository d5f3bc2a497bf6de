import logging
import click
from hostca.actions import Action, action_names, lookup
from hostca.exceptions import UnknownActionError
from hostca.models import TargetSelector, Options, DEFAULT_DIGEST
from .config import ensure_config


log = logging.getLogger(__name__)

# at least one host could not be handled
EXIT_HOST_FAILED = 2
# the whole action failed before touching any host
EXIT_ACTION_FAILED = 24


_SUCCESS_MESSAGES = {
    Action.SIGN: lambda host, cert: f'Signed certificate request for {host}',
    Action.GENERATE: lambda host, cert: f'Generated certificate for {host}',
    Action.REVOKE: lambda host, serial: f'Revoked certificate with serial {serial} ({host})',
    Action.DESTROY: lambda host, removed: (f'Removed files for {host}' if removed
                                           else f'Nothing to remove for {host}'),
    Action.LIST: lambda host, entry: str(entry),
    Action.PRINT: lambda host, text: text.rstrip('\n'),
    Action.FINGERPRINT: lambda host, fingerprint: f'{host} {fingerprint}',
    Action.VERIFY: lambda host, verification: f'{host}: {verification}',
}


def action_flags(f):
    """Every action can be given as a flag too, e.g. --sign or --clean."""
    for name in reversed(action_names()):
        f = click.option(f'--{name}', f'{name}_flag', is_flag=True,
                         help=f"Same as the '{name}' action.")(f)
    return f


def _split_action(words, flags):
    given = [name[:-len('_flag')] for name, value in flags.items() if value]
    if len(given) > 1:
        raise click.UsageError(f'Only one action can be given, got: {", ".join(given)}')
    if given:
        action, hosts = given[0], words
    elif words:
        action, hosts = words[0], words[1:]
    else:
        raise click.UsageError('Missing action, give it as the first argument or as a flag')
    try:
        return lookup(action), hosts
    except UnknownActionError as e:
        raise click.BadParameter(str(e), param_hint='ACTION')


def _make_selector(hosts, all_hosts, signed):
    if all_hosts:
        return TargetSelector.all()
    elif signed:
        return TargetSelector.signed()
    return TargetSelector.explicit(hosts)


@click.command()
@click.argument('words', metavar='[ACTION] [HOST]...', nargs=-1)
@action_flags
@click.option('-a', '--all', 'all_hosts', is_flag=True,
              help="Operate on all items. Makes sense with 'sign', 'clean', 'list' and "
                   "'fingerprint'.")
@click.option('-s', '--signed', is_flag=True, help='Operate on the signed certificates only.')
@click.option('--digest', default=DEFAULT_DIGEST, show_default=True,
              help='Digest for fingerprinting, e.g. md5, sha1, sha256.')
@click.option('--ttl', 'ttl_days', type=click.IntRange(min=1), default=Options().ttl_days,
              show_default=True, help='Validity of the signed certificates (days).')
@click.option('--keylength', type=click.IntRange(min=1024), default=Options().keylength,
              show_default=True, help='Bit length of the keys made by generate.')
@click.option('-j', '--jobs', type=click.IntRange(min=1), default=1, show_default=True,
              help='Number of hosts handled in parallel.')
@ensure_config
@click.pass_context
def cert(ctx, obj, words, all_hosts, signed, digest, ttl_days, keylength, jobs, **flags):
    """Manage certificates and requests.

    The action is the first argument, or given as a flag like --sign.

    \b
    Actions:
        clean        Revoke a host's certificate (if applicable) and remove all
                     files related to that host. Same as destroy.
        fingerprint  Print the DIGEST (defaults to md5) fingerprint of a host's
                     certificate, or of its request if not signed yet.
        generate     Generate a key pair and a signed certificate for a host.
        list         List outstanding certificate requests. With --all, signed
                     certificates are also listed, prefixed by '+', revoked or
                     invalid certificates are prefixed by '-' (the verification
                     outcome is printed in parenthesis).
        print        Print the full-text version of a host's certificate.
        revoke       Revoke the certificate of a host. The certificate can be
                     given by its serial number (decimal, or hexadecimal prefixed
                     by '0x') too.
        sign         Sign an outstanding certificate request.
        verify       Verify a certificate against the CA certificate and CRL.

    \b
    Shell exitcode will be:
        - 0 if every host succeeded
        - 2 if at least one host failed
        - 23 if the certificate store could not be opened
        - 24 if the action could not be started at all
    """
    from hostca.dispatcher import CertificateAuthority
    from hostca.exceptions import HostcaError

    action, hosts = _split_action(words, flags)
    selector = _make_selector(hosts, all_hosts, signed)
    options = Options(digest=digest, ttl_days=ttl_days, keylength=keylength)
    ca = CertificateAuthority(obj.backend, max_workers=jobs)
    log.debug('Applying %s to %s', action.value, selector)
    try:
        report = ca.apply(action, selector, options)
    except (HostcaError, OSError) as exc:
        log.debug('%s failed', action.value, exc_info=True)
        click.secho(f'Error: {exc}', fg='red', err=True)
        ctx.exit(EXIT_ACTION_FAILED)

    render = _SUCCESS_MESSAGES[action]
    for outcome in report:
        if outcome.ok:
            click.echo(render(outcome.host, outcome.value))
        else:
            log.info('%s failed for %s: %s', action.value, outcome.host, outcome.kind)
            click.secho(f'Error: {outcome.message}', fg='red', err=True)

    if not report.success:
        log.info('%s failed for %d of %d hosts', action.value, len(report.failures), len(report))
        ctx.exit(EXIT_HOST_FAILED)
