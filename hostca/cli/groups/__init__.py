import click
from hostca import Config
from ..utils import configure_logging
from .config import config
from .cert import cert
from .crl import crl


@click.group(invoke_without_command=True)
@click.option('-c', '--config', 'config_path', default=Config.DEFAULT_PATH, envvar='HOSTCA_CONFIG',
              help=f'Default: {Config.DEFAULT_PATH}',
              type=click.Path(dir_okay=False, writable=True, resolve_path=True))
@click.option('-d', '--debug', is_flag=True, help='Enable full debugging.')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbosity.')
@click.option('-V', '--version', 'show_version', is_flag=True, is_eager=True,
              help='Show hostca and backend versions.')
@click.pass_context
def main(ctx, config_path, debug, verbose, show_version):
    """Standalone certificate authority for signing, revoking and cleaning host certificates."""
    configure_logging(debug, verbose)
    if show_version:
        ctx.invoke(version)
        ctx.exit()
    elif not ctx.invoked_subcommand:
        help_text = ctx.command.get_help(ctx)
        click.echo(help_text)


@main.command()
@click.pass_context
def version(ctx):
    """Same as --version."""
    from importlib.metadata import version as dist_version, PackageNotFoundError
    from hostca.backends import get_backend
    from hostca.exceptions import HostcaError
    from ..utils import get_config_path

    try:
        hostca_version = dist_version('hostca')
    except PackageNotFoundError:
        hostca_version = 'unknown'
    click.echo('hostca ' + hostca_version)
    try:
        config = Config(get_config_path(ctx))
        backend = get_backend(config)
    except FileNotFoundError:
        click.echo('Backend is not configured or invalid config path')
    except HostcaError as exc:
        click.echo(f'Backend is invalid: {exc}')
    else:
        click.echo(f'Backend: {backend.name} ({backend.version})')


main.add_command(config)
main.add_command(cert)
main.add_command(crl)
