import click
from hostca.backends import BackendBuilder, get_backend, load_all_backends
from hostca.exceptions import HostcaError
from hostca import Config
from ..utils import get_config_path


# the store could not be opened
EXIT_SETUP_FAILED = 23


class Obj:

    def __init__(self):
        self.ctx = click.get_current_context()
        self.config = self._get_config()
        self.backend = self._get_backend()

    def _get_config(self):
        config_path = get_config_path(self.ctx)
        try:
            return Config(config_path)
        except FileNotFoundError:
            click.secho(f'Configuration file not found: {config_path}', fg='yellow', err=True)
            if not click.confirm('This command needs configuration and an initialized CA!\n'
                                 'Do you want to initialize one now?'):
                self.ctx.exit(EXIT_SETUP_FAILED)
            self.ctx.invoke(setup)
            self._ask_run_command()
            return Config(config_path)
        except HostcaError as exc:
            click.secho(str(exc), fg='red', err=True)
            self.ctx.exit(EXIT_SETUP_FAILED)

    def _get_backend(self):
        while True:
            try:
                return get_backend(self.config)
            except HostcaError as exc:
                click.echo(f'Something is wrong with the {self.config.backend_name} '
                           f'backend configuration:\n  * {exc}', err=True)
                if not click.confirm('Would you like to reconfigure it?'):
                    self.ctx.exit(EXIT_SETUP_FAILED)
                self.ctx.invoke(setup)
                self._ask_run_command()
                self.config = Config(get_config_path(self.ctx))

    def _ask_run_command(self):
        if not click.confirm(f'\nDo you want to run the "{self.ctx.info_name}" command now?'):
            self.ctx.exit()


ensure_config = click.make_pass_decorator(Obj, ensure=True)


@click.group()
def config():
    """Manage hostca configuration."""


@config.command()
@click.pass_context
def setup(ctx):
    """Initializes backend storage and generates the CA."""
    all_backends = load_all_backends()
    config_path = get_config_path(ctx)
    _check_config_path(config_path)
    BackendCls = _select_backend(all_backends)
    builder = _ask_backend_params(BackendCls)
    backend = builder.setup_backend()
    _make_new_config(builder, config_path)
    click.echo(f'Saved configuration to {config_path}')
    click.secho(f'Successfully initialized {backend.name}. You can sign certificates now!',
                fg='green')


def _check_config_path(config_path):
    if config_path.exists():
        click.secho(f'Configuration file already exists: {config_path}', fg='yellow')
        click.confirm('Do you want to replace it?', abort=True)
        click.echo()


def _select_backend(all_backends):
    if len(all_backends) == 1:
        return all_backends[0]

    click.echo('Backend choices:')
    for choice, Backend in enumerate(all_backends):
        click.echo(f'{choice + 1}. {Backend.name} - {Backend.description}')

    backend_choice = click.prompt(f'Which backend do you want to set up (1-{len(all_backends)})?',
                                  default=1, type=click.IntRange(1, len(all_backends)))
    click.echo()
    return all_backends[backend_choice - 1]


def _ask_backend_params(BackendCls):
    builder = BackendBuilder(BackendCls)

    while True:
        for param in builder:
            value = click.prompt(param.help, default=param.default)
            builder[param.name] = value

        try:
            builder.validate()
        except ValueError as exc:
            click.secho(f'\nSomething is wrong with the configuration:\n  * {exc}\n', fg='red')
        else:
            break

    return builder


def _make_new_config(builder, config_path):
    config = Config.make_new(config_path)
    config.backend_name = builder.backend_name
    str_values = {k: str(v) for k, v in builder.init_params.items()}
    config.backend_config.update(str_values)
    config.save()


@config.command()
@ensure_config
def show(obj):
    """Show saved configuration options."""
    from tabulate import tabulate

    click.echo(f'Configuration file: {obj.config.path}')
    click.echo(f'Backend:            {obj.backend.name} - {obj.backend.description}')
    click.echo()
    rows = sorted(obj.config.backend_config.items())
    click.echo(tabulate(rows, headers=['Parameter', 'Value']))
