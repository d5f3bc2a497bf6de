import click
from .config import ensure_config


@click.group()
def crl():
    """Handle Certificate Revocation List."""


@crl.command()
@ensure_config
def show(obj):
    """Show the Certificate Revocation List."""
    from tabulate import tabulate

    ca_cert = obj.backend.get_ca_chain()[0]
    click.echo(f'Issuer Common Name:    {ca_cert.subject.common_name}')
    click.echo()
    headers = ['Revocation Date', 'Serial Number']
    revoked_certs = [(rc.revocation_date, rc.serial_number) for rc in obj.backend.get_crl()]
    click.echo(tabulate(revoked_certs, headers=headers))
    if not revoked_certs:
        click.echo('No certificates has been revoked yet!')
