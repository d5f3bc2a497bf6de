from jinja2 import Environment, PackageLoader


env = Environment(loader=PackageLoader('hostca', 'templates'), trim_blocks=True,
                  lstrip_blocks=True, keep_trailing_newline=True)


def render_certificate(cert) -> str:
    template = env.get_template('certificate.jinja2')
    return template.render(cert=cert)
