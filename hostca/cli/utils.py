import logging
from pathlib import Path


def get_config_path(ctx):
    root_ctx = ctx.find_root()
    return Path(root_ctx.params['config_path'])


def configure_logging(debug=False, verbose=False):
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(format='%(levelname)s: %(message)s')
    logging.getLogger().setLevel(level)
