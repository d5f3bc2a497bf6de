from pathlib import Path
from configparser import ConfigParser, Error as ConfigParserError
import attr
from .exceptions import ConfigurationError


class Config:
    DEFAULT_PATH = Path('~/.config/hostca/hostca.ini').expanduser()

    def __init__(self, path: Path=DEFAULT_PATH):
        self.path = Path(path).resolve()
        self._cfg = ConfigParser()
        with self.path.open() as f:
            try:
                self._cfg.read_file(f)
            except ConfigParserError as e:
                raise ConfigurationError(f'Cannot parse {self.path}: {e}') from None
        if not self._cfg.has_option('hostca', 'backend'):
            raise ConfigurationError(f'No backend is configured in {self.path}')

    @classmethod
    def make_new(cls, path: Path=DEFAULT_PATH):
        self = object.__new__(cls)
        self.path = Path(path).resolve()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._cfg = ConfigParser()
        self._cfg.add_section('hostca')
        return self

    def __repr__(self):
        return f'<hostca Config: {self.path}>'

    def save(self):
        with self.path.open('w') as configfile:
            self._cfg.write(configfile)

    @property
    def backend_name(self):
        return self._cfg.get('hostca', 'backend')

    @backend_name.setter
    def backend_name(self, value):
        if not self._cfg.has_section(value):
            self._cfg.add_section(value)
        self._cfg.set('hostca', 'backend', value)

    @property
    def backend_config(self):
        if not self._cfg.has_section(self.backend_name):
            self._cfg.add_section(self.backend_name)
        return self._cfg[self.backend_name]


def positive_int(value):
    value = int(value)
    if value <= 0:
        raise ValueError(f'Should be a positive number: {value}')
    return value


@attr.s(slots=True, eq=False)
class Param:
    name = attr.ib()
    help = attr.ib()
    default = attr.ib(default=None)
    convert = attr.ib(default=None)

    def copy(self):
        return self.__class__(**attr.asdict(self))
