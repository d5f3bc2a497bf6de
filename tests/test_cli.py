import pytest
from click.testing import CliRunner
from hostca import Config
from hostca.backends.file import FileBackend
from hostca.cli import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def ssldir(tmp_path):
    return tmp_path / 'ssl'


@pytest.fixture
def config_path(tmp_path, ssldir, crypto):
    FileBackend(ssldir).setup(ca_name='CLI CA', ca_ttl=30, keylength=2048, crypto=crypto)
    config = Config.make_new(tmp_path / 'hostca.ini')
    config.backend_name = 'File'
    config.backend_config['ssldir'] = str(ssldir)
    config.save()
    return str(config.path)


@pytest.fixture
def file_store(ssldir, config_path):
    return FileBackend(ssldir)


@pytest.fixture
def invoke(runner, config_path):
    def invoke(*args, **kwargs):
        return runner.invoke(main, ['-c', config_path, *args], **kwargs)
    return invoke


class TestCert:
    def test_list_empty(self, invoke):
        result = invoke('cert', 'list')
        assert result.exit_code == 0
        assert result.output == ''

    def test_sign_and_list(self, invoke, file_store, crypto, client_key):
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        file_store.put_request('web02', crypto.create_request('web02', client_key))

        result = invoke('cert', 'list')
        assert result.output.splitlines() == ['web01', 'web02']

        result = invoke('cert', 'sign', 'WEB01', '--ttl', '10')
        assert result.exit_code == 0
        assert 'Signed certificate request for web01' in result.output

        result = invoke('cert', 'list', '--all')
        assert result.exit_code == 0
        assert result.output.splitlines() == ['+web01', 'web02']

    def test_partial_failure_exit_code(self, invoke, file_store, crypto, client_key):
        file_store.put_request('h1', crypto.create_request('h1', client_key))
        result = invoke('cert', 'sign', 'h1', 'h2')
        assert result.exit_code == 2
        assert 'Signed certificate request for h1' in result.output
        assert 'Error: Could not find certificate request for h2' in result.output

    def test_no_hosts_is_top_level_failure(self, invoke):
        result = invoke('cert', 'sign')
        assert result.exit_code == 24
        assert 'No hosts to sign' in result.output

    def test_unsupported_digest(self, invoke, file_store, crypto, client_key):
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        result = invoke('cert', 'fingerprint', 'web01', '--digest', 'md2')
        assert result.exit_code == 24
        assert 'Unsupported digest algorithm: md2' in result.output

    def test_fingerprint(self, invoke, file_store, crypto, client_key):
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        result = invoke('cert', 'fingerprint', 'web01', '--digest', 'sha256')
        assert result.exit_code == 0
        assert result.output.startswith('web01 (SHA256) ')

    def test_generate_print_verify_clean(self, invoke, file_store):
        result = invoke('cert', 'generate', 'new01', '--keylength', '2048')
        assert result.exit_code == 0, result.output
        assert 'Generated certificate for new01' in result.output

        result = invoke('cert', 'print', 'new01')
        assert 'Common Name:  new01' in result.output

        result = invoke('cert', 'verify', 'new01')
        assert result.output.strip() == 'new01: OK'

        result = invoke('cert', 'clean', 'new01')
        assert result.exit_code == 0
        assert 'Removed files for new01' in result.output
        assert file_store.list_hosts() == []

        result = invoke('cert', 'verify', 'new01')
        assert result.exit_code == 2

    def test_revoke_and_crl_show(self, invoke, file_store):
        invoke('cert', 'generate', 'new01', '--keylength', '2048')
        result = invoke('cert', 'revoke', 'new01')
        assert result.exit_code == 0
        assert 'Revoked certificate with serial' in result.output

        result = invoke('cert', 'revoke', 'new01')
        assert result.exit_code == 2
        assert 'already revoked' in result.output

        result = invoke('crl', 'show')
        assert result.exit_code == 0
        assert 'CLI CA' in result.output
        assert str(file_store.get_certificate('new01').serial_number) in result.output

    def test_unknown_action(self, invoke):
        result = invoke('cert', 'explode', 'web01')
        assert result.exit_code != 0
        assert 'explode' in result.output

    def test_action_flags(self, invoke, file_store, crypto, client_key):
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        result = invoke('cert', '--sign', 'web01')
        assert result.exit_code == 0, result.output
        assert 'Signed certificate request for web01' in result.output

        result = invoke('cert', '--list', '--all')
        assert result.output.splitlines() == ['+web01']

        result = invoke('cert', '--clean', 'web01')
        assert result.exit_code == 0
        assert 'Removed files for web01' in result.output
        assert file_store.list_hosts() == []

    def test_only_one_action(self, invoke):
        result = invoke('cert', '--sign', '--revoke', 'web01')
        assert result.exit_code != 0
        assert 'Only one action' in result.output

    def test_missing_action(self, invoke):
        result = invoke('cert')
        assert result.exit_code != 0
        assert 'Missing action' in result.output


class TestConfig:
    def test_show(self, invoke, ssldir):
        result = invoke('config', 'show')
        assert result.exit_code == 0
        assert 'File' in result.output
        assert str(ssldir) in result.output

    def test_setup(self, runner, tmp_path):
        config_path = tmp_path / 'new' / 'hostca.ini'
        ssldir = tmp_path / 'newssl'
        result = runner.invoke(main, ['-c', str(config_path), 'config', 'setup'],
                               input=f'{ssldir}\nNew CA\n\n2048\n')
        assert result.exit_code == 0, result.output
        assert 'Successfully initialized File' in result.output
        assert Config(config_path).backend_config['ssldir'] == str(ssldir)
        assert FileBackend(ssldir).get_ca_chain()[0].subject.common_name == 'New CA'

    def test_missing_config_declined(self, runner, tmp_path):
        result = runner.invoke(main, ['-c', str(tmp_path / 'none.ini'), 'cert', 'list'],
                               input='n\n')
        assert result.exit_code == 23

    def test_uninitialized_store(self, runner, tmp_path):
        config = Config.make_new(tmp_path / 'hostca.ini')
        config.backend_name = 'File'
        config.backend_config['ssldir'] = str(tmp_path / 'empty')
        config.save()
        result = runner.invoke(main, ['-c', str(config.path), 'cert', 'list'])
        assert result.exit_code == 24
        assert 'run setup first' in result.output


class TestMain:
    def test_help_without_command(self, runner, config_path):
        result = runner.invoke(main, ['-c', config_path])
        assert result.exit_code == 0
        assert 'cert' in result.output

    def test_version(self, runner, config_path):
        result = runner.invoke(main, ['-c', config_path, 'version'])
        assert result.exit_code == 0
        assert 'Backend: File' in result.output
