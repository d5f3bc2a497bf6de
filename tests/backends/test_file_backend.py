import stat
import pytest
from hostca.backends.file import FileBackend
from hostca.dispatcher import CertificateAuthority
from hostca.exceptions import BackendError, UnreadableEntryError
from hostca.models import HostFilter, TargetSelector, Options
from hostca.wrapper import Crl, SerialNumber


@pytest.fixture
def file_store(tmp_path, crypto):
    store = FileBackend(tmp_path / 'ssl')
    store.setup(ca_name='File CA', ca_ttl=30, keylength=2048, crypto=crypto)
    return store


@pytest.fixture
def ca_dir(tmp_path):
    return tmp_path / 'ssl' / 'ca'


class TestSetup:
    def test_creates_ca_files(self, file_store, ca_dir):
        assert (ca_dir / 'ca_crt.pem').is_file()
        assert (ca_dir / 'ca_key.pem').is_file()
        assert list(Crl.from_file(ca_dir / 'ca_crl.pem')) == []
        assert file_store.get_ca_chain()[0].subject.common_name == 'File CA'

    def test_ca_key_is_private(self, file_store, ca_dir):
        mode = (ca_dir / 'ca_key.pem').stat().st_mode
        assert stat.S_IMODE(mode) == 0o600

    def test_second_setup_fails(self, file_store, crypto):
        with pytest.raises(BackendError):
            file_store.setup(ca_name='Again', ca_ttl=30, keylength=2048, crypto=crypto)

    def test_validate_setup(self, file_store):
        with pytest.raises(ValueError):
            file_store.validate_setup()

    def test_not_initialized(self, tmp_path):
        store = FileBackend(tmp_path / 'empty')
        with pytest.raises(BackendError):
            store.get_ca_chain()

    def test_ssldir_is_a_file(self, tmp_path):
        path = tmp_path / 'file'
        path.write_text('')
        with pytest.raises(BackendError):
            FileBackend(path)


class TestStorage:
    def test_serials_continue_after_reopen(self, file_store, tmp_path):
        first = file_store.next_serial()
        reopened = FileBackend(tmp_path / 'ssl')
        assert int(reopened.next_serial()) == int(first) + 1
        assert first == SerialNumber.from_int(2)

    def test_request_then_certificate(self, file_store, crypto, client_key, ca_dir):
        request = crypto.create_request('web01', client_key)
        file_store.put_request('web01', request)
        assert (ca_dir / 'requests' / 'web01.pem').is_file()
        assert file_store.list_hosts(HostFilter.REQUESTS) == ['web01']

        cert = crypto.sign_request(request, file_store.get_ca_chain()[0],
                                   file_store.get_ca_key(), file_store.next_serial(), 30)
        file_store.put_certificate('web01', cert)
        assert file_store.get_request('web01') is None
        assert file_store.get_certificate('web01').serial_number == cert.serial_number
        assert file_store.list_hosts(HostFilter.CERTIFICATES) == ['web01']
        assert file_store.find_by_serial(cert.serial_number) == 'web01'

    def test_crl_append_is_signed_and_deduplicated(self, file_store, ca_dir):
        serial = SerialNumber.from_int(10)
        file_store.append_to_crl(serial)
        file_store.append_to_crl(serial)
        crl = Crl.from_file(ca_dir / 'ca_crl.pem')
        assert [rc.serial_number for rc in crl] == [serial]
        assert crl.is_signature_valid(file_store.get_ca_chain()[0])
        assert file_store.revoked_serials() == {serial}

    def test_delete_all(self, file_store, crypto, client_key):
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        file_store.put_private_key('web01', client_key)
        assert file_store.delete_all('web01')
        assert not file_store.delete_all('web01')
        assert file_store.get_private_key('web01') is None
        assert file_store.list_hosts() == []


class TestWithDispatcher:
    def test_lifecycle(self, file_store, crypto, client_key):
        ca = CertificateAuthority(file_store, crypto, max_workers=2)
        options = Options(keylength=2048)
        file_store.put_request('web01', crypto.create_request('web01', client_key))
        file_store.put_request('web02', crypto.create_request('web02', client_key))

        assert ca.apply('sign', TargetSelector.all(), options).success
        assert ca.apply('verify', TargetSelector.signed()).success
        assert ca.apply('revoke', TargetSelector.explicit(['web01'])).success
        listed = ca.apply('list', TargetSelector.all())
        assert [str(o.value) for o in listed] == ['-web01 (certificate revoked)', '+web02']
        assert ca.apply('clean', TargetSelector.all()).success
        assert file_store.list_hosts() == []
        assert len(file_store.get_crl()) == 2


class TestUnreadableEntries:
    @pytest.fixture
    def ca(self, file_store, crypto):
        return CertificateAuthority(file_store, crypto)

    def test_read_raises_per_host_error(self, file_store, ca_dir):
        (ca_dir / 'signed' / 'broken.pem').write_text('garbage')
        with pytest.raises(UnreadableEntryError) as excinfo:
            file_store.get_certificate('broken')
        assert excinfo.value.host == 'broken'

    def test_other_hosts_are_still_handled(self, file_store, ca_dir, ca, crypto, client_key):
        (ca_dir / 'requests' / 'aaa.pem').write_text('garbage')
        file_store.put_request('bbb', crypto.create_request('bbb', client_key))
        report = ca.apply('sign', TargetSelector.explicit(['aaa', 'bbb']), Options(keylength=2048))
        assert not report.success
        broken, signed = report.outcomes
        assert broken.kind == 'UnreadableEntryError'
        assert 'aaa.pem' in broken.message
        assert signed.ok
        assert file_store.get_certificate('bbb') is not None

    def test_destroy_removes_broken_host(self, file_store, ca_dir, ca):
        (ca_dir / 'signed' / 'broken.pem').write_text('garbage')
        report = ca.apply('destroy', TargetSelector.explicit(['broken']))
        assert report.success
        assert report.outcomes[0].value is True
        assert not (ca_dir / 'signed' / 'broken.pem').exists()
        assert file_store.list_hosts() == []

    def test_list_reports_broken_host(self, file_store, ca_dir, ca, crypto, client_key):
        (ca_dir / 'requests' / 'aaa.pem').write_text('garbage')
        file_store.put_request('bbb', crypto.create_request('bbb', client_key))
        report = ca.apply('list', TargetSelector.all())
        assert [(o.host, o.kind) for o in report] == [('aaa', 'UnreadableEntryError'),
                                                     ('bbb', None)]

    def test_revoke_by_serial_skips_broken_certificates(self, file_store, ca_dir, ca):
        ca.apply('generate', TargetSelector.explicit(['web01']), Options(keylength=2048))
        (ca_dir / 'signed' / 'aaa.pem').write_text('garbage')
        serial = file_store.get_certificate('web01').serial_number
        report = ca.apply('revoke', TargetSelector.explicit([str(int(serial))]))
        assert report.success
        assert file_store.revoked_serials() == {serial}

    def test_corrupt_crl_is_a_store_error(self, file_store, ca_dir):
        (ca_dir / 'ca_crl.pem').write_text('garbage')
        with pytest.raises(BackendError, match='corrupt'):
            file_store.get_crl()
