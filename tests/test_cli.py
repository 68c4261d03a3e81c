"""Tests for the command-line entry point."""

import pytest

import findinvalidchars
from invalidchars.exceptions import NoGroupMatchError, NoSearchProviderError
from invalidchars.scanner import Finding

BASE_ARGS = ['-d', 'CORP.LOCAL', '-dc', '10.0.0.10', '-u', 'admin', '-p', 'secret']


def reader(*answers):
    return iter(answers).__next__


class TestPrompts:
    """Test interactive input."""

    def test_reprompts_until_non_empty(self, capsys):
        value = findinvalidchars.get_target_group_name(read=reader('', '', 'Domain Users'))

        out = capsys.readouterr().out
        assert value == 'Domain Users'
        assert out.count("Please provide a valid group name.") == 2

    def test_domain_prompt(self, capsys):
        value = findinvalidchars.get_target_domain_name(read=reader('corp.local'))

        assert value == 'corp.local'
        assert "Please provide the target domain name:" in capsys.readouterr().out

    def test_preset_skips_prompt(self, capsys):
        assert findinvalidchars.get_target_domain_name('corp.local', read=reader()) == 'corp.local'
        assert capsys.readouterr().out == ''


class TestArguments:
    """Test argument handling."""

    def test_default_auth_is_ntlm(self):
        _, args = findinvalidchars.parse_arguments(BASE_ARGS)

        assert findinvalidchars.determine_auth_method(args) == 'ntlm'
        assert args.page_size == 200
        assert args.progress_interval == 1000

    def test_kerberos(self):
        _, args = findinvalidchars.parse_arguments(['-d', 'CORP.LOCAL', '-dc', '10.0.0.10', '--kerberos'])

        assert findinvalidchars.determine_auth_method(args) == 'kerberos'

    def test_ntlm_requires_password(self):
        parser, args = findinvalidchars.parse_arguments(['-d', 'CORP.LOCAL', '-dc', '10.0.0.10', '-u', 'admin'])

        with pytest.raises(SystemExit):
            findinvalidchars.validate_arguments(args, 'ntlm', parser)

    def test_page_size_must_be_positive(self):
        parser, args = findinvalidchars.parse_arguments(BASE_ARGS + ['--page-size', '0'])

        with pytest.raises(SystemExit):
            findinvalidchars.validate_arguments(args, 'ntlm', parser)


class TestFindInvalidChars:
    """Test the report produced for resolved groups."""

    def test_report_lines(self, mocker, capsys):
        diagnostic = mocker.MagicMock()
        diagnostic.resolve_groups.return_value = {513: 'LDAP://dc01/CN=Domain Users,DC=corp,DC=local'}
        diagnostic.scan_group.return_value = iter([Finding('CN=X', 'description', 'hello\x07world')])

        total = findinvalidchars.find_invalid_chars(diagnostic, 'corp', 'Domain Users')

        out = capsys.readouterr().out
        assert total == 1
        assert "Found matching group: LDAP://dc01/CN=Domain Users,DC=corp,DC=local in domain: corp." in out
        assert "Finding invalid characters in group: LDAP://dc01/CN=Domain Users,DC=corp,DC=local." in out
        assert "Found invalid characters for Member DN:CN=X, property:description, value:hello\x07world" in out
        assert diagnostic.scan_group.call_args.args[0] == 513

    def test_groups_scanned_in_order(self, mocker):
        diagnostic = mocker.MagicMock()
        diagnostic.resolve_groups.return_value = {1105: 'LDAP://dc01/CN=A', 1106: 'LDAP://dc01/CN=B'}
        diagnostic.scan_group.side_effect = lambda rid, scanner: iter([])

        findinvalidchars.find_invalid_chars(diagnostic, 'dc01', 'A')

        assert [c.args[0] for c in diagnostic.scan_group.call_args_list] == [1105, 1106]

    def test_progress_printed(self, capsys):
        findinvalidchars.report_progress(1000)

        assert capsys.readouterr().out == "Scanned 1000 users.\n"


class TestMain:
    """Test exit behavior of main()."""

    @pytest.fixture
    def diagnostic(self, mocker):
        cls = mocker.patch('findinvalidchars.InvalidCharsDiagnostic')
        return cls.return_value

    def test_no_group_found(self, diagnostic, capsys):
        diagnostic.resolve_groups.side_effect = NoGroupMatchError('Sales', 'corp.local')

        with pytest.raises(SystemExit) as excinfo:
            findinvalidchars.main(BASE_ARGS + ['--target-domain', 'corp.local', '--group', 'Sales'])

        assert excinfo.value.code == 0
        assert "Couldn't find group: Sales in domain: corp.local, please validate your inputs." in capsys.readouterr().out
        diagnostic.disconnect.assert_called_once()

    def test_no_search_provider(self, diagnostic):
        diagnostic.authenticate.side_effect = NoSearchProviderError('10.0.0.10')

        with pytest.raises(SystemExit) as excinfo:
            findinvalidchars.main(BASE_ARGS + ['--target-domain', 'corp.local', '--group', 'Sales'])

        assert excinfo.value.code == 1
        diagnostic.resolve_groups.assert_not_called()

    def test_success(self, diagnostic, capsys):
        diagnostic.resolve_groups.return_value = {513: 'LDAP://dc01/CN=Domain Users,DC=corp,DC=local'}
        diagnostic.scan_group.return_value = iter([])

        with pytest.raises(SystemExit) as excinfo:
            findinvalidchars.main(BASE_ARGS + ['--target-domain', 'corp.local', '--group', 'Domain Users'])

        assert excinfo.value.code == 0
        diagnostic.authenticate.assert_called_once_with('ntlm', username='admin', password='secret')
