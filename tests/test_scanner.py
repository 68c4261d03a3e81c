"""Tests for the group member scanner."""

import pytest

from invalidchars.scanner import Finding, GroupMemberScanner, MemberRecord


def make_record(dn: str, **properties) -> MemberRecord:
    properties.setdefault('distinguishedName', [dn])
    return MemberRecord(dn, properties)


class TestMemberRecord:
    """Test property lookup on member records."""

    def test_first_value_only(self):
        record = make_record("CN=X", mail=["first@corp.local", "second\u0001@corp.local"])

        assert record.first_value("mail") == "first@corp.local"

    def test_lookup_is_case_insensitive(self):
        record = make_record("CN=X", displayName=["X"])

        assert record.first_value("DISPLAYNAME") == "X"
        assert record.first_value("displayname") == "X"

    def test_missing_and_empty_values(self):
        record = make_record("CN=X", description=[], mail=[""])

        assert record.first_value("description") is None
        assert record.first_value("mail") is None
        assert record.first_value("sAMAccountName") is None

    def test_bytes_are_decoded(self):
        record = make_record("CN=X", description=["caf\u00e9".encode("utf-8")])

        assert record.first_value("description") == "caf\u00e9"

    def test_binary_values_are_ignored(self):
        record = make_record("CN=X", description=[b"\xff\xfe\x00"])

        assert record.first_value("description") is None

    def test_from_ldap_entry(self):
        entry = {
            'type': 'searchResEntry',
            'dn': 'CN=Jane,CN=Users,DC=corp,DC=local',
            'raw_attributes': {
                'distinguishedName': [b'CN=Jane,CN=Users,DC=corp,DC=local'],
                'sAMAccountName': [b'jane'],
            },
        }

        record = MemberRecord.from_ldap_entry(entry)

        assert record.entry_dn == 'CN=Jane,CN=Users,DC=corp,DC=local'
        assert record.first_value('samaccountname') == 'jane'

    def test_entry_dn_falls_back_to_search_dn(self):
        record = MemberRecord("CN=Fallback", {})

        assert record.entry_dn == "CN=Fallback"


class TestGroupMemberScanner:
    """Test GroupMemberScanner.scan."""

    def test_single_finding(self):
        record = MemberRecord("CN=X", {
            'distinguishedname': ['CN=X'],
            'description': ['hello\u0007world'],
        })

        findings = list(GroupMemberScanner().scan([record]))

        assert findings == [Finding("CN=X", "description", "hello\u0007world")]

    def test_one_finding_per_property(self):
        record = make_record("CN=X", description=["\u0001\u0002\u0003"], displayName=["bad\u200b"])

        findings = list(GroupMemberScanner().scan([record]))

        assert [f.property_name for f in findings] == ["displayname", "description"]

    def test_crlf_tolerated(self):
        record = make_record("CN=X", description=["first line\r\nsecond line"])

        assert list(GroupMemberScanner().scan([record])) == []

    def test_unrequested_properties_ignored(self):
        record = make_record("CN=X", info=["\u0001"])

        assert list(GroupMemberScanner().scan([record])) == []

    def test_custom_attributes(self):
        record = make_record("CN=X", info=["\u0001"])

        findings = list(GroupMemberScanner(attributes=["info"]).scan([record]))

        assert findings == [Finding("CN=X", "info", "\u0001")]

    def test_null_records_skipped(self):
        record = make_record("CN=X", description=["\u0001"])

        findings = list(GroupMemberScanner().scan([None, record]))

        assert len(findings) == 1

    def test_records_consumed_lazily(self):
        consumed = []

        def records():
            for i in range(3):
                consumed.append(i)
                yield make_record(f"CN=U{i}", description=["\u0001"])

        findings = GroupMemberScanner().scan(records())

        assert next(findings).entry_dn == "CN=U0"
        assert consumed == [0]

    def test_progress_reported(self):
        progress = []
        scanner = GroupMemberScanner(progress_interval=1000, on_progress=progress.append)

        list(scanner.scan(make_record(f"CN=U{i}") for i in range(2500)))

        assert progress == [1000, 2000]
        assert scanner.scanned == 2500

    def test_progress_disabled(self):
        progress = []
        scanner = GroupMemberScanner(progress_interval=0, on_progress=progress.append)

        list(scanner.scan(make_record(f"CN=U{i}") for i in range(10)))

        assert progress == []

    def test_progress_logged_without_callback(self, caplog):
        scanner = GroupMemberScanner(progress_interval=2)

        with caplog.at_level("INFO"):
            list(scanner.scan(make_record(f"CN=U{i}") for i in range(4)))

        assert "Scanned 2 users." in caplog.text
        assert "Scanned 4 users." in caplog.text

    def test_scan_is_repeatable(self):
        records = [
            make_record("CN=A", description=["ok"], mail=["a\u0001@corp.local"]),
            make_record("CN=B", displayName=["\u2028"], sAMAccountName=["b\u0000"]),
            make_record("CN=C", description=["fine"]),
        ]
        scanner = GroupMemberScanner()

        first = list(scanner.scan(records))
        second = list(scanner.scan(records))

        assert first == second
        assert [(f.entry_dn, f.property_name) for f in first] == [
            ("CN=A", "mail"),
            ("CN=B", "displayname"),
            ("CN=B", "samaccountname"),
        ]
