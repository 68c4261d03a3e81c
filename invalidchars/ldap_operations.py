"""
LDAP Operations
Handles the read-only LDAP queries used by the invalid characters scan.
"""

import logging
from typing import Dict, Iterator, Sequence

from ldap3 import Connection, SUBTREE
from ldap3.utils.conv import escape_filter_chars

from .exceptions import MalformedSidError
from .scanner import MEMBER_ATTRIBUTES, MemberRecord
from .sid_utils import SIDConverter

PAGE_SIZE = 200
# Seconds allowed for the group lookup
SEARCH_TIME_LIMIT = 60

GROUP_ATTRIBUTES = ['distinguishedName', 'objectSid']


def anr_filter(name: str) -> str:
    """Ambiguous name resolution filter matching any naming attribute containing name."""
    return f"(anr={escape_filter_chars(name)})"


def primary_group_filter(rid: int) -> str:
    """Filter matching every object whose primary group has the given RID."""
    return "(PrimaryGroupID=%d)" % rid


class LDAPOperations:
    """
    Performs LDAP queries on Active Directory.
    """

    def __init__(self, connection: Connection, base_dn: str, path_prefix: str = '',
                 page_size: int = PAGE_SIZE):
        """
        Initialize LDAP operations handler.

        Args:
            connection: Active LDAP connection
            base_dn: Base distinguished name for searches
            path_prefix: Prepended to a DN to form the entry path (e.g. 'LDAP://dc01/')
            page_size: Entries per page when enumerating group members
        """
        self.connection = connection
        self.base_dn = base_dn
        self.path_prefix = path_prefix
        self.page_size = page_size
        self.sid_converter = SIDConverter()

    def entry_path(self, dn: str) -> str:
        """Return the ADsPath style path of an entry."""
        return f"{self.path_prefix}{dn}"

    def find_target_groups(self, domain_name: str, group_name: str) -> Dict[int, str]:
        """
        Find groups matching a name and map their RID to their path.

        Only results whose path contains domain_name are kept. Groups
        whose SID carries no RID are stored under 0, and a later group
        with the same RID replaces an earlier one.

        Args:
            domain_name: Literal substring the group path must contain
            group_name: Name to resolve with ANR

        Returns:
            RID to path mapping, empty if nothing matched
        """
        groups: Dict[int, str] = {}

        self.connection.search(
            search_base=self.base_dn,
            search_filter=anr_filter(group_name),
            search_scope=SUBTREE,
            attributes=GROUP_ATTRIBUTES,
            time_limit=SEARCH_TIME_LIMIT
        )

        for result in self.connection.response or []:
            if result.get('type') != 'searchResEntry':
                continue

            group_path = self.entry_path(result.get('dn', ''))
            if not result.get('dn') or domain_name not in group_path:
                logging.debug(f"Skipping {group_path}: not in domain {domain_name}")
                continue

            logging.debug(f"Found matching group: {group_path} in domain: {domain_name}")

            sid_values = (result.get('raw_attributes') or {}).get('objectSid') or []
            if not sid_values:
                logging.warning(f"No objectSid returned for {group_path}, skipping")
                continue

            try:
                sid = self.sid_converter.decode(sid_values[0])
            except MalformedSidError as e:
                logging.warning(f"Malformed objectSid for {group_path}: {e}")
                continue

            rid = self.sid_converter.get_rid(sid)
            logging.debug(f"{group_path} has SID {sid} (RID {rid})")

            if rid in groups:
                logging.warning(f"RID {rid} of {group_path} already used by {groups[rid]}, replacing it")

            groups[rid] = group_path

        return groups

    def iter_group_members(self, rid: int,
                           attributes: Sequence[str] = tuple(MEMBER_ATTRIBUTES)) -> Iterator[MemberRecord]:
        """
        Enumerate the objects whose primary group has the given RID.

        Results are fetched page by page and yielded as they arrive.

        Args:
            rid: Relative identifier of the group
            attributes: Properties to load for every member

        Yields:
            One MemberRecord per entry
        """
        entries = self.connection.extend.standard.paged_search(
            search_base=self.base_dn,
            search_filter=primary_group_filter(rid),
            search_scope=SUBTREE,
            attributes=list(attributes),
            paged_size=self.page_size,
            generator=True
        )

        for entry in entries:
            if entry.get('type') != 'searchResEntry':
                continue
            yield MemberRecord.from_ldap_entry(entry)
