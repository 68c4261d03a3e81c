"""
Invalid Characters Diagnostic
Main class that ties authentication, group resolution and member scanning together.
"""

import logging
from typing import Dict, Iterator, Optional

from ldap3.core.exceptions import LDAPException

from .auth import AuthenticationManager
from .exceptions import NoGroupMatchError, NoSearchProviderError
from .ldap_operations import LDAPOperations, PAGE_SIZE
from .scanner import Finding, GroupMemberScanner
from .sid_utils import SIDConverter


class InvalidCharsDiagnostic:
    """
    Read-only scan of a group's members for characters that are illegal in XML.
    """

    def __init__(self, dc_ip: str, domain: str, dc_hostname: Optional[str] = None,
                 use_ssl: bool = False, global_catalog: bool = False,
                 base_dn: Optional[str] = None, page_size: int = PAGE_SIZE):
        """
        Initialize the diagnostic.

        Args:
            dc_ip: IP address of the domain controller
            domain: Domain used to authenticate
            dc_hostname: Hostname of the DC (optional, for Kerberos/SSL)
            use_ssl: Use LDAPS
            global_catalog: Search the Global Catalog (whole forest)
            base_dn: Search base; defaults to the forest root for the Global
                Catalog and to the domain DN otherwise
            page_size: Entries per page when enumerating members
        """
        self.dc_ip = dc_ip
        self.domain = domain
        self.page_size = page_size

        self.auth_manager = AuthenticationManager(dc_ip, domain, dc_hostname,
                                                  use_ssl=use_ssl, global_catalog=global_catalog)
        self.connection = None
        self.ldap_ops = None

        if base_dn is not None:
            self.base_dn = base_dn
        elif global_catalog:
            self.base_dn = ''
        else:
            self.base_dn = SIDConverter.domain_to_dn(domain)

        logging.info(f"Initialized invalid characters scan targeting {dc_ip} ({domain})")

    def authenticate(self, auth_method: str, **kwargs) -> None:
        """
        Authenticate to the domain controller.

        Args:
            auth_method: Authentication method (ntlm, ntlm-hash, kerberos, simple)
            **kwargs: Authentication parameters (username, password, nt_hash, ccache_path)

        Raises:
            NoSearchProviderError: If no connection could be established
        """
        self.connection = self.auth_manager.get_connection(auth_method, **kwargs)

        if not self.connection:
            raise NoSearchProviderError(self.dc_ip)

        self.ldap_ops = LDAPOperations(self.connection, self.base_dn,
                                       path_prefix=self.auth_manager.path_prefix,
                                       page_size=self.page_size)
        logging.info(f"Successfully authenticated to {self.dc_ip}")

    def disconnect(self):
        """
        Close the connection to the domain controller.
        """
        if self.connection:
            self.connection.unbind()
            logging.info("Disconnected from domain controller")
            self.connection = None
            self.ldap_ops = None

    def _require_connection(self) -> LDAPOperations:
        if not self.ldap_ops:
            raise NoSearchProviderError(self.dc_ip)
        return self.ldap_ops

    def resolve_groups(self, domain_name: str, group_name: str) -> Dict[int, str]:
        """
        Find the groups to scan.

        Args:
            domain_name: Substring the group path must contain
            group_name: Group name to resolve

        Returns:
            RID to group path mapping

        Raises:
            NoGroupMatchError: If no group matched
        """
        groups = self._require_connection().find_target_groups(domain_name, group_name)

        if not groups:
            raise NoGroupMatchError(group_name, domain_name)

        return groups

    def scan_group(self, rid: int, scanner: GroupMemberScanner) -> Iterator[Finding]:
        """
        Scan the members whose primary group has the given RID.

        An LDAP error ends the scan of this group only.

        Args:
            rid: Relative identifier of the group
            scanner: Scanner holding the attributes to check

        Yields:
            Findings as members are read
        """
        ldap_ops = self._require_connection()
        members = ldap_ops.iter_group_members(rid, scanner.attributes)

        try:
            yield from scanner.scan(members)
        except LDAPException as e:
            logging.error(f"Error scanning members of primary group {rid}: {e}")
