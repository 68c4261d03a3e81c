"""
Authentication Manager
Binds to a domain controller or Global Catalog with one of:
- NTLM with password
- NTLM with hash (Pass-the-Hash)
- Kerberos
- SIMPLE bind
All connections are read-only.
"""

import logging
import os
import ssl
from typing import Optional

from ldap3 import Server, Connection, ALL, NTLM, SIMPLE, SASL, KERBEROS, Tls

# Empty LM hash used when only the NT hash is supplied
EMPTY_LM_HASH = 'aad3b435b51404eeaad3b435b51404ee'


class AuthenticationManager:
    """
    Manages different authentication methods for LDAP connections.
    """

    AUTH_NTLM = 'ntlm'
    AUTH_NTLM_HASH = 'ntlm-hash'
    AUTH_KERBEROS = 'kerberos'
    AUTH_SIMPLE = 'simple'

    def __init__(self, dc_ip: str, domain: str, dc_hostname: Optional[str] = None,
                 use_ssl: bool = False, global_catalog: bool = False):
        """
        Initialize authentication manager.

        Args:
            dc_ip: Domain controller IP address
            domain: Domain name
            dc_hostname: Domain controller hostname (for Kerberos and SSL)
            use_ssl: Use LDAPS
            global_catalog: Connect to the Global Catalog port instead of LDAP
        """
        self.dc_ip = dc_ip
        self.domain = domain
        self.dc_hostname = dc_hostname or dc_ip
        self.use_ssl = use_ssl
        self.global_catalog = global_catalog

    @property
    def port(self) -> int:
        if self.global_catalog:
            return 3269 if self.use_ssl else 3268
        return 636 if self.use_ssl else 389

    @property
    def path_prefix(self) -> str:
        """ADsPath prefix of entries read through this server, e.g. 'GC://dc01.corp.local/'."""
        scheme = 'GC' if self.global_catalog else 'LDAP'
        return f"{scheme}://{self.dc_hostname}/"

    def create_server(self) -> Server:
        """
        Create LDAP server object.

        Returns:
            Server object
        """
        protocol = 'ldaps' if self.use_ssl else 'ldap'

        tls_config = None
        if self.use_ssl:
            tls_config = Tls(validate=ssl.CERT_NONE, version=ssl.PROTOCOL_TLSv1_2)

        return Server(
            f'{protocol}://{self.dc_hostname}:{self.port}',
            get_info=ALL,
            use_ssl=self.use_ssl,
            tls=tls_config
        )

    def _connect(self, **kwargs) -> Connection:
        return Connection(self.create_server(), read_only=True, auto_bind=True, **kwargs)

    def connect_ntlm(self, username: str, password: str) -> Optional[Connection]:
        """
        Connect using NTLM authentication with password.

        Args:
            username: Username
            password: Password

        Returns:
            Connection object or None if failed
        """
        try:
            connection = self._connect(
                user=f"{self.domain}\\{username}",
                password=password,
                authentication=NTLM
            )
            logging.info(f"Successfully authenticated via NTLM as {username}")
            return connection

        except Exception as e:
            logging.error(f"NTLM authentication failed: {e}")
            return None

    def connect_ntlm_hash(self, username: str, nt_hash: str) -> Optional[Connection]:
        """
        Connect using Pass-the-Hash (NTLM with hash).

        Args:
            username: Username
            nt_hash: NT hash (LM:NT or just NT)

        Returns:
            Connection object or None if failed
        """
        if ':' in nt_hash:
            lm_hash, nt_hash = nt_hash.split(':', 1)
        else:
            lm_hash = EMPTY_LM_HASH

        try:
            connection = self._connect(
                user=f"{self.domain}\\{username}",
                password=f"{lm_hash}:{nt_hash}",
                authentication=NTLM
            )
            logging.info(f"Successfully authenticated via Pass-the-Hash as {username}")
            return connection

        except Exception as e:
            logging.error(f"Pass-the-Hash authentication failed: {e}")
            return None

    def connect_kerberos(self, ccache_path: Optional[str] = None) -> Optional[Connection]:
        """
        Connect using Kerberos authentication.

        Args:
            ccache_path: Path to Kerberos credential cache (optional)

        Returns:
            Connection object or None if failed

        Note:
            Requires valid Kerberos ticket (kinit or ccache file).
        """
        if ccache_path:
            os.environ['KRB5CCNAME'] = ccache_path
            logging.debug(f"Using Kerberos ccache: {ccache_path}")

        try:
            connection = self._connect(authentication=SASL, sasl_mechanism=KERBEROS)
            logging.info("Successfully authenticated via Kerberos")
            return connection

        except Exception as e:
            logging.error(f"Kerberos authentication failed: {e}")
            logging.debug("Ensure you have a valid Kerberos ticket (kinit)")
            return None

    def connect_simple(self, username: str, password: str) -> Optional[Connection]:
        """
        Connect using SIMPLE authentication.

        Args:
            username: Username or full DN
            password: Password

        Returns:
            Connection object or None if failed
        """
        if username.lower().startswith('cn=') or username.lower().startswith('uid='):
            user_dn = username
        else:
            user_dn = f"{username}@{self.domain}"

        try:
            connection = self._connect(user=user_dn, password=password, authentication=SIMPLE)
            logging.info(f"Successfully authenticated via SIMPLE as {username}")
            return connection

        except Exception as e:
            logging.error(f"SIMPLE authentication failed: {e}")
            return None

    def get_connection(self, auth_method: str, username: Optional[str] = None,
                       password: Optional[str] = None, nt_hash: Optional[str] = None,
                       ccache_path: Optional[str] = None) -> Optional[Connection]:
        """
        Get connection using specified authentication method.

        Returns:
            Connection object or None if failed
        """
        if auth_method == self.AUTH_NTLM:
            return self.connect_ntlm(username, password)

        elif auth_method == self.AUTH_NTLM_HASH:
            return self.connect_ntlm_hash(username, nt_hash)

        elif auth_method == self.AUTH_KERBEROS:
            return self.connect_kerberos(ccache_path)

        elif auth_method == self.AUTH_SIMPLE:
            return self.connect_simple(username, password)

        else:
            logging.error(f"Unknown authentication method: {auth_method}")
            return None
