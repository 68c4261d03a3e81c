"""
SID Utilities
Decodes binary security identifiers and extracts their relative identifier.
"""

import struct
from typing import NamedTuple, Tuple

from .exceptions import MalformedSidError

# The well-known "NT Authority" identifier authority
NT_AUTHORITY = 5
# S-1-5-21-<domain1>-<domain2>-<domain3>-<rid>
DOMAIN_SID_SUB_AUTHORITY_COUNT = 5

SID_HEADER_LENGTH = 8


class DecodedSid(NamedTuple):
    """A binary SID split into its parts."""

    revision: int
    authority: int
    sub_authorities: Tuple[int, ...]

    def __str__(self) -> str:
        parts = [f"S-{self.revision}-{self.authority}"]
        parts.extend(str(sub_authority) for sub_authority in self.sub_authorities)
        return '-'.join(parts)


class SIDConverter:
    """
    Utility class for converting binary SIDs.
    """

    @staticmethod
    def decode(sid_bytes: bytes) -> DecodedSid:
        """
        Decode a binary SID.

        Args:
            sid_bytes: Binary SID data, as stored in objectSid

        Returns:
            The revision, 48-bit authority and sub-authorities of the SID

        Raises:
            MalformedSidError: If the buffer is shorter than the header
                and the sub-authority count it declares
        """
        if len(sid_bytes) < SID_HEADER_LENGTH:
            raise MalformedSidError(len(sid_bytes), SID_HEADER_LENGTH)

        revision = sid_bytes[0]
        sub_authority_count = sid_bytes[1]
        identifier_authority = int.from_bytes(sid_bytes[2:8], byteorder='big')

        expected = SID_HEADER_LENGTH + 4 * sub_authority_count
        if len(sid_bytes) < expected:
            raise MalformedSidError(len(sid_bytes), expected)

        sub_authorities = struct.unpack_from(f'<{sub_authority_count}I', sid_bytes, SID_HEADER_LENGTH)

        return DecodedSid(revision, identifier_authority, tuple(sub_authorities))

    @staticmethod
    def encode(sid: DecodedSid) -> bytes:
        """
        Encode a decoded SID back into its binary form.

        Args:
            sid: SID parts

        Returns:
            Binary SID data
        """
        sid_bytes = struct.pack('BB', sid.revision, len(sid.sub_authorities))
        sid_bytes += sid.authority.to_bytes(6, byteorder='big')

        for sub_authority in sid.sub_authorities:
            sid_bytes += struct.pack('<I', sub_authority)

        return sid_bytes

    @staticmethod
    def get_rid(sid: DecodedSid) -> int:
        """
        Get the relative identifier of a domain SID.

        Only NT Authority SIDs with exactly five sub-authorities carry a RID.
        Any other SID yields 0, which callers treat as "not applicable".

        Args:
            sid: Decoded SID

        Returns:
            The last sub-authority, or 0
        """
        if sid.authority != NT_AUTHORITY:
            return 0

        if len(sid.sub_authorities) != DOMAIN_SID_SUB_AUTHORITY_COUNT:
            return 0

        return sid.sub_authorities[-1]

    @staticmethod
    def bytes_to_rid(sid_bytes: bytes) -> int:
        """Decode a binary SID and return its RID (0 when not applicable)."""
        return SIDConverter.get_rid(SIDConverter.decode(sid_bytes))

    @staticmethod
    def domain_to_dn(domain: str) -> str:
        """
        Convert domain name to distinguished name.

        Args:
            domain: Domain name (e.g., 'example.com')

        Returns:
            Distinguished name (e.g., 'DC=example,DC=com')
        """
        return ','.join([f'DC={part}' for part in domain.split('.')])
