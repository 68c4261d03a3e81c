"""
Group Member Scanner
Checks the properties of group members for characters that are illegal in XML.
"""

import logging
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Union

from .char_validator import validate_string

# Properties loaded for every group member. Looked up lower-cased.
MEMBER_ATTRIBUTES = [
    'distinguishedName',
    'mail',
    'displayName',
    'description',
    'groupType',
    'sAMAccountName',
]

PROGRESS_INTERVAL = 1000

RawValue = Union[str, bytes]


class Finding(NamedTuple):
    """A member property whose value contains an illegal character."""

    entry_dn: str
    property_name: str
    property_value: str


class MemberRecord:
    """
    The properties loaded for one directory entry.
    """

    def __init__(self, dn: str, properties: Dict[str, List[RawValue]]):
        """
        Initialize a member record.

        Args:
            dn: Distinguished name reported by the search
            properties: Property name to list of values (str or raw bytes)
        """
        self.dn = dn
        self.properties = {name.lower(): list(values) for name, values in properties.items()}

    @classmethod
    def from_ldap_entry(cls, entry: dict) -> 'MemberRecord':
        """Build a record from an ldap3 search response entry."""
        return cls(entry.get('dn', ''), entry.get('raw_attributes') or {})

    def first_value(self, name: str) -> Optional[str]:
        """
        Get the first value of a property as text.

        Args:
            name: Property name (case-insensitive)

        Returns:
            The first value, or None if the property is missing, empty
            or not text
        """
        values = self.properties.get(name.lower())
        if not values:
            return None

        value = values[0]
        if isinstance(value, bytes):
            try:
                value = value.decode('utf-8')
            except UnicodeDecodeError:
                return None

        if not isinstance(value, str):
            return None

        return value or None

    @property
    def entry_dn(self) -> str:
        return self.first_value('distinguishedname') or self.dn


class GroupMemberScanner:
    """
    Streams member records and reports properties holding illegal characters.
    """

    def __init__(self, attributes: Sequence[str] = tuple(MEMBER_ATTRIBUTES),
                 progress_interval: int = PROGRESS_INTERVAL,
                 on_progress: Optional[Callable[[int], None]] = None):
        """
        Initialize the scanner.

        Args:
            attributes: Property names to check on every record
            progress_interval: Report progress every this many records (0 disables)
            on_progress: Called with the number of records scanned so far
        """
        self.attributes = [name.lower() for name in attributes]
        self.progress_interval = progress_interval
        self.on_progress = on_progress
        self.scanned = 0

    def scan_record(self, record: MemberRecord) -> Iterator[Finding]:
        """
        Check every requested property of a single record.

        Carriage returns and line feeds are tolerated, since multi-line
        values such as descriptions legitimately contain them.
        """
        entry_dn = record.entry_dn

        for name in self.attributes:
            value = record.first_value(name)
            if not value:
                continue

            failure = validate_string(value, allow_crlf=True)
            if failure is not None:
                logging.debug(f"{entry_dn}: {name} {failure}")
                yield Finding(entry_dn, name, value)

    def scan(self, records: Iterable[MemberRecord]) -> Iterator[Finding]:
        """
        Scan member records lazily.

        Args:
            records: Member records, typically straight from a paged search

        Yields:
            One Finding per offending property
        """
        self.scanned = 0

        for record in records:
            if record is None:
                continue

            yield from self.scan_record(record)

            self.scanned += 1
            if self.progress_interval and self.scanned % self.progress_interval == 0:
                if self.on_progress:
                    self.on_progress(self.scanned)
                else:
                    logging.info(f"Scanned {self.scanned} users.")
