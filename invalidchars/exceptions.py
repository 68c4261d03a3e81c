"""
Exceptions
Error types raised while scanning a group for invalid characters.
"""


class InvalidCharsError(Exception):
    """Base exception for the invalid characters diagnostic."""

    pass


class NoSearchProviderError(InvalidCharsError):
    """Raised when no usable LDAP connection could be obtained."""

    def __init__(self, target: str) -> None:
        super().__init__(f"Failed to get an LDAP searcher for {target}")
        self.target = target


class NoGroupMatchError(InvalidCharsError):
    """Raised when no group matches the requested name in the requested domain."""

    def __init__(self, group_name: str, domain_name: str) -> None:
        super().__init__(f"Couldn't find group: {group_name} in domain: {domain_name}")
        self.group_name = group_name
        self.domain_name = domain_name


class MalformedSidError(InvalidCharsError, ValueError):
    """Raised when a binary SID is shorter than its header claims."""

    def __init__(self, length: int, expected: int) -> None:
        super().__init__(f"Binary SID is {length} bytes long, expected at least {expected}")
        self.length = length
        self.expected = expected


class IllegalCharacterError(InvalidCharsError):
    """
    Describes the first character of a string that is not allowed in XML.

    Returned as a value by validate_string() rather than raised.
    """

    def __init__(self, position: int, character: str) -> None:
        super().__init__(f"Illegal character U+{ord(character):04X} at position {position}")
        self.position = position
        self.character = character
