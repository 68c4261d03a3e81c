"""
Character Validation
Detects characters that may not appear in an XML 1.0 document.
"""

import unicodedata
from typing import Optional

from .exceptions import IllegalCharacterError

# Line separator, paragraph separator, control, format, unassigned.
# See http://www.w3.org/TR/REC-xml/#charsets
ILLEGAL_CATEGORIES = frozenset({'Zl', 'Zp', 'Cc', 'Cf', 'Cn'})


def is_illegal_character(char: str, allow_crlf: bool = False) -> bool:
    """
    Check whether a single character is illegal in XML.

    Args:
        char: The character to classify
        allow_crlf: Treat carriage return and line feed as legal

    Returns:
        True if the character's Unicode category is not allowed
    """
    if allow_crlf and char in ('\r', '\n'):
        return False

    return unicodedata.category(char) in ILLEGAL_CATEGORIES


def validate_string(value: str, allow_crlf: bool = False) -> Optional[IllegalCharacterError]:
    """
    Look for the first illegal character in a string.

    Args:
        value: String to check
        allow_crlf: Treat carriage return and line feed as legal

    Returns:
        None if every character is legal, otherwise an IllegalCharacterError
        describing the first offending character
    """
    for position, char in enumerate(value):
        if is_illegal_character(char, allow_crlf):
            return IllegalCharacterError(position, char)

    return None
