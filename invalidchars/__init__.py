"""
Find Invalid Characters - Core Module
"""

from .auth import AuthenticationManager
from .diagnostic import InvalidCharsDiagnostic
from .scanner import Finding, GroupMemberScanner, MemberRecord
from .sid_utils import SIDConverter

__all__ = ['InvalidCharsDiagnostic', 'AuthenticationManager', 'SIDConverter',
           'GroupMemberScanner', 'MemberRecord', 'Finding']
