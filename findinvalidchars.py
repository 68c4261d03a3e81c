#!/usr/bin/env python3
"""
Find Invalid Characters
Main entry point for the tool.
"""

import argparse
import sys
import logging
from typing import Callable, Optional

from invalidchars import InvalidCharsDiagnostic, AuthenticationManager, GroupMemberScanner
from invalidchars.exceptions import InvalidCharsError, NoGroupMatchError, NoSearchProviderError
from invalidchars.ldap_operations import PAGE_SIZE
from invalidchars.scanner import PROGRESS_INTERVAL


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='[%(levelname)s] %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Find Invalid Characters - Report group member properties holding characters that are illegal in XML',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Authentication Methods:
  --ntlm              NTLM with password (default)
  --ntlm-hash         Pass-the-Hash with NT hash
  --kerberos          Kerberos authentication (requires ticket)
  --simple            SIMPLE bind (use with SSL)

Examples:
  Scan a group, prompting for the domain and group names:
    %(prog)s -d DOMAIN.COM -u admin -p Password123 -dc 192.168.1.10

  Scan "Domain Users" across the forest through the Global Catalog:
    %(prog)s -d DOMAIN.COM -u admin -p Password123 -dc dc01.domain.com \\
             --global-catalog --target-domain domain.com --group "Domain Users"
        """
    )

    # Connection parameters
    parser.add_argument('-d', '--domain', required=True, help='Domain to authenticate against (e.g., DOMAIN.COM)')
    parser.add_argument('-dc', '--dc-ip', required=True, help='Domain controller IP address')
    parser.add_argument('--dc-hostname', help='Domain controller hostname (for Kerberos/SSL and entry paths)')
    parser.add_argument('--use-ssl', action='store_true', help='Use LDAPS instead of LDAP')
    parser.add_argument('--global-catalog', action='store_true', help='Search the Global Catalog')
    parser.add_argument('--base-dn', help='Search base (default: domain DN, or forest root with --global-catalog)')

    # Authentication parameters
    parser.add_argument('-u', '--username', help='Username for authentication')
    parser.add_argument('-p', '--password', help='Password for authentication')

    auth_group = parser.add_mutually_exclusive_group()
    auth_group.add_argument('--ntlm', action='store_true', help='Use NTLM authentication (default)')
    auth_group.add_argument('--ntlm-hash', metavar='HASH', help='Use Pass-the-Hash (format: LM:NT or just NT)')
    auth_group.add_argument('--kerberos', action='store_true', help='Use Kerberos authentication')
    auth_group.add_argument('--simple', action='store_true', help='Use SIMPLE bind')

    parser.add_argument('--ccache', help='Path to Kerberos credential cache')

    # Scan target, prompted for when missing
    parser.add_argument('--target-domain', help='Domain name the group path must contain')
    parser.add_argument('--group', help='Name of the group to scan')

    # Scan options
    parser.add_argument('--page-size', type=int, default=PAGE_SIZE, help='LDAP page size (default: %(default)s)')
    parser.add_argument('--progress-interval', type=int, default=PROGRESS_INTERVAL,
                        help='Report progress every N members, 0 disables (default: %(default)s)')

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose output')

    return parser, parser.parse_args(argv)


def determine_auth_method(args) -> str:
    """Determine which authentication method to use."""
    if args.ntlm_hash:
        return AuthenticationManager.AUTH_NTLM_HASH
    elif args.kerberos:
        return AuthenticationManager.AUTH_KERBEROS
    elif args.simple:
        return AuthenticationManager.AUTH_SIMPLE
    else:
        return AuthenticationManager.AUTH_NTLM


def validate_arguments(args, auth_method: str, parser) -> None:
    """Validate argument combinations."""
    if auth_method in (AuthenticationManager.AUTH_NTLM, AuthenticationManager.AUTH_SIMPLE):
        if not args.username or not args.password:
            parser.error(f"{auth_method} authentication requires --username and --password")

    elif auth_method == AuthenticationManager.AUTH_NTLM_HASH:
        if not args.username:
            parser.error("Pass-the-Hash requires --username")

    if args.page_size <= 0:
        parser.error("--page-size must be positive")

    if args.progress_interval < 0:
        parser.error("--progress-interval must not be negative")


def prompt_non_empty(prompt: str, retry: str, read: Callable[[], str] = input) -> str:
    """Ask for a value until a non-empty one is entered."""
    print(prompt)
    value = read()
    while not value:
        print(retry)
        value = read()
    return value


def get_target_domain_name(preset: Optional[str] = None, read: Callable[[], str] = input) -> str:
    if preset:
        return preset
    return prompt_non_empty("Please provide the target domain name:",
                            "Please provide a valid domain name.", read)


def get_target_group_name(preset: Optional[str] = None, read: Callable[[], str] = input) -> str:
    if preset:
        return preset
    return prompt_non_empty("Please provide the target group name that you want to search for invalid characters:",
                            "Please provide a valid group name.", read)


def perform_authentication(diagnostic: InvalidCharsDiagnostic, args, auth_method: str) -> None:
    """Perform authentication with the specified method."""
    auth_params = {
        'username': args.username,
        'password': args.password
    }

    if auth_method == AuthenticationManager.AUTH_NTLM_HASH:
        auth_params['nt_hash'] = args.ntlm_hash
        del auth_params['password']

    elif auth_method == AuthenticationManager.AUTH_KERBEROS:
        auth_params = {'ccache_path': args.ccache}

    diagnostic.authenticate(auth_method, **auth_params)


def report_progress(count: int):
    print(f"Scanned {count} users.")


def find_invalid_chars(diagnostic: InvalidCharsDiagnostic, domain_name: str, group_name: str,
                       progress_interval: int = PROGRESS_INTERVAL) -> int:
    """
    Resolve the target groups and scan each of them in turn.

    Returns:
        Number of findings reported
    """
    groups = diagnostic.resolve_groups(domain_name, group_name)

    for group_path in groups.values():
        print(f"Found matching group: {group_path} in domain: {domain_name}.")

    total = 0
    for rid, group_path in groups.items():
        print(f"Finding invalid characters in group: {group_path}.")

        scanner = GroupMemberScanner(progress_interval=progress_interval, on_progress=report_progress)
        for finding in diagnostic.scan_group(rid, scanner):
            print(f"Found invalid characters for Member DN:{finding.entry_dn}, "
                  f"property:{finding.property_name}, value:{finding.property_value}")
            total += 1

        logging.debug(f"Scanned {scanner.scanned} members of {group_path}")

    return total


def main(argv=None):
    """Main entry point."""
    parser, args = parse_arguments(argv)
    setup_logging(args.verbose)

    auth_method = determine_auth_method(args)
    validate_arguments(args, auth_method, parser)

    domain_name = get_target_domain_name(args.target_domain)
    group_name = get_target_group_name(args.group)

    diagnostic = InvalidCharsDiagnostic(
        dc_ip=args.dc_ip,
        domain=args.domain,
        dc_hostname=args.dc_hostname,
        use_ssl=args.use_ssl,
        global_catalog=args.global_catalog,
        base_dn=args.base_dn,
        page_size=args.page_size
    )

    try:
        perform_authentication(diagnostic, args, auth_method)

        total = find_invalid_chars(diagnostic, domain_name, group_name, args.progress_interval)
        logging.info(f"Found {total} properties with invalid characters")
        sys.exit(0)

    except NoSearchProviderError as e:
        logging.error(str(e))
        sys.exit(1)
    except NoGroupMatchError as e:
        print(f"Couldn't find group: {e.group_name} in domain: {e.domain_name}, please validate your inputs.")
        sys.exit(0)
    except InvalidCharsError as e:
        logging.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        logging.info("\nOperation cancelled by user")
        sys.exit(130)
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)
    finally:
        diagnostic.disconnect()


if __name__ == '__main__':
    main()
