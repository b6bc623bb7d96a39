#!/usr/bin/env python3
"""
AWS Policy Finder - Find the IAM policies that allow an action on a resource.
"""
import argparse
import sys

from rich.markup import escape

from finder.config import POLICY_SCOPES, create_session, options_from_args
from finder.models import ErrorPolicy
from finder.report import Reporter, configure_logging, console
from finder.search import MODES


def build_parser():
    parser = argparse.ArgumentParser(
        description='AWS Policy Finder - Find the IAM policies that allow an action on a resource',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Which customer managed and user inline policies allow reading an object?
  python policy_finder.py s3:GetObject arn:aws:s3:::bucket/key

  # Use a named profile and include every policy version
  python policy_finder.py --profile dev --all-versions s3:GetObject arn:aws:s3:::bucket/key

Note: Policies attached to groups and roles are reported as attachment targets only,
their inline policies are not evaluated.
'''
    )

    parser.add_argument('action', help='Action to evaluate, e.g. s3:GetObject')
    parser.add_argument('resource', help='Resource ARN to evaluate, e.g. arn:aws:s3:::bucket/key')
    parser.add_argument('--mode', choices=sorted(MODES), default='resource', help='Search mode (default: resource)')
    parser.add_argument('--profile', type=str, help='AWS profile name')
    parser.add_argument('--region', type=str, help='AWS region name')
    parser.add_argument('--scope', choices=POLICY_SCOPES, default='Local',
                        help='Managed policies to list (default: Local, customer managed only)')
    parser.add_argument('--only-attached', action='store_true', help='Only list managed policies attached to a principal')
    parser.add_argument('--all-versions', action='store_true',
                        help='Evaluate every policy version, not only the default version')
    parser.add_argument('--on-error', choices=[policy.value for policy in ErrorPolicy], default=ErrorPolicy.SKIP.value,
                        help='Skip a failing policy or stop that pipeline stage (default: skip)')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose output')
    return parser


def main(argv=None):
    """Main entry point for AWS Policy Finder"""
    parser = build_parser()
    argv = sys.argv[1:] if argv is None else argv

    # If no arguments provided, print help and exit
    if not argv:
        parser.print_help()
        return 0

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        options = options_from_args(args)
        session = create_session(args.profile, args.region)
        client = session.client('iam')

        MODES[args.mode](client, options, Reporter())

    except KeyboardInterrupt:
        console.print("\nOperation cancelled by user.")
        return 1
    except Exception as e:
        console.print(f"\n[red]Error:[/red] {escape(str(e))}", highlight=False, emoji=False)
        if args.verbose:
            console.print_exception()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
