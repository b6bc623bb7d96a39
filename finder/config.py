"""
Session and option construction for AWS Policy Finder.
"""
import boto3

from .models import ErrorPolicy, SearchOptions

POLICY_SCOPES = ('Local', 'AWS', 'All')


def create_session(profile_name=None, region_name=None):
    """
    Create a boto3 session from optional profile and region settings.

    Args:
        profile_name (str): AWS profile name
        region_name (str): AWS region name

    Returns:
        boto3.Session: Session using the default credential chain for unset values
    """
    session_kwargs = {}
    if profile_name:
        session_kwargs['profile_name'] = profile_name
    if region_name:
        session_kwargs['region_name'] = region_name

    return boto3.Session(**session_kwargs)


def options_from_args(args):
    """Build SearchOptions from parsed command line arguments."""
    return SearchOptions(
        action=args.action,
        resource=args.resource,
        scope=args.scope,
        only_attached=args.only_attached,
        all_versions=args.all_versions,
        on_error=ErrorPolicy(args.on_error),
    )
