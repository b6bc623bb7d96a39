"""
Paginated IAM enumeration stages.

Each function is a generator that can run as a pipeline stage. Listing
errors are logged and end the listing they occurred in; nothing is retried.
"""
import logging

from .errors import ApiCallError
from .models import (
    AttachmentKind,
    AttachmentTarget,
    ErrorPolicy,
    InlineTask,
    Policy,
    PolicyVersion,
    User,
    VersionTask,
)
from .utils import paginate

logger = logging.getLogger(__name__)


def list_policies(client, scope="Local", only_attached=False):
    """
    Enumerate managed policies in the account.

    Args:
        client: Boto3 IAM client
        scope (str): 'Local' (customer managed), 'AWS' or 'All'
        only_attached (bool): Only list policies attached to a principal

    Yields:
        Policy: One record per listed policy, in server order
    """
    params = {'Scope': scope}
    if only_attached:
        params['OnlyAttached'] = True

    try:
        for page in paginate(client, 'list_policies', **params):
            for item in page.get('Policies', []):
                yield Policy.from_response(item)
    except ApiCallError as e:
        logger.error("error listing policies: %s", e)


def resolve_policy_versions(client, policies, all_versions=False, on_error=ErrorPolicy.SKIP):
    """
    Expand each policy into the versions whose documents should be evaluated.

    Only the default version is emitted unless all_versions is set, since
    non-default versions have no effect on current permissions.

    Args:
        client: Boto3 IAM client
        policies: Iterable of Policy
        all_versions (bool): Emit every listed version
        on_error (ErrorPolicy): SKIP moves on to the next policy, HALT ends the stage

    Yields:
        VersionTask: One per selected (policy, version) pair
    """
    for policy in policies:
        try:
            for page in paginate(client, 'list_policy_versions', PolicyArn=policy.arn):
                for item in page.get('Versions', []):
                    version = PolicyVersion.from_response(item)
                    if all_versions or version.is_default:
                        yield VersionTask(policy, version)
        except ApiCallError as e:
            logger.error("error listing policy versions for %s: %s", policy.arn, e)
            if on_error is ErrorPolicy.HALT:
                return


def list_users(client):
    """Enumerate IAM users in the account."""
    try:
        for page in paginate(client, 'list_users'):
            for item in page.get('Users', []):
                yield User.from_response(item)
    except ApiCallError as e:
        logger.error("error listing users: %s", e)


def resolve_user_policies(client, users, on_error=ErrorPolicy.SKIP):
    """
    Expand each user into the names of its inline policies.

    Yields:
        InlineTask: One per (user, policy name) pair
    """
    for user in users:
        try:
            for page in paginate(client, 'list_user_policies', UserName=user.name):
                for policy_name in page.get('PolicyNames', []):
                    yield InlineTask(user, policy_name)
        except ApiCallError as e:
            logger.error("error listing user policies for %s: %s", user.name, e)
            if on_error is ErrorPolicy.HALT:
                return


def list_attached_entities(client, policy_arn):
    """
    Enumerate the groups, roles and users a managed policy is attached to.

    Within each page, groups come first, then roles, then users.

    Args:
        client: Boto3 IAM client
        policy_arn (str): ARN of the managed policy

    Yields:
        AttachmentTarget: One per attached principal
    """
    try:
        for page in paginate(client, 'list_entities_for_policy', PolicyArn=policy_arn):
            for group in page.get('PolicyGroups', []):
                yield AttachmentTarget(AttachmentKind.GROUP, group['GroupName'], group.get('GroupId', ''))
            for role in page.get('PolicyRoles', []):
                yield AttachmentTarget(AttachmentKind.ROLE, role['RoleName'], role.get('RoleId', ''))
            for user in page.get('PolicyUsers', []):
                yield AttachmentTarget(AttachmentKind.USER, user['UserName'], user.get('UserId', ''))
    except ApiCallError as e:
        logger.error("error trying to list entities for policy %s: %s", policy_arn, e)
