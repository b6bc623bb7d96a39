"""
Policy document retrieval and transport decoding.
"""
import json
import logging
import re
from urllib.parse import unquote_plus

from .errors import ApiCallError, PolicyDecodeError
from .models import ErrorPolicy, InlinePolicyInfo, ManagedPolicyInfo
from .utils import safe_api_call

logger = logging.getLogger(__name__)

# A '%' that does not start a two digit hex escape
_BAD_ESCAPE = re.compile(r'%(?![0-9A-Fa-f]{2})')


def decode_document(document):
    """
    Decode a policy document into the JSON text expected by the simulator.

    IAM returns documents URL query encoded. boto3 normally decodes them into
    a dict already, in which case the dict is serialized back to JSON.

    Args:
        document (str | dict): Encoded document text or decoded document

    Returns:
        str: Plain JSON policy text

    Raises:
        PolicyDecodeError: If the payload is empty or not valid encoded text
    """
    if isinstance(document, dict):
        return json.dumps(document)
    if not isinstance(document, str) or not document:
        raise PolicyDecodeError("empty policy document")

    bad = _BAD_ESCAPE.search(document)
    if bad:
        raise PolicyDecodeError(f"invalid URL escape {document[bad.start():bad.start() + 3]!r}")
    try:
        return unquote_plus(document, errors='strict')
    except UnicodeDecodeError as e:
        raise PolicyDecodeError(f"invalid UTF-8 in policy document: {e}") from e


def fetch_policy_documents(client, tasks, on_error=ErrorPolicy.SKIP):
    """
    Fetch and decode the document of each managed policy version.

    Args:
        client: Boto3 IAM client
        tasks: Iterable of VersionTask
        on_error (ErrorPolicy): SKIP drops the failing item, HALT ends the stage

    Yields:
        ManagedPolicyInfo: One per successfully decoded document
    """
    for task in tasks:
        policy, version = task
        try:
            response, error = safe_api_call(
                client, 'get_policy_version',
                PolicyArn=policy.arn,
                VersionId=version.version_id,
            )
            if error:
                raise error
            policy_version = response['PolicyVersion']
            document = decode_document(policy_version.get('Document'))
        except ApiCallError as e:
            logger.error("error getting policy version %s %s: %s", policy.arn, version.version_id, e)
        except PolicyDecodeError as e:
            logger.error("%s %s error=unable to decode policy document %s", policy.arn, version.version_id, e)
        else:
            yield ManagedPolicyInfo(
                arn=policy.arn,
                name=policy.name,
                path=policy.path,
                version_id=policy_version.get('VersionId', version.version_id),
                document=document,
            )
            continue

        if on_error is ErrorPolicy.HALT:
            return


def fetch_user_policy_documents(client, tasks, on_error=ErrorPolicy.SKIP):
    """
    Fetch and decode the document of each user inline policy.

    Yields:
        InlinePolicyInfo: One per successfully decoded document
    """
    for task in tasks:
        user, policy_name = task
        try:
            response, error = safe_api_call(
                client, 'get_user_policy',
                UserName=user.name,
                PolicyName=policy_name,
            )
            if error:
                raise error
            document = decode_document(response.get('PolicyDocument'))
        except ApiCallError as e:
            logger.error("error getting user policy %s %s: %s", user.name, policy_name, e)
        except PolicyDecodeError as e:
            logger.error("%s %s error=unable to decode user policy document %s", user.name, policy_name, e)
        else:
            yield InlinePolicyInfo(
                user_name=response.get('UserName', user.name),
                policy_name=response.get('PolicyName', policy_name),
                document=document,
            )
            continue

        if on_error is ErrorPolicy.HALT:
            return
