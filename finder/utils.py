"""
Utility functions for AWS Policy Finder.
"""
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ApiCallError


def _api_error(operation_name, e):
    if isinstance(e, ClientError):
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))
        return ApiCallError(operation_name, error_code, error_message)
    return ApiCallError(operation_name, type(e).__name__, str(e))


def safe_api_call(client, operation_name, **kwargs):
    """
    Make an AWS API call safely, handling exceptions.

    Args:
        client: Boto3 client object
        operation_name (str): Name of the operation to call
        **kwargs: Arguments to pass to the operation

    Returns:
        tuple: (result, error) where error is an ApiCallError or None
    """
    try:
        method = getattr(client, operation_name)
        result = method(**kwargs)
        return result, None
    except (ClientError, BotoCoreError) as e:
        return None, _api_error(operation_name, e)


def paginate(client, operation_name, **kwargs):
    """
    Iterate the pages of an IAM listing through the client's paginator.

    Args:
        client: Boto3 IAM client
        operation_name (str): Listing operation, e.g. 'list_policies'
        **kwargs: Request parameters other than Marker

    Yields:
        dict: Raw response pages in server order

    Raises:
        ApiCallError: If any page request fails. Pages already yielded stay valid.
    """
    paginator = client.get_paginator(operation_name)
    try:
        yield from paginator.paginate(**kwargs)
    except (ClientError, BotoCoreError) as e:
        raise _api_error(operation_name, e) from e
