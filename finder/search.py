"""
Search for the identity policies that allow an action on a resource.
"""
import logging

from .documents import fetch_policy_documents, fetch_user_policy_documents
from .enumerators import list_policies, list_users, resolve_policy_versions, resolve_user_policies
from .evaluator import Evaluator
from .pipeline import Pipeline
from .report import Reporter

logger = logging.getLogger(__name__)


def search_resource(client, options, reporter=None):
    """
    Report every customer managed policy and user inline policy that allows
    options.action on options.resource.

    Managed policies and user inline policies are discovered on two
    independent branches and evaluated as they arrive, so output order
    across the two kinds is not defined.

    Args:
        client: Boto3 IAM client
        options (SearchOptions): Action, resource and enumeration settings
        reporter (Reporter): Output target (default: console reporter)

    Returns:
        Evaluator: The evaluator, holding evaluated/allowed counts
    """
    reporter = reporter or Reporter()
    evaluator = Evaluator(client, options.action, options.resource, reporter)
    reporter.header(options.action, options.resource)

    with Pipeline() as pipeline:
        policies = pipeline.add(
            "list-policies", list_policies, client,
            scope=options.scope, only_attached=options.only_attached,
        )
        versions = pipeline.add(
            "list-policy-versions", resolve_policy_versions, client, policies,
            all_versions=options.all_versions, on_error=options.on_error,
        )
        managed = pipeline.add(
            "get-policy-version", fetch_policy_documents, client, versions, on_error=options.on_error,
        )

        users = pipeline.add("list-users", list_users, client)
        user_policies = pipeline.add(
            "list-user-policies", resolve_user_policies, client, users, on_error=options.on_error,
        )
        inline = pipeline.add(
            "get-user-policy", fetch_user_policy_documents, client, user_policies, on_error=options.on_error,
        )

        for info in pipeline.merge("policy-documents", managed, inline):
            evaluator.evaluate(info)

    logger.debug("evaluated %d policies, %d allowed", evaluator.evaluated, evaluator.allowed)
    return evaluator


# Search modes selectable from the command line
MODES = {
    'resource': search_resource,
}
