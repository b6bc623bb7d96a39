"""
Policy simulation and reporting of permitting policies.
"""
import logging

from .enumerators import list_attached_entities
from .errors import SimulationError
from .models import Decision, ManagedPolicyInfo
from .utils import safe_api_call

logger = logging.getLogger(__name__)


def simulate(client, action, resource, document):
    """
    Simulate a single policy document against one action and one resource.

    Args:
        client: Boto3 IAM client
        action (str): Action name, e.g. 's3:GetObject'
        resource (str): Resource ARN
        document (str): Decoded policy document JSON

    Returns:
        Decision: Decision of the first evaluation result

    Raises:
        SimulationError: If the call fails or returns no usable result
    """
    response, error = safe_api_call(
        client, 'simulate_custom_policy',
        ActionNames=[action],
        ResourceArns=[resource],
        PolicyInputList=[document],
    )
    if error:
        raise SimulationError(str(error)) from error

    results = response.get('EvaluationResults') or []
    if not results:
        raise SimulationError("simulation returned no evaluation results")

    decision = results[0].get('EvalDecision')
    try:
        return Decision(decision)
    except ValueError:
        raise SimulationError(f"unknown evaluation decision {decision!r}") from None


class Evaluator:
    """Simulates each incoming policy and reports the ones that allow the request."""

    def __init__(self, client, action, resource, reporter):
        self.client = client
        self.action = action
        self.resource = resource
        self.reporter = reporter
        self.evaluated = 0
        self.allowed = 0

    def evaluate(self, info):
        """
        Simulate one policy and report it if it allows the request.

        A failed simulation is reported together with its error so it is not
        mistaken for a deny.

        Args:
            info (ManagedPolicyInfo | InlinePolicyInfo): Policy to evaluate

        Returns:
            bool: True if the policy was reported
        """
        self.evaluated += 1
        error = None
        try:
            decision = simulate(self.client, self.action, self.resource, info.document)
        except SimulationError as e:
            decision, error = None, e

        if error is None and decision is not Decision.ALLOWED:
            logger.debug("%s policy %s: %s", info.kind, info.arn or info.policy_name, decision.value)
            return False

        if decision is Decision.ALLOWED:
            self.allowed += 1
        if isinstance(info, ManagedPolicyInfo):
            self.reporter.managed_policy(info, error)
            for target in list_attached_entities(self.client, info.arn):
                self.reporter.attachment(target)
        else:
            self.reporter.inline_policy(info, error)
        return True
