"""
Exception types raised by the policy search pipeline.
"""


class FinderError(Exception):
    """Base class for all policy finder errors."""


class ApiCallError(FinderError):
    """An IAM API call failed."""

    def __init__(self, operation, code, message):
        super().__init__(f"{code}: {message}")
        self.operation = operation
        self.code = code
        self.message = message


class PolicyDecodeError(FinderError):
    """A policy document could not be decoded from its transport encoding."""


class SimulationError(FinderError):
    """A policy simulation did not produce a usable decision."""


class PipelineError(FinderError):
    """One or more pipeline stages stopped on an unexpected exception."""

    def __init__(self, failures):
        names = ", ".join(failure.stage for failure in failures)
        super().__init__(f"pipeline stage(s) failed: {names}")
        self.failures = list(failures)
