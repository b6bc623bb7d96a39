"""Test configuration and an in-memory IAM client for pipeline tests."""

import io
import json
import os
import sys
import threading
from urllib.parse import quote

import pytest
from botocore.exceptions import ClientError
from rich.console import Console

# Make the project root importable without installing it
PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from finder.report import Reporter  # noqa: E402

ACCOUNT_ID = "123456789012"
ACTION = "s3:GetObject"
RESOURCE = "arn:aws:s3:::bucket/key"


def policy_document(effect="Allow", action=ACTION, resource="arn:aws:s3:::bucket/*"):
    return {
        "Version": "2012-10-17",
        "Statement": [{"Effect": effect, "Action": action, "Resource": resource}],
    }


def client_error(code="Throttling", message="Rate exceeded", operation="ListPolicies"):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakePaginator:
    """Follows IsTruncated/Marker through a FakeIAMClient listing, as botocore does."""

    def __init__(self, method):
        self.method = method

    def paginate(self, **params):
        request = dict(params)
        while True:
            page = self.method(**request)
            yield page
            if not page.get("IsTruncated"):
                return
            request = dict(params, Marker=page["Marker"])


class FakeIAMClient:
    """IAM client double serving fixtures one page at a time.

    Listings are split into pages of ``page_size`` items with opaque markers,
    documents are returned percent-encoded as on the wire, and simulation
    decisions are looked up by decoded document text. Safe to share between
    pipeline threads.
    """

    def __init__(self, page_size=1):
        self.page_size = page_size
        self.policies = []
        self.versions = {}
        self.documents = {}
        self.users = []
        self.user_policies = {}
        self.user_documents = {}
        self.decisions = {}
        self.entities = {}
        self.failures = {}
        self.calls = []
        self._lock = threading.Lock()

    # fixture builders

    def add_managed_policy(self, name, versions, default=None, attachments=()):
        """Register a policy; versions maps version id to document (dict or raw text)."""
        arn = f"arn:aws:iam::{ACCOUNT_ID}:policy/{name}"
        default = default or list(versions)[-1]
        self.policies.append({"PolicyName": name, "Arn": arn, "Path": "/", "DefaultVersionId": default})
        self.versions[arn] = [
            {"VersionId": version_id, "IsDefaultVersion": version_id == default} for version_id in versions
        ]
        for version_id, document in versions.items():
            self.documents[(arn, version_id)] = self._encode(document)
        self.entities[arn] = list(attachments)
        return arn

    def add_user(self, name, policies=None):
        self.users.append({"UserName": name, "UserId": f"AIDA{name.upper()}", "Arn": f"arn:aws:iam::{ACCOUNT_ID}:user/{name}"})
        self.user_policies[name] = list(policies or {})
        for policy_name, document in (policies or {}).items():
            self.user_documents[(name, policy_name)] = self._encode(document)

    def decide(self, document, decision):
        """Set the simulation decision for a document; None returns no results."""
        self.decisions[json.dumps(document)] = decision

    def fail(self, operation, when=lambda params: True, error=None):
        self.failures[operation] = (when, error or client_error(operation=operation))

    def operations(self, name):
        with self._lock:
            return [params for operation, params in self.calls if operation == name]

    @staticmethod
    def _encode(document):
        if isinstance(document, str):
            return document
        return quote(json.dumps(document))

    def _record(self, operation, params):
        with self._lock:
            self.calls.append((operation, dict(params)))
        if operation in self.failures:
            when, error = self.failures[operation]
            if when(params):
                raise error

    def _page(self, operation, key, items, params):
        self._record(operation, params)
        start = int(params["Marker"].rsplit(":", 1)[1]) if "Marker" in params else 0
        end = start + self.page_size
        page = {key: items[start:end], "IsTruncated": end < len(items)}
        if page["IsTruncated"]:
            page["Marker"] = f"{operation}:{end}"
        return page

    # IAM API surface

    def get_paginator(self, operation_name):
        return FakePaginator(getattr(self, operation_name))

    def list_policies(self, **params):
        return self._page("list_policies", "Policies", self.policies, params)

    def list_policy_versions(self, **params):
        return self._page("list_policy_versions", "Versions", self.versions[params["PolicyArn"]], params)

    def get_policy_version(self, **params):
        self._record("get_policy_version", params)
        document = self.documents[(params["PolicyArn"], params["VersionId"])]
        return {"PolicyVersion": {"Document": document, "VersionId": params["VersionId"]}}

    def list_users(self, **params):
        return self._page("list_users", "Users", self.users, params)

    def list_user_policies(self, **params):
        return self._page("list_user_policies", "PolicyNames", self.user_policies[params["UserName"]], params)

    def get_user_policy(self, **params):
        self._record("get_user_policy", params)
        document = self.user_documents[(params["UserName"], params["PolicyName"])]
        return {"UserName": params["UserName"], "PolicyName": params["PolicyName"], "PolicyDocument": document}

    def simulate_custom_policy(self, **params):
        self._record("simulate_custom_policy", params)
        decision = self.decisions.get(params["PolicyInputList"][0], "implicitDeny")
        if decision is None:
            return {"EvaluationResults": [], "IsTruncated": False}
        result = {
            "EvalActionName": params["ActionNames"][0],
            "EvalResourceName": params["ResourceArns"][0],
            "EvalDecision": decision,
        }
        return {"EvaluationResults": [result], "IsTruncated": False}

    def list_entities_for_policy(self, **params):
        self._record("list_entities_for_policy", params)
        pages = self.entities.get(params["PolicyArn"]) or [{}]
        index = int(params["Marker"].rsplit(":", 1)[1]) if "Marker" in params else 0
        page = {"PolicyGroups": [], "PolicyRoles": [], "PolicyUsers": []}
        page.update(pages[index])
        page["IsTruncated"] = index + 1 < len(pages)
        if page["IsTruncated"]:
            page["Marker"] = f"list_entities_for_policy:{index + 1}"
        return page


@pytest.fixture
def iam():
    return FakeIAMClient()


@pytest.fixture
def output():
    """A Reporter writing plain text to an in-memory buffer."""
    buffer = io.StringIO()
    reporter = Reporter(Console(file=buffer, width=300, color_system=None))
    reporter.lines = lambda: buffer.getvalue().splitlines()
    return reporter
