"""
Records that flow through the policy search pipeline.

Every record is an immutable NamedTuple built from a boto3 IAM response.
Nothing is cached past a single run.
"""
from enum import Enum
from typing import NamedTuple, Optional


class ErrorPolicy(Enum):
    """What a stage does after a per-item failure."""

    SKIP = "skip"
    HALT = "halt"


class Decision(Enum):
    """Evaluation decision returned by SimulateCustomPolicy."""

    ALLOWED = "allowed"
    IMPLICIT_DENY = "implicitDeny"
    EXPLICIT_DENY = "explicitDeny"


class AttachmentKind(Enum):
    GROUP = "group"
    ROLE = "role"
    USER = "user"


class Policy(NamedTuple):
    """A managed policy as returned by ListPolicies."""

    arn: str
    name: str
    path: str = "/"
    default_version_id: Optional[str] = None

    @classmethod
    def from_response(cls, item):
        return cls(
            arn=item["Arn"],
            name=item.get("PolicyName", ""),
            path=item.get("Path", "/"),
            default_version_id=item.get("DefaultVersionId"),
        )

    @property
    def scope(self):
        # arn:aws:iam::aws:policy/... marks an AWS managed policy
        parts = self.arn.split(":")
        if len(parts) > 4 and parts[4] == "aws":
            return "AWS"
        return "Local"


class PolicyVersion(NamedTuple):
    version_id: str
    is_default: bool = False

    @classmethod
    def from_response(cls, item):
        return cls(version_id=item["VersionId"], is_default=bool(item.get("IsDefaultVersion", False)))


class User(NamedTuple):
    name: str
    user_id: Optional[str] = None
    arn: Optional[str] = None

    @classmethod
    def from_response(cls, item):
        return cls(name=item["UserName"], user_id=item.get("UserId"), arn=item.get("Arn"))


class VersionTask(NamedTuple):
    """A policy version waiting for its document to be fetched."""

    policy: Policy
    version: PolicyVersion


class InlineTask(NamedTuple):
    """A user inline policy waiting for its document to be fetched."""

    user: User
    policy_name: str


class ManagedPolicyInfo(NamedTuple):
    arn: str
    name: str
    path: str
    version_id: str
    document: str

    @property
    def kind(self):
        return "managed"


class InlinePolicyInfo(NamedTuple):
    user_name: str
    policy_name: str
    document: str

    # Inline policies are not independently addressable
    arn = None

    @property
    def kind(self):
        return "inline"


class AttachmentTarget(NamedTuple):
    """A principal a managed policy is attached to."""

    kind: AttachmentKind
    name: str
    id: str


class SearchOptions(NamedTuple):
    """Parameters of a single resource search."""

    action: str
    resource: str
    scope: str = "Local"
    only_attached: bool = False
    all_versions: bool = False
    on_error: ErrorPolicy = ErrorPolicy.SKIP
