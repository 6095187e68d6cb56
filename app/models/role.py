"""Actor role enum for role-based access control."""

from enum import Enum as PyEnum


class ActorRole(str, PyEnum):
    """
    Closed set of roles carried by the session token.

    Roles:
    1. ADMINISTRATOR - Platform staff, not bound to any agency. Every policy
       check short-circuits to Allow.
    2. TENANT_WORKER - Caseworker at one agency. Sees and edits records owned
       by that agency, subject to per-resource rules.
    3. RESTRICTED - Visitor or suspended account. Every policy check
       short-circuits to Deny without loading data.
    """

    ADMINISTRATOR = "administrator"
    TENANT_WORKER = "tenant_worker"
    RESTRICTED = "restricted"
