"""Authorization guard — one policy table for every role/team check.

Roles are ordered admin > manager > member; a higher role can do anything a
lower role can. Each action names the minimum role and whether it is scoped
to a team. Team-scoped actions require the actor to belong to the target
team, except for admins, who act across all teams.

authorize() is a pure predicate: it only looks at the actor's role and
team_id and at the target team id. It never queries the database.
"""

from taskboard.errors import Forbidden, Unauthenticated

ADMIN = "admin"
MANAGER = "manager"
MEMBER = "member"

ROLES = (ADMIN, MANAGER, MEMBER)

ROLE_RANK = {
    MEMBER: 1,
    MANAGER: 2,
    ADMIN: 3,
}

# Scopes
TEAM = "team"
GLOBAL = "global"


class DenialReason:
    UNAUTHENTICATED = "unauthenticated"
    INSUFFICIENT_ROLE = "insufficient_role"
    WRONG_TEAM_SCOPE = "wrong_team_scope"


# action -> (minimum role, scope)
POLICY = {
    # --- Teams ---
    "team.read": (MEMBER, TEAM),
    "team.update": (MANAGER, TEAM),
    "team.manage_members": (MANAGER, TEAM),
    "team.list_all": (ADMIN, GLOBAL),
    "team.create": (ADMIN, GLOBAL),
    "team.delete": (ADMIN, GLOBAL),
    # --- Boards ---
    "board.read": (MEMBER, TEAM),
    "board.create": (MANAGER, TEAM),
    "board.update": (MANAGER, TEAM),
    "board.delete": (MANAGER, TEAM),
    # --- Lists ---
    "list.read": (MEMBER, TEAM),
    "list.create": (MANAGER, TEAM),
    "list.update": (MANAGER, TEAM),
    "list.delete": (MANAGER, TEAM),
    "list.reorder": (MANAGER, TEAM),
    # --- Tasks ---
    "task.read": (MEMBER, TEAM),
    "task.complete": (MEMBER, TEAM),
    "task.create": (MANAGER, TEAM),
    "task.update": (MANAGER, TEAM),
    "task.move": (MANAGER, TEAM),
    "task.assign": (MANAGER, TEAM),
    "task.delete": (MANAGER, TEAM),
    "task.award": (MANAGER, TEAM),
    # --- Points ---
    "points.read": (MEMBER, GLOBAL),
    "points.award": (ADMIN, GLOBAL),
    "leaderboard.read": (MEMBER, GLOBAL),
    # --- Shop ---
    "shop.read": (MEMBER, GLOBAL),
    "shop.redeem": (MEMBER, GLOBAL),
    "shop.manage": (ADMIN, GLOBAL),
    # --- Users ---
    "user.manage": (ADMIN, GLOBAL),
}


class Decision:
    """Outcome of authorize(). Truthy when allowed."""

    __slots__ = ("allowed", "reason")

    def __init__(self, allowed, reason=None):
        self.allowed = allowed
        self.reason = reason

    def __bool__(self):
        return self.allowed

    def __eq__(self, other):
        if not isinstance(other, Decision):
            return NotImplemented
        return (self.allowed, self.reason) == (other.allowed, other.reason)

    def __repr__(self):
        if self.allowed:
            return "<Decision allowed>"
        return f"<Decision denied ({self.reason})>"


ALLOWED = Decision(True)


def role_rank(role):
    """Rank of a role name; unknown roles rank below member."""
    return ROLE_RANK.get(role, 0)


def is_at_least(role, minimum):
    return role_rank(role) >= role_rank(minimum)


def _is_authenticated(actor):
    if actor is None:
        return False
    return bool(getattr(actor, "is_authenticated", True))


def authorize(actor, action, target_team_id=None):
    """Decide whether `actor` may perform `action` on a resource of a team.

    Args:
        actor: Object with `role` and `team_id` attributes (a User, or None
            / an anonymous user for unauthenticated callers).
        action: Key of POLICY, e.g. "task.complete".
        target_team_id: Team owning the resource. Required for team-scoped
            actions; ignored for global ones.

    Returns:
        Decision — ALLOWED or a denial carrying a DenialReason.

    Raises:
        KeyError: If the action is not in the policy table.
    """
    minimum, scope = POLICY[action]

    if not _is_authenticated(actor):
        return Decision(False, DenialReason.UNAUTHENTICATED)

    role = getattr(actor, "role", None)
    if not is_at_least(role, minimum):
        return Decision(False, DenialReason.INSUFFICIENT_ROLE)

    if scope == TEAM and role != ADMIN:
        actor_team_id = getattr(actor, "team_id", None)
        if (
            actor_team_id is None
            or target_team_id is None
            or actor_team_id != target_team_id
        ):
            return Decision(False, DenialReason.WRONG_TEAM_SCOPE)

    return ALLOWED


def require(actor, action, target_team_id=None):
    """Like authorize(), but raise the matching typed error on denial."""
    decision = authorize(actor, action, target_team_id)
    if decision:
        return decision
    if decision.reason == DenialReason.UNAUTHENTICATED:
        raise Unauthenticated()
    if decision.reason == DenialReason.WRONG_TEAM_SCOPE:
        raise Forbidden(
            "This resource belongs to a different team.",
            reason=decision.reason,
        )
    raise Forbidden(
        f"Your role does not allow '{action}'.",
        reason=decision.reason,
    )
