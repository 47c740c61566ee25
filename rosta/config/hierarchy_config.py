"""
Hierarchy Rules Configuration
Defines what each hierarchy level may do inside an organisation.
Used by the hierarchy service for invite checks and for default permission flags
when a team member has no explicit permissions row.
"""

# Seniority order, most senior first. Index in this tuple is the level's rank.
HIERARCHY_ORDER = ("employer", "gm", "agm", "shift_leader", "worker")

# Scope values for rota and venue management
SCOPE_ALL = "all"
SCOPE_SCOPED = "scoped"
SCOPE_NONE = "none"

# Per-level rules
HIERARCHY_RULES = {
    "employer": {
        "can_invite": ("gm", "agm", "shift_leader", "worker"),
        "can_edit_rota": SCOPE_ALL,
        "can_manage_venue": SCOPE_ALL,
        "description": "Organisation owner"
    },
    "gm": {
        "can_invite": ("agm", "shift_leader"),
        "can_edit_rota": SCOPE_ALL,
        "can_manage_venue": SCOPE_SCOPED,
        "description": "General manager"
    },
    "agm": {
        "can_invite": ("shift_leader", "worker"),
        "can_edit_rota": SCOPE_SCOPED,
        "can_manage_venue": SCOPE_SCOPED,
        "description": "Assistant general manager"
    },
    "shift_leader": {
        "can_invite": ("worker",),
        "can_edit_rota": SCOPE_NONE,
        "can_manage_venue": SCOPE_NONE,
        "description": "Shift leader"
    },
    "worker": {
        "can_invite": (),
        "can_edit_rota": SCOPE_NONE,
        "can_manage_venue": SCOPE_NONE,
        "description": "Worker"
    },
}

# Permission flags stored per team member in the permissions table
PERMISSION_FLAGS = (
    "can_edit_rota",
    "can_invite_managers",
    "can_invite_workers",
    "can_approve_timesheets",
    "can_view_cross_branch_analytics",
    "can_manage_venue_settings",
)


def default_permissions(level: str) -> dict:
    """
    Permission flags a level gets when no explicit permissions row exists.
    Flags without a level rule (timesheets, analytics) default to False.
    Unknown levels get the worker defaults.
    """
    rules = HIERARCHY_RULES.get(level, HIERARCHY_RULES[HIERARCHY_ORDER[-1]])
    return {
        "can_edit_rota": rules["can_edit_rota"] != SCOPE_NONE,
        "can_invite_managers": "gm" in rules["can_invite"],
        "can_invite_workers": "worker" in rules["can_invite"],
        "can_approve_timesheets": False,
        "can_view_cross_branch_analytics": False,
        "can_manage_venue_settings": rules["can_manage_venue"] != SCOPE_NONE,
    }


def get_rules_matrix():
    """
    Returns the rules for every level in seniority order
    Format: [
        {
            "level": "employer",
            "rank": 0,
            "description": "...",
            "can_invite": ["gm", ...],
            "can_edit_rota": "all",
            "can_manage_venue": "all",
            "default_permissions": {"can_edit_rota": True, ...}
        },
        ...
    ]
    """
    matrix = []
    for rank, level in enumerate(HIERARCHY_ORDER):
        rules = HIERARCHY_RULES[level]
        matrix.append({
            "level": level,
            "rank": rank,
            "description": rules["description"],
            "can_invite": list(rules["can_invite"]),
            "can_edit_rota": rules["can_edit_rota"],
            "can_manage_venue": rules["can_manage_venue"],
            "default_permissions": default_permissions(level)
        })
    return matrix


RULES_MATRIX = get_rules_matrix()
