"""
Permissions and Roles Configuration
This config defines the permission catalog and the default role bundles.
Used by the seed script and the admin seeding endpoint to populate roles and permissions.
"""

# Capability catalog grouped by category
CATEGORIES = {
    "view": {
        "view_dashboard": ("View Dashboard", "View the main dashboard"),
        "view_data": ("View Data", "View institutional performance data"),
        "view_audit_log": ("View Audit Log", "View system audit trail"),
    },
    "export": {
        "export_reports": ("Export Reports", "Export data to Excel and PDF"),
    },
    "edit": {
        "submit_data": ("Submit Data", "Submit monthly performance data"),
    },
    "admin": {
        "manage_users": ("Manage Users", "Create, edit, and deactivate users"),
        "manage_roles": ("Manage Roles", "Create, edit, and delete roles"),
    },
}

# Default role bundles, in creation order
DEFAULT_ROLES = [
    {
        "name": "Executive",
        "description": "Executive leadership with full system access",
        "permissions": [
            "view_dashboard",
            "view_data",
            "export_reports",
            "manage_users",
            "manage_roles",
            "view_audit_log",
        ],
    },
    {
        "name": "Institution Lead",
        "description": "Lead for a specific institution",
        "permissions": ["view_dashboard", "view_data", "export_reports", "submit_data"],
    },
    {
        "name": "Data Analyst",
        "description": "Analyst with data viewing and export capabilities",
        "permissions": ["view_dashboard", "view_data", "export_reports"],
    },
    {
        "name": "Viewer",
        "description": "Read-only access to dashboard and reports",
        "permissions": ["view_dashboard"],
    },
]


def get_permission_catalog():
    """
    Returns the flattened permission catalog
    Format: [
        {"code": "view_dashboard", "name": "View Dashboard", "description": "...", "category": "view"},
        ...
    ]
    """
    permissions = []
    for category, entries in CATEGORIES.items():
        for code, (name, description) in entries.items():
            permissions.append({
                "code": code,
                "name": name,
                "description": description,
                "category": category
            })
    return permissions


PERMISSION_CATALOG = get_permission_catalog()
PERMISSION_CODES = frozenset(p["code"] for p in PERMISSION_CATALOG)
