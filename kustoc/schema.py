"""
Declarative Schema Definition: the single source of truth.

Every table, column and index for Kustoc lives here. Nothing else defines
schema. The schema_engine reads this and converges any database to match;
versioned data migrations live in kustoc.migrations.

Adding a column = add one line here. The engine handles the rest.

Column definitions use CREATE TABLE syntax. The schema_engine knows how
to derive ALTER TABLE ADD COLUMN DDL (strips PK, REFERENCES, adjusts NOT NULL).

Foreign keys carry their delete policy inline:
  ON DELETE CASCADE   composition (the child has no meaning without the parent)
  ON DELETE RESTRICT  reference (the parent cannot go while something points at it)
kustoc.integrity parses these clauses to build its relation graph.
"""

from collections import OrderedDict

# =============================================================================
# Schema version: bump when you change this file
# =============================================================================
SCHEMA_VERSION = 4

_NOW = "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"

# =============================================================================
# Table Definitions
#
# Format: TABLES[name] = {"columns": [(col_name, col_ddl), ...],
#                         "unique": [(col, col), ...]}   # optional
#
# col_ddl is the full column definition as used in CREATE TABLE.
# For ALTER TABLE ADD COLUMN, the engine strips unsupported clauses.
# =============================================================================

TABLES: dict[str, dict] = OrderedDict()

# ---------------------------------------------------------------------------
# Bookkeeping
# ---------------------------------------------------------------------------
TABLES["id_counters"] = {
    "columns": [
        ("prefix", "TEXT PRIMARY KEY"),
        ("counter", "INTEGER NOT NULL DEFAULT 0"),
    ],
}

TABLES["schema_migrations"] = {
    "columns": [
        ("version", "INTEGER PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("applied_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
}

TABLES["settings"] = {
    "columns": [
        ("key", "TEXT PRIMARY KEY"),
        ("value", "TEXT NOT NULL"),
        ("updated_at", "TEXT NOT NULL"),
    ],
}

# ---------------------------------------------------------------------------
# Reference data (catalogues the SPA renders as dropdowns)
# ---------------------------------------------------------------------------
_REFERENCE_COLUMNS = [
    ("name", "TEXT NOT NULL UNIQUE"),
    ("description", "TEXT"),
    ("active", "INTEGER NOT NULL DEFAULT 1"),
]

TABLES["sectors"] = {"columns": [("sector_id", "TEXT PRIMARY KEY"), *_REFERENCE_COLUMNS]}
TABLES["client_statuses"] = {"columns": [("status_id", "TEXT PRIMARY KEY"), *_REFERENCE_COLUMNS]}
TABLES["project_statuses"] = {"columns": [("status_id", "TEXT PRIMARY KEY"), *_REFERENCE_COLUMNS]}
TABLES["jump_statuses"] = {"columns": [("status_id", "TEXT PRIMARY KEY"), *_REFERENCE_COLUMNS]}
TABLES["interaction_types"] = {"columns": [("type_id", "TEXT PRIMARY KEY"), *_REFERENCE_COLUMNS]}

# ---------------------------------------------------------------------------
# Core: clients
# ---------------------------------------------------------------------------
TABLES["clients"] = {
    "columns": [
        ("client_id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("company", "TEXT NOT NULL"),
        ("sector", "TEXT NOT NULL"),
        ("email", "TEXT NOT NULL UNIQUE"),
        ("phone", "TEXT"),
        ("address", "TEXT"),
        ("website", "TEXT"),
        ("tax_id", "TEXT NOT NULL"),
        ("secondary_contact", "TEXT"),
        ("secondary_email", "TEXT"),
        ("contact_notes", "TEXT"),
        ("status", "TEXT NOT NULL"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
        ("last_interaction", "TEXT"),
    ],
}

TABLES["interactions"] = {
    "columns": [
        ("interaction_id", "TEXT PRIMARY KEY"),
        ("client_id", "TEXT NOT NULL REFERENCES clients(client_id) ON DELETE CASCADE"),
        ("interaction_date", "TEXT NOT NULL"),
        ("interaction_type", "TEXT NOT NULL"),
        ("interaction_summary", "TEXT"),
        ("interaction_files", "TEXT"),
    ],
}

# ---------------------------------------------------------------------------
# Core: jumps (productized project templates)
# ---------------------------------------------------------------------------
TABLES["jumps"] = {
    "columns": [
        ("jump_id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("description", "TEXT"),
        ("sector", "TEXT"),
        ("base_price", "REAL"),
        # JSON array text
        ("features", "TEXT"),
        ("technical_requirements", "TEXT"),
        ("scalable_modules", "TEXT"),
        ("images", "TEXT"),
        ("demo_video", "TEXT"),
        ("use_cases", "TEXT"),
        ("status", "TEXT NOT NULL DEFAULT 'planning'"),
        ("client_id", "TEXT REFERENCES clients(client_id) ON DELETE RESTRICT"),
        ("url", "TEXT"),
        ("github_repo", "TEXT"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
        ("updated_at", "TEXT"),
    ],
}

TABLES["jump_clients"] = {
    "columns": [
        ("jump_id", "TEXT NOT NULL REFERENCES jumps(jump_id) ON DELETE CASCADE"),
        ("client_id", "TEXT NOT NULL REFERENCES clients(client_id) ON DELETE CASCADE"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
    "unique": [("jump_id", "client_id")],
}

# ---------------------------------------------------------------------------
# Core: copilots (staff and contractors)
# ---------------------------------------------------------------------------
TABLES["copilots"] = {
    "columns": [
        ("copilot_id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("email", "TEXT NOT NULL UNIQUE"),
        ("bio", "TEXT"),
        # JSON array text
        ("specialty", "TEXT"),
        ("availability", "TEXT NOT NULL DEFAULT 'available'"),
        ("role", "TEXT DEFAULT 'developer'"),
        ("hourly_rate", "REAL NOT NULL DEFAULT 0"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
}

# ---------------------------------------------------------------------------
# Core: projects
# ---------------------------------------------------------------------------
TABLES["projects"] = {
    "columns": [
        ("project_id", "TEXT PRIMARY KEY"),
        ("name", "TEXT NOT NULL"),
        ("client_id", "TEXT NOT NULL REFERENCES clients(client_id) ON DELETE RESTRICT"),
        ("jump_id", "TEXT NOT NULL REFERENCES jumps(jump_id) ON DELETE RESTRICT"),
        # Lead copilot; the full team lives in project_copilots
        ("copilot_id", "TEXT REFERENCES copilots(copilot_id) ON DELETE RESTRICT"),
        ("description", "TEXT"),
        ("start_date", "TEXT NOT NULL"),
        ("estimated_end_date", "TEXT"),
        ("status", "TEXT NOT NULL"),
        ("contracted_hours", "REAL NOT NULL DEFAULT 0"),
        ("consumed_hours", "REAL DEFAULT 0"),
        ("files", "TEXT"),
        ("notifications", "TEXT"),
        ("client_portal_url", "TEXT"),
        ("client_comments", "TEXT"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
        ("updated_at", "TEXT"),
    ],
}

TABLES["tasks"] = {
    "columns": [
        ("task_id", "TEXT PRIMARY KEY"),
        ("project_id", "TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE"),
        ("description", "TEXT NOT NULL"),
        ("status", "TEXT NOT NULL DEFAULT 'pending'"),
        ("estimated_hours", "REAL"),
        ("completed_at", "TEXT"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
}

TABLES["project_copilots"] = {
    "columns": [
        ("project_id", "TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE"),
        ("copilot_id", "TEXT NOT NULL REFERENCES copilots(copilot_id) ON DELETE CASCADE"),
        ("role", "TEXT"),
        ("hours_worked", "REAL DEFAULT 0"),
        ("assigned_date", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
    "unique": [("project_id", "copilot_id")],
}

# ---------------------------------------------------------------------------
# Core: api keys
# ---------------------------------------------------------------------------
TABLES["api_keys"] = {
    "columns": [
        ("api_key_id", "TEXT PRIMARY KEY"),
        ("client_id", "TEXT NOT NULL REFERENCES clients(client_id) ON DELETE RESTRICT"),
        ("jump_id", "TEXT NOT NULL REFERENCES jumps(jump_id) ON DELETE RESTRICT"),
        ("service", "TEXT NOT NULL"),
        ("api_key", "TEXT NOT NULL"),
        ("api_secret", "TEXT"),
        ("access_token", "TEXT"),
        ("expiration_date", "TEXT"),
        ("callback_url", "TEXT"),
        # JSON array text
        ("scopes", "TEXT"),
        ("instructions", "TEXT"),
        ("connection_status", "TEXT NOT NULL DEFAULT 'pending'"),
        ("status", "TEXT NOT NULL DEFAULT 'active'"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
        ("updated_at", "TEXT"),
    ],
}

TABLES["project_api_keys"] = {
    "columns": [
        ("project_id", "TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE"),
        ("api_key_id", "TEXT NOT NULL REFERENCES api_keys(api_key_id) ON DELETE CASCADE"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
    "unique": [("project_id", "api_key_id")],
}

# ---------------------------------------------------------------------------
# Core: referrals
# ---------------------------------------------------------------------------
TABLES["referrals"] = {
    "columns": [
        ("referral_id", "TEXT PRIMARY KEY"),
        ("program_name", "TEXT NOT NULL"),
        ("referral_url", "TEXT NOT NULL"),
        ("platform", "TEXT NOT NULL"),
        ("commission", "TEXT NOT NULL"),
        ("clicks", "INTEGER DEFAULT 0"),
        ("conversions", "INTEGER DEFAULT 0"),
        ("earnings", "REAL DEFAULT 0"),
        ("referral_code", "TEXT"),
        # JSON array text
        ("distribution_channels", "TEXT"),
        ("notes", "TEXT"),
        ("status", "TEXT NOT NULL DEFAULT 'active'"),
        ("client_id", "TEXT REFERENCES clients(client_id) ON DELETE RESTRICT"),
        ("converted_at", "TEXT"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
}

TABLES["project_referrals"] = {
    "columns": [
        ("project_id", "TEXT NOT NULL REFERENCES projects(project_id) ON DELETE CASCADE"),
        ("referral_id", "TEXT NOT NULL REFERENCES referrals(referral_id) ON DELETE CASCADE"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
    ],
    "unique": [("project_id", "referral_id")],
}

# ---------------------------------------------------------------------------
# Core: invoices
# ---------------------------------------------------------------------------
TABLES["invoices"] = {
    "columns": [
        ("invoice_id", "TEXT PRIMARY KEY"),
        ("client_id", "TEXT NOT NULL REFERENCES clients(client_id) ON DELETE RESTRICT"),
        ("project_id", "TEXT REFERENCES projects(project_id) ON DELETE RESTRICT"),
        ("jump_id", "TEXT REFERENCES jumps(jump_id) ON DELETE RESTRICT"),
        ("issue_date", "TEXT NOT NULL"),
        ("due_date", "TEXT"),
        ("tax", "REAL NOT NULL DEFAULT 0"),
        ("total", "REAL NOT NULL DEFAULT 0"),
        ("billing_name", "TEXT NOT NULL"),
        ("billing_tax_id", "TEXT NOT NULL"),
        ("billing_address", "TEXT"),
        ("billing_email", "TEXT"),
        ("payment_method", "TEXT"),
        ("payment_status", "TEXT NOT NULL DEFAULT 'pending'"),
        ("payment_reference", "TEXT"),
        ("payment_date", "TEXT"),
        ("status", "TEXT NOT NULL"),
        ("created_at", f"TEXT NOT NULL DEFAULT {_NOW}"),
        ("updated_at", "TEXT"),
    ],
}

TABLES["invoice_items"] = {
    "columns": [
        ("item_id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
        ("invoice_id", "TEXT NOT NULL REFERENCES invoices(invoice_id) ON DELETE CASCADE"),
        ("item_type", "TEXT NOT NULL DEFAULT 'service'"),
        ("description", "TEXT NOT NULL"),
        ("quantity", "REAL NOT NULL DEFAULT 1"),
        ("unit_price", "REAL NOT NULL DEFAULT 0"),
    ],
}


# =============================================================================
# Indexes
#
# Format: (index_name, table, columns_expr, where_clause_or_None)
# =============================================================================

INDEXES: list[tuple[str, str, str, str | None]] = [
    # Clients
    ("idx_clients_status", "clients", "status", None),
    ("idx_interactions_client", "interactions", "client_id, interaction_date DESC", None),
    # Jumps
    ("idx_jumps_client", "jumps", "client_id", None),
    ("idx_jumps_status", "jumps", "status", None),
    ("idx_jump_clients_client", "jump_clients", "client_id", None),
    # Copilots
    ("idx_copilots_availability", "copilots", "availability", None),
    # Projects
    ("idx_projects_client", "projects", "client_id", None),
    ("idx_projects_jump", "projects", "jump_id", None),
    ("idx_projects_copilot", "projects", "copilot_id", "copilot_id IS NOT NULL"),
    ("idx_projects_status", "projects", "status", None),
    ("idx_tasks_project", "tasks", "project_id", None),
    ("idx_project_copilots_copilot", "project_copilots", "copilot_id", None),
    ("idx_project_api_keys_key", "project_api_keys", "api_key_id", None),
    ("idx_project_referrals_referral", "project_referrals", "referral_id", None),
    # API keys
    ("idx_api_keys_client", "api_keys", "client_id", None),
    ("idx_api_keys_jump", "api_keys", "jump_id", None),
    # Referrals
    ("idx_referrals_client", "referrals", "client_id", "client_id IS NOT NULL"),
    # Invoices
    ("idx_invoices_client", "invoices", "client_id", None),
    ("idx_invoices_project", "invoices", "project_id", "project_id IS NOT NULL"),
    ("idx_invoices_status", "invoices", "status", None),
    ("idx_invoices_issue_date", "invoices", "issue_date DESC", None),
    ("idx_invoice_items_invoice", "invoice_items", "invoice_id", None),
]
