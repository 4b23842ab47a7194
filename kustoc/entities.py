"""
Entity registry.

One Entity per ID-bearing table: which column is the key, which prefix mints
its IDs, which fields a create must supply, which columns hold JSON arrays,
and how listings are ordered and filtered. The generic repository, the ID
counter sync and the CLI all read this registry instead of hard-coding table
knowledge.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Entity:
    """Persistence description of one entity type."""

    name: str
    table: str
    key: str
    prefix: str
    required: tuple[str, ...] = ()
    array_fields: tuple[str, ...] = ()
    order_by: str = ""
    filters: tuple[str, ...] = ()  # columns accepted as ?column=value list filters
    defaults: dict = field(default_factory=dict)
    created_column: str | None = "created_at"
    updated_column: str | None = None

    @property
    def ordering(self) -> str:
        """ORDER BY expression with the key as a stable tie-breaker."""
        if self.order_by:
            return f"{self.order_by}, {self.key}"
        return self.key


CLIENT = Entity(
    name="client",
    table="clients",
    key="client_id",
    prefix="CLI",
    required=("name", "company", "sector", "email", "tax_id", "status"),
    order_by="name",
    filters=("status", "sector"),
)

INTERACTION = Entity(
    name="interaction",
    table="interactions",
    key="interaction_id",
    prefix="INT",
    required=("client_id", "interaction_type"),
    order_by="interaction_date DESC",
    filters=("client_id", "interaction_type"),
    created_column=None,
)

JUMP = Entity(
    name="jump",
    table="jumps",
    key="jump_id",
    prefix="JMP",
    required=("name",),
    array_fields=("features", "scalable_modules", "images"),
    order_by="name",
    filters=("status", "client_id", "sector"),
    defaults={"status": "planning"},
    updated_column="updated_at",
)

COPILOT = Entity(
    name="copilot",
    table="copilots",
    key="copilot_id",
    prefix="CPL",
    required=("name", "email", "availability", "hourly_rate"),
    array_fields=("specialty",),
    order_by="name",
    filters=("availability", "role"),
    defaults={"availability": "available", "role": "developer", "hourly_rate": 0},
)

PROJECT = Entity(
    name="project",
    table="projects",
    key="project_id",
    prefix="PRJ",
    required=("name", "client_id", "jump_id", "status", "start_date", "contracted_hours"),
    order_by="name",
    filters=("status", "client_id", "jump_id", "copilot_id"),
    defaults={"consumed_hours": 0},
    updated_column="updated_at",
)

TASK = Entity(
    name="task",
    table="tasks",
    key="task_id",
    prefix="TSK",
    required=("project_id", "description"),
    order_by="created_at",
    filters=("project_id", "status"),
    defaults={"status": "pending"},
)

INVOICE = Entity(
    name="invoice",
    table="invoices",
    key="invoice_id",
    prefix="INV",
    required=("client_id", "issue_date", "billing_name", "billing_tax_id", "status"),
    order_by="issue_date DESC",
    filters=("status", "client_id", "project_id", "payment_status"),
    defaults={"payment_status": "pending"},
    updated_column="updated_at",
)

API_KEY = Entity(
    name="api_key",
    table="api_keys",
    key="api_key_id",
    prefix="KEY",
    required=("client_id", "jump_id", "service", "api_key"),
    array_fields=("scopes",),
    order_by="created_at DESC",
    filters=("client_id", "jump_id", "status", "service"),
    defaults={"status": "active", "connection_status": "pending"},
    updated_column="updated_at",
)

REFERRAL = Entity(
    name="referral",
    table="referrals",
    key="referral_id",
    prefix="REF",
    required=("program_name", "referral_url", "platform", "commission"),
    array_fields=("distribution_channels",),
    order_by="created_at DESC",
    filters=("status", "client_id", "platform"),
    defaults={"status": "active", "clicks": 0, "conversions": 0, "earnings": 0},
)


def _reference(name: str, table: str, key: str, prefix: str) -> Entity:
    return Entity(
        name=name,
        table=table,
        key=key,
        prefix=prefix,
        required=("name",),
        order_by="name",
        filters=("active",),
        defaults={"active": 1},
        created_column=None,
    )


SECTOR = _reference("sector", "sectors", "sector_id", "SEC")
CLIENT_STATUS = _reference("client_status", "client_statuses", "status_id", "CST")
PROJECT_STATUS = _reference("project_status", "project_statuses", "status_id", "PST")
JUMP_STATUS = _reference("jump_status", "jump_statuses", "status_id", "JST")
INTERACTION_TYPE = _reference("interaction_type", "interaction_types", "type_id", "ITY")

ALL: tuple[Entity, ...] = (
    CLIENT,
    INTERACTION,
    JUMP,
    COPILOT,
    PROJECT,
    TASK,
    INVOICE,
    API_KEY,
    REFERRAL,
    SECTOR,
    CLIENT_STATUS,
    PROJECT_STATUS,
    JUMP_STATUS,
    INTERACTION_TYPE,
)

BY_TABLE: dict[str, Entity] = {e.table: e for e in ALL}
BY_PREFIX: dict[str, Entity] = {e.prefix: e for e in ALL}

REFERENCE_TABLES: dict[str, Entity] = {
    "sectors": SECTOR,
    "client-statuses": CLIENT_STATUS,
    "project-statuses": PROJECT_STATUS,
    "jump-statuses": JUMP_STATUS,
    "interaction-types": INTERACTION_TYPE,
}
