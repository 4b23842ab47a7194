"""
Pydantic request bodies.

Each entity has an `...Update` model with every field optional (PUT bodies
are partial merges) and a `...Create` model that makes the required fields
mandatory. Routers pass `model_dump(exclude_unset=True)` to the services, so
a field the client did not send is never overwritten.

Array fields accept either a JSON list or a comma-separated string.
"""

from pydantic import BaseModel, Field

StringListInput = list[str] | str | None


# ==== Clients ====


class ClientUpdate(BaseModel):
    name: str | None = None
    company: str | None = None
    sector: str | None = None
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    website: str | None = None
    tax_id: str | None = None
    secondary_contact: str | None = None
    secondary_email: str | None = None
    contact_notes: str | None = None
    status: str | None = None


class ClientCreate(ClientUpdate):
    name: str
    company: str
    sector: str
    email: str
    tax_id: str
    status: str


# ==== Jumps ====


class JumpUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    sector: str | None = None
    base_price: float | None = None
    features: StringListInput = None
    technical_requirements: str | None = None
    scalable_modules: StringListInput = None
    images: StringListInput = None
    demo_video: str | None = None
    use_cases: str | None = None
    status: str | None = None
    client_id: str | None = None
    url: str | None = None
    github_repo: str | None = None


class JumpCreate(JumpUpdate):
    name: str


class JumpClientLink(BaseModel):
    client_id: str = Field(..., description="Client to associate with the jump")


# ==== Copilots ====


class CopilotUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    bio: str | None = None
    specialty: StringListInput = None
    availability: str | None = Field(default=None, description="available|busy|inactive")
    role: str | None = None
    hourly_rate: float | None = None


class CopilotCreate(CopilotUpdate):
    name: str
    email: str


# ==== Projects ====


class ProjectUpdate(BaseModel):
    name: str | None = None
    client_id: str | None = None
    jump_id: str | None = None
    copilot_id: str | None = Field(default=None, description="Lead copilot")
    description: str | None = None
    start_date: str | None = None
    estimated_end_date: str | None = None
    status: str | None = None
    contracted_hours: float | None = None
    consumed_hours: float | None = None
    files: str | None = None
    notifications: str | None = None
    client_portal_url: str | None = None
    client_comments: str | None = None


class ProjectCreate(ProjectUpdate):
    name: str
    client_id: str
    jump_id: str
    start_date: str
    status: str
    contracted_hours: float
    copilots: list[str] | None = Field(default=None, description="Initial team (copilot IDs)")


class JumpAssignment(BaseModel):
    jump_id: str


class LeadCopilotAssignment(BaseModel):
    copilot_id: str


class CopilotSet(BaseModel):
    copilots: list[str] = Field(..., description="Copilot IDs; replaces the whole team")


class CopilotMember(BaseModel):
    copilot_id: str
    role: str | None = None
    hours_worked: float | None = None


class ApiKeySet(BaseModel):
    api_keys: list[str] = Field(..., description="API key IDs; replaces the project's set")


class ReferralSet(BaseModel):
    referrals: list[str] = Field(..., description="Referral IDs; replaces the project's set")


class TaskUpdate(BaseModel):
    description: str | None = None
    status: str | None = None
    estimated_hours: float | None = None
    completed_at: str | None = None


class TaskCreate(TaskUpdate):
    description: str


# ==== Invoices ====


class InvoiceItem(BaseModel):
    item_type: str | None = "service"
    description: str
    quantity: float = 1
    unit_price: float = 0


class InvoiceUpdate(BaseModel):
    client_id: str | None = None
    project_id: str | None = None
    jump_id: str | None = None
    issue_date: str | None = None
    due_date: str | None = None
    tax: float | None = Field(default=None, description="Tax rate in percent")
    total: float | None = Field(default=None, description="Computed from items and tax when omitted")
    billing_name: str | None = None
    billing_tax_id: str | None = None
    billing_address: str | None = None
    billing_email: str | None = None
    payment_method: str | None = None
    payment_status: str | None = None
    payment_reference: str | None = None
    payment_date: str | None = None
    status: str | None = None
    items: list[InvoiceItem] | None = Field(default=None, description="Replaces stored items when given")


class InvoiceCreate(InvoiceUpdate):
    client_id: str
    issue_date: str
    billing_name: str
    billing_tax_id: str
    status: str


class InvoiceStatusChange(BaseModel):
    status: str
    payment_status: str | None = None
    payment_date: str | None = None
    payment_reference: str | None = None


class InvoicePayment(BaseModel):
    payment_date: str | None = Field(default=None, description="Defaults to now")
    payment_method: str | None = None
    payment_reference: str | None = None


# ==== API keys ====


class ApiKeyUpdate(BaseModel):
    client_id: str | None = None
    jump_id: str | None = None
    service: str | None = None
    api_key: str | None = None
    api_secret: str | None = None
    access_token: str | None = None
    expiration_date: str | None = None
    callback_url: str | None = None
    scopes: StringListInput = None
    instructions: str | None = None
    connection_status: str | None = None
    status: str | None = None


class ApiKeyCreate(ApiKeyUpdate):
    client_id: str
    jump_id: str
    service: str
    api_key: str | None = Field(default=None, description="Generated when omitted")


# ==== Referrals ====


class ReferralUpdate(BaseModel):
    program_name: str | None = None
    referral_url: str | None = None
    platform: str | None = None
    commission: str | None = None
    clicks: int | None = None
    conversions: int | None = None
    earnings: float | None = None
    referral_code: str | None = None
    distribution_channels: StringListInput = None
    notes: str | None = None
    status: str | None = None
    client_id: str | None = None


class ReferralCreate(ReferralUpdate):
    program_name: str
    referral_url: str
    platform: str
    commission: str


class ReferralConversion(BaseModel):
    client_id: str

