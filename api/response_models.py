"""
Shared Pydantic response models for API endpoints.

These models give FastAPI the type information it needs to generate
accurate OpenAPI schemas instead of empty `schema: {}`. Entity payloads are
passed through as dicts (their columns are defined in kustoc.schema), so
only the envelopes are modelled here.

Usage:
    from api.response_models import MutationResponse

    @router.delete("/{client_id}", response_model=MutationResponse)
    def delete_client(...): ...
"""

from typing import Any

from pydantic import BaseModel, Field

# ==== Mutation Result ====
# Used by DELETE endpoints and association changes that return {success: bool, ...}.


class MutationResponse(BaseModel):
    """Standard mutation result."""

    success: bool = Field(description="Whether the operation succeeded")

    model_config = {"extra": "allow"}


class DeleteResponse(MutationResponse):
    """Delete result with the rows removed per table (cascades included)."""

    deleted: dict[str, int] = Field(default_factory=dict, description="Rows deleted per table")


class AssociationChange(MutationResponse):
    """Result of replacing a many-to-many set."""

    added: list[str] = Field(default_factory=list, description="IDs newly linked")
    removed: list[str] = Field(default_factory=list, description="IDs unlinked")


# ==== Errors ====


class ErrorResponse(BaseModel):
    """Body of every error response."""

    detail: Any = Field(description="Human-readable message")
    error_code: str = Field(description="validation_error, missing_reference, not_found, has_dependents, ...")


# ==== Health Check ====


class HealthResponse(BaseModel):
    """Health check result."""

    status: str = Field(description="healthy or error")
    schema_version: int | None = Field(description="user_version of the database")
    target_schema_version: int = Field(description="Schema version this build expects")
    timestamp: str = Field(description="ISO timestamp")


# ==== Dashboard ====


class RevenueTotals(BaseModel):
    paid: float = 0
    pending: float = 0


class DashboardStats(BaseModel):
    """Aggregates for the dashboard landing page."""

    counts: dict[str, int] = Field(description="Row count per entity")
    available_copilots: int = 0
    revenue: RevenueTotals
    recent_clients: list[dict[str, Any]] = Field(default_factory=list)
    recent_projects: list[dict[str, Any]] = Field(default_factory=list)
