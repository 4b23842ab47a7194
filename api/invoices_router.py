"""
Invoices API Router.

Endpoints:
- GET/POST /api/invoices (?status=&client_id=&project_id=&payment_status=)
- GET/PUT/DELETE /api/invoices/{invoice_id}
- PATCH /api/invoices/{invoice_id}/status
- PUT /api/invoices/{invoice_id}/pay
"""

import sqlite3

from fastapi import APIRouter, Depends

from api.deps import get_db
from api.request_models import InvoiceCreate, InvoicePayment, InvoiceStatusChange, InvoiceUpdate
from api.response_models import DeleteResponse
from kustoc import invoices

invoices_router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@invoices_router.get("")
def list_invoices(
    status: str | None = None,
    client_id: str | None = None,
    project_id: str | None = None,
    payment_status: str | None = None,
    conn: sqlite3.Connection = Depends(get_db),
):
    return invoices.list_invoices(
        conn, status=status, client_id=client_id, project_id=project_id, payment_status=payment_status
    )


@invoices_router.post("", status_code=201)
def create_invoice(body: InvoiceCreate, conn: sqlite3.Connection = Depends(get_db)):
    """Create the invoice and its items in one transaction; `total` is computed when omitted."""
    return invoices.create_invoice(conn, body.model_dump(exclude_unset=True))


@invoices_router.get("/{invoice_id}")
def get_invoice(invoice_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return invoices.get_invoice(conn, invoice_id)


@invoices_router.put("/{invoice_id}")
def update_invoice(invoice_id: str, body: InvoiceUpdate, conn: sqlite3.Connection = Depends(get_db)):
    return invoices.update_invoice(conn, invoice_id, body.model_dump(exclude_unset=True))


@invoices_router.delete("/{invoice_id}", response_model=DeleteResponse)
def delete_invoice(invoice_id: str, conn: sqlite3.Connection = Depends(get_db)):
    return {"success": True, "deleted": invoices.delete_invoice(conn, invoice_id)}


@invoices_router.patch("/{invoice_id}/status")
def set_status(invoice_id: str, body: InvoiceStatusChange, conn: sqlite3.Connection = Depends(get_db)):
    return invoices.set_status(
        conn,
        invoice_id,
        body.status,
        payment_status=body.payment_status,
        payment_date=body.payment_date,
        payment_reference=body.payment_reference,
    )


@invoices_router.put("/{invoice_id}/pay")
def mark_paid(invoice_id: str, body: InvoicePayment | None = None, conn: sqlite3.Connection = Depends(get_db)):
    body = body or InvoicePayment()
    return invoices.mark_paid(
        conn,
        invoice_id,
        payment_date=body.payment_date,
        payment_method=body.payment_method,
        payment_reference=body.payment_reference,
    )
