"""
Invoices and their line items.

An invoice and its items are written in one transaction. When the caller
does not supply `total`, it is computed from the items:

    total = subtotal * (1 + tax / 100),  subtotal = sum(quantity * unit_price)

rounded to cents. Updating the items (or the tax rate) without a total
recomputes it the same way.
"""

import logging
import sqlite3

from kustoc import db, entities, safe_sql
from kustoc.errors import ValidationError
from kustoc.repository import Repository, now_iso

logger = logging.getLogger(__name__)

repo = Repository(entities.INVOICE)

ITEM_COLUMNS = ("item_type", "description", "quantity", "unit_price")
PAID = "paid"


def _number(value, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be a number, got {value!r}") from e


def normalize_items(items) -> list[dict]:
    """Validate line items and fill item_type/quantity defaults."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise ValidationError("items must be a list")
    normalized = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValidationError(f"items[{i}] must be an object")
        if not str(item.get("description") or "").strip():
            raise ValidationError(f"items[{i}].description is required")
        normalized.append(
            {
                "item_type": item.get("item_type") or "service",
                "description": item["description"],
                "quantity": _number(item.get("quantity", 1), f"items[{i}].quantity"),
                "unit_price": _number(item.get("unit_price", 0), f"items[{i}].unit_price"),
            }
        )
    return normalized


def subtotal(items: list[dict]) -> float:
    return sum(item["quantity"] * item["unit_price"] for item in items)


def compute_total(items: list[dict], tax) -> float:
    return round(subtotal(items) * (1 + _number(tax or 0, "tax") / 100), 2)


def list_items(conn: sqlite3.Connection, invoice_id: str) -> list[dict]:
    sql = safe_sql.select("invoice_items", where="invoice_id = ?", order_by="item_id")
    return [dict(row) for row in conn.execute(sql, (invoice_id,))]


def _write_items(conn: sqlite3.Connection, invoice_id: str, items: list[dict]):
    conn.execute(safe_sql.delete("invoice_items", "invoice_id = ?"), (invoice_id,))
    sql = safe_sql.insert("invoice_items", ["invoice_id", *ITEM_COLUMNS])
    for item in items:
        conn.execute(sql, (invoice_id, *(item[c] for c in ITEM_COLUMNS)))


def _client_names(conn: sqlite3.Connection) -> dict[str, str]:
    return {row["client_id"]: row["name"] for row in conn.execute("SELECT client_id, name FROM clients")}


def list_invoices(
    conn: sqlite3.Connection,
    status: str | None = None,
    client_id: str | None = None,
    project_id: str | None = None,
    payment_status: str | None = None,
) -> list[dict]:
    """Invoices, newest issue date first, each with `client_name`."""
    invoices = repo.list(
        conn,
        {"status": status, "client_id": client_id, "project_id": project_id, "payment_status": payment_status},
    )
    names = _client_names(conn)
    for invoice in invoices:
        invoice["client_name"] = names.get(invoice["client_id"])
    return invoices


def get_invoice(conn: sqlite3.Connection, invoice_id: str) -> dict:
    """The invoice with `client_name` and its `items`."""
    invoice = repo.get(conn, invoice_id)
    row = conn.execute("SELECT name FROM clients WHERE client_id = ?", (invoice["client_id"],)).fetchone()
    invoice["client_name"] = row["name"] if row else None
    invoice["items"] = list_items(conn, invoice_id)
    return invoice


def create_invoice(conn: sqlite3.Connection, data: dict) -> dict:
    data = dict(data)
    items = normalize_items(data.pop("items", None))
    if data.get("total") is None:
        data["total"] = compute_total(items, data.get("tax"))
    with db.transaction(conn):
        invoice = repo.create(conn, data)
        _write_items(conn, invoice["invoice_id"], items)
    logger.info("invoice %s: %d items, total %.2f", invoice["invoice_id"], len(items), invoice["total"])
    return get_invoice(conn, invoice["invoice_id"])


def update_invoice(conn: sqlite3.Connection, invoice_id: str, changes: dict) -> dict:
    """Partial update. Supplied `items` replace the stored ones."""
    changes = dict(changes)
    items = changes.pop("items", None)
    with db.transaction(conn):
        current = repo.get(conn, invoice_id)
        if items is not None:
            items = normalize_items(items)
            _write_items(conn, invoice_id, items)
        if changes.get("total") is None and (items is not None or changes.get("tax") is not None):
            tax = changes["tax"] if changes.get("tax") is not None else current["tax"]
            basis = items if items is not None else list_items(conn, invoice_id)
            changes["total"] = compute_total(basis, tax)
        repo.update(conn, invoice_id, {k: v for k, v in changes.items() if v is not None})
    return get_invoice(conn, invoice_id)


def set_status(
    conn: sqlite3.Connection,
    invoice_id: str,
    status: str,
    payment_status: str | None = None,
    payment_date: str | None = None,
    payment_reference: str | None = None,
) -> dict:
    if not status:
        raise ValidationError("status is required")
    changes = {
        "status": status,
        "payment_status": payment_status,
        "payment_date": payment_date,
        "payment_reference": payment_reference,
    }
    repo.update(conn, invoice_id, {k: v for k, v in changes.items() if v is not None})
    return get_invoice(conn, invoice_id)


def mark_paid(
    conn: sqlite3.Connection,
    invoice_id: str,
    payment_date: str | None = None,
    payment_method: str | None = None,
    payment_reference: str | None = None,
) -> dict:
    changes = {
        "status": PAID,
        "payment_status": PAID,
        "payment_date": payment_date or now_iso(),
        "payment_method": payment_method,
        "payment_reference": payment_reference,
    }
    repo.update(conn, invoice_id, {k: v for k, v in changes.items() if v is not None})
    logger.info("invoice %s marked paid", invoice_id)
    return get_invoice(conn, invoice_id)


def delete_invoice(conn: sqlite3.Connection, invoice_id: str) -> dict[str, int]:
    return repo.delete(conn, invoice_id)
