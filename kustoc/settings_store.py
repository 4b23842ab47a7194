"""
System settings.

All settings live in one JSON document under the settings key
"system_settings", grouped in sections. Reads fall back to the defaults when
nothing is stored yet; a full update merges top-level sections, a section
update merges keys within one section.
"""

import copy
import json
import logging
import sqlite3

from kustoc import db
from kustoc.errors import StorageError, ValidationError
from kustoc.repository import now_iso

logger = logging.getLogger(__name__)

SETTINGS_KEY = "system_settings"

SECTIONS = ("company", "appearance", "notifications", "backup", "email", "invoices")

DEFAULT_INVOICE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Invoice {{invoice_number}}</title>
</head>
<body>
  <h2>{{company_name}}</h2>
  <p>{{company_address}}<br>Tax ID: {{company_tax_id}}<br>{{company_email}}</p>
  <h1>INVOICE {{invoice_number}}</h1>
  <p>Date: {{invoice_date}}<br>Due: {{due_date}}</p>
  <h3>Bill to</h3>
  <p>{{client_name}}<br>{{client_address}}<br>Tax ID: {{client_tax_id}}</p>
  <table>
    <thead><tr><th>Description</th><th>Qty</th><th>Price</th><th>Total</th></tr></thead>
    <tbody>
      {{#each items}}<tr><td>{{description}}</td><td>{{quantity}}</td><td>{{unit_price}}</td><td>{{total}}</td></tr>{{/each}}
    </tbody>
  </table>
  <p>Subtotal: {{subtotal}}<br>Tax ({{tax_percent}}%): {{tax_amount}}</p>
  <h3>Total: {{total}}</h3>
  <p>{{footer_text}}</p>
</body>
</html>
"""

DEFAULT_SETTINGS: dict = {
    "company": {
        "name": "Your Company",
        "address": "Company address",
        "taxId": "B12345678",
        "email": "contact@yourcompany.com",
        "phone": "+34 600000000",
        "website": "https://www.yourcompany.com",
        "logoUrl": "",
    },
    "appearance": {
        "theme": "system",
        "primaryColor": "#3498db",
        "fontSize": "medium",
        "compactMode": False,
    },
    "notifications": {
        "email": True,
        "browser": True,
        "desktop": False,
        "frequency": "immediate",
    },
    "backup": {
        "automatic": True,
        "frequency": "daily",
        "retain": 7,
        "location": "local",
    },
    "email": {
        "smtp": {"host": "", "port": 587, "secure": False, "username": "", "password": ""},
        "sender": {"name": "", "email": ""},
        "signature": "",
        "templates": [],
    },
    "invoices": {
        "templates": [
            {
                "id": "default-template",
                "name": "Standard template",
                "description": "Invoice with logo, item table and totals",
                "content": DEFAULT_INVOICE_TEMPLATE,
                "is_default": True,
            }
        ],
        "default_template": "default-template",
        "auto_numbering": True,
        "prefix": "INV-",
        "suffix": "",
        "next_number": 1,
        "logo_position": "left",
        "show_paid_stamp": True,
        "footer_text": "Thank you for your business.",
    },
}


def defaults() -> dict:
    return copy.deepcopy(DEFAULT_SETTINGS)


def _save(conn: sqlite3.Connection, settings: dict) -> dict:
    conn.execute(
        "INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
        (SETTINGS_KEY, json.dumps(settings, ensure_ascii=False), now_iso()),
    )
    return settings


def get_settings(conn: sqlite3.Connection) -> dict:
    """Stored settings, or the defaults when none are stored."""
    row = conn.execute("SELECT value FROM settings WHERE key = ?", (SETTINGS_KEY,)).fetchone()
    if row is None:
        return defaults()
    try:
        stored = json.loads(row["value"])
    except json.JSONDecodeError as e:
        raise StorageError(f"Stored settings are not valid JSON: {e}") from e
    if not isinstance(stored, dict):
        raise StorageError("Stored settings are not a JSON object")
    return stored


def update_settings(conn: sqlite3.Connection, changes: dict) -> dict:
    """Replace the supplied top-level sections, keep the rest."""
    if not changes:
        raise ValidationError("No settings supplied")
    with db.transaction(conn):
        settings = {**get_settings(conn), **changes}
        _save(conn, settings)
    logger.info("Settings updated: %s", ", ".join(sorted(changes)))
    return settings


def update_section(conn: sqlite3.Connection, section: str, data: dict) -> dict:
    """Merge *data* into one section. Returns the full settings document."""
    if section not in SECTIONS:
        raise ValidationError(f"Unknown settings section {section!r}; expected one of: {', '.join(SECTIONS)}")
    if not data:
        raise ValidationError("No settings supplied")
    with db.transaction(conn):
        settings = get_settings(conn)
        current = settings.get(section)
        settings[section] = {**(current if isinstance(current, dict) else {}), **data}
        _save(conn, settings)
    logger.info("Settings section updated: %s", section)
    return settings


def reset_settings(conn: sqlite3.Connection) -> dict:
    with db.transaction(conn):
        settings = _save(conn, defaults())
    logger.info("Settings reset to defaults")
    return settings


def seed_defaults(conn: sqlite3.Connection) -> bool:
    """Store the defaults unless settings already exist. Returns True when seeded."""
    if conn.execute("SELECT 1 FROM settings WHERE key = ?", (SETTINGS_KEY,)).fetchone():
        return False
    _save(conn, defaults())
    return True
