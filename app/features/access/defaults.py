"""
Built-in role catalogue and role definition loading.

Department roles hold Own-scoped grants on the records their members create;
managers and the admin role widen those to Any. Deployments can replace the
catalogue with a JSON file (ROLE_DEFINITIONS_FILE) in the same format:

    [
        {"name": "sales", "extends": [], "grants": [{"resource": "leads", "actions": ["readOwn"]}]},
        ...
    ]
"""
import json
from pathlib import Path
from typing import Any, Optional

from app.core import config
from app.features.access.exceptions import ConfigurationError
from app.features.access.registry import PermissionRegistry
from app.utils import get_logger


log = get_logger(__name__)


OWN_CRUD = ["createOwn", "readOwn", "updateOwn", "deleteOwn"]
ANY_CRUD = ["createAny", "readAny", "updateAny", "deleteAny"]


DEFAULT_ROLE_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "basic",
        "grants": [
            {"resource": "leads", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "inquiries", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "reports", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "products", "actions": ["readAny"]},
            {"resource": "documents", "actions": ["createOwn", "readAny"]},
            {"resource": "attendance", "actions": ["createOwn", "readOwn"]},
        ],
    },
    {
        "name": "intern",
        "grants": [
            {"resource": "social-media", "actions": ["readAny"]},
            {"resource": "products", "actions": ["readAny"]},
        ],
    },
    {
        "name": "reports-viewer",
        "grants": [
            {"resource": "reports", "actions": ["readAny"]},
        ],
    },
    {
        "name": "sales",
        "grants": [
            {"resource": "leads", "actions": OWN_CRUD},
            {"resource": "clients", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "inquiries", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "quotations", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "reports", "actions": ["createOwn", "readOwn", "updateOwn"]},
            {"resource": "products", "actions": ["readAny"]},
            {"resource": "documents", "actions": ["createOwn", "readAny"]},
            {"resource": "companies", "actions": ["createAny", "readAny", "updateAny"]},
        ],
    },
    {
        "name": "marketing",
        "extends": ["intern"],
        "grants": [
            {"resource": "social-media", "actions": ["createAny", "updateAny", "deleteAny"]},
            {"resource": "marketing-plans", "actions": OWN_CRUD},
            {"resource": "leads", "actions": ["createOwn", "readOwn"]},
            {"resource": "inquiries", "actions": ["readAny"]},
            {"resource": "reports", "actions": ["readAny"]},
            {"resource": "documents", "actions": ["createOwn", "readAny"]},
        ],
    },
    {
        "name": "logistics",
        "grants": [
            {"resource": "leads", "actions": ["readAny"]},
            {"resource": "inquiries", "actions": ["readAny", "updateAny"]},
            {"resource": "products", "actions": ["readAny"]},
            {"resource": "delivery-info", "actions": ["readAny"]},
            {"resource": "documents", "actions": ["readAny"]},
        ],
    },
    {
        "name": "accounting",
        "extends": ["reports-viewer"],
        "grants": [
            {"resource": "inquiries", "actions": ["readAny"]},
            {"resource": "invoices", "actions": ["readAny"]},
            {"resource": "financial-data", "actions": ["readAny"]},
            {"resource": "financial-reports", "actions": ["createAny"]},
            {"resource": "leads", "actions": ["readAny"]},
            {"resource": "products", "actions": ["readAny"]},
            {"resource": "documents", "actions": ["readAny"]},
        ],
    },
    {
        "name": "manager",
        "extends": ["sales"],
        "grants": [
            {"resource": "users", "actions": ["readAny"]},
            {"resource": "leads", "actions": ["createAny", "readAny", "updateAny"]},
            {"resource": "inquiries", "actions": ["createAny", "readAny", "updateAny"]},
            {"resource": "reports", "actions": ["readAny", "updateAny"]},
            {"resource": "quotations", "actions": ["readAny", "updateAny"]},
            {"resource": "attendance", "actions": ["readAny", "updateAny"]},
        ],
    },
    {
        "name": "admin",
        "extends": ["basic", "sales", "marketing", "logistics", "accounting", "manager"],
        "grants": [
            {"resource": "*", "actions": ANY_CRUD},
        ],
    },
]


def load_role_definitions(path: Optional[str] = None) -> list[dict[str, Any]]:
    """
    Load role definitions from a JSON file, or the built-in catalogue.

    Args:
        path: JSON file path; falls back to ROLE_DEFINITIONS_FILE, then to
            DEFAULT_ROLE_DEFINITIONS

    Raises:
        ConfigurationError: file missing, unreadable, or not a JSON list
    """
    path = path or config.ROLE_DEFINITIONS_FILE
    if not path:
        return DEFAULT_ROLE_DEFINITIONS

    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read role definitions file {path}: {e}") from e

    try:
        definitions = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Role definitions file {path} is not valid JSON: {e}") from e

    if not isinstance(definitions, list):
        raise ConfigurationError(f"Role definitions file {path} must contain a list of roles")

    log.info("Loaded %d role definitions from %s", len(definitions), path)
    return definitions


def definitions_source(path: Optional[str] = None) -> str:
    return path or config.ROLE_DEFINITIONS_FILE or "built-in"


def build_registry(path: Optional[str] = None) -> PermissionRegistry:
    """Load definitions and build a registry. Raises ConfigurationError."""
    return PermissionRegistry.build(load_role_definitions(path))
