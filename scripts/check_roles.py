"""
Validate role definitions and print what every role can do.

Builds a registry exactly as the server does at startup, so a definitions
file that passes here will not stop the server from starting.

Usage:
    uv run python -m scripts.check_roles
    uv run python -m scripts.check_roles path/to/roles.json
"""
import sys
from typing import Optional

from app.features.access.defaults import build_registry, definitions_source
from app.features.access.exceptions import ConfigurationError
from app.features.access.registry import PermissionRegistry
from app.utils import get_logger


log = get_logger(__name__)


def describe(registry: PermissionRegistry) -> list[str]:
    """One block of lines per role: header, then its effective capabilities."""
    lines = []
    for name in registry.roles:
        role = registry.get_role(name)
        header = name
        if role.parents:
            header += f" (extends {', '.join(role.parents)})"
        lines.append(header)
        for capability in sorted(role.effective, key=lambda c: (c.resource, c.action_scope.value)):
            inherited = "" if capability in role.direct else " [inherited]"
            lines.append(f"  {capability}{inherited}")
    return lines


def main(argv: Optional[list[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    path = argv[0] if argv else None

    log.info("Checking role definitions from %s", definitions_source(path))
    try:
        registry = build_registry(path)
    except ConfigurationError as e:
        log.error("Invalid role definitions: %s", e)
        return 1

    for line in describe(registry):
        print(line)
    log.info("%d roles OK", len(registry))
    return 0


if __name__ == "__main__":
    sys.exit(main())
