"""Component identity primitives shared by services and substrates.

Component ids double as log ``component_id`` values and, for services that
own Postgres state, as the owned schema name.
"""

from __future__ import annotations

import re
from typing import Final, NewType

ComponentId = NewType("ComponentId", str)

_COMPONENT_ID_RE: Final[re.Pattern[str]] = re.compile(r"^[a-z][a-z0-9_]{1,62}$")


def validate_component_id(component_id: str) -> ComponentId:
    """Return ``component_id`` as a ``ComponentId`` or raise ``ValueError``."""
    if _COMPONENT_ID_RE.match(component_id) is None:
        raise ValueError(f"invalid component id: {component_id!r}")
    return ComponentId(component_id)


def component_id_to_schema_name(component_id: ComponentId) -> str:
    """Derive canonical Postgres schema name from component id."""
    return str(validate_component_id(component_id))
