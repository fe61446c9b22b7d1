"""Component identity for the shared Postgres substrate."""

from __future__ import annotations

from packages.newsdesk_shared.components import ComponentId

RESOURCE_COMPONENT_ID = ComponentId("substrate_postgres")
