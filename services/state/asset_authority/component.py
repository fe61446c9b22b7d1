"""Component declaration for Asset Authority Service."""

from __future__ import annotations

from packages.newsdesk_shared.components import ComponentId

SERVICE_COMPONENT_ID = ComponentId("service_asset_authority")
