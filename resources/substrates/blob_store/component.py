"""Component declaration for the blob object-store substrate."""

from __future__ import annotations

from packages.newsdesk_shared.components import ComponentId

RESOURCE_COMPONENT_ID = ComponentId("substrate_blob_store")
