"""Core helpers shared across the client layers."""
from __future__ import annotations

SERVICE_NAME = "apiclient"
