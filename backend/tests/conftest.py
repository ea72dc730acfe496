"""Root conftest — shared test configuration."""

import os

# Ensure tests never talk to real services
os.environ.setdefault("METAMAP_CLIENT_ID", "test-client")
os.environ.setdefault("METAMAP_CLIENT_SECRET", "test-secret")
os.environ.setdefault("METAMAP_FLOW_ID", "test-flow")
os.environ.setdefault("METAMAP_WEBHOOK_SECRET", "")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
