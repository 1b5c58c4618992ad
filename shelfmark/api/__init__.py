"""HTTP API - routers and request dependencies."""
