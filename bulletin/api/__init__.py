"""HTTP API - app factory, routers and request/response schemas."""
