"""HTTP surface: FastAPI app, routers, and request/response schemas."""
