"""HTTP layer: FastAPI dependencies and versioned routers."""
