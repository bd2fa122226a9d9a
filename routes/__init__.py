"""FastAPI routers for the RedShell judge."""
