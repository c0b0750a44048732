"""FastAPI service enforcing session idle timeouts. The ASGI app lives in `service.service`."""
