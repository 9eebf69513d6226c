"""HTTP boundary: routers, request/response schemas, cursor codec."""
