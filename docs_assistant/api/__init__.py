"""
API routers

Modules:
- chat: streaming chat endpoint
- docs: navigation, document content, manual entries, context lookup
- middleware: per-client rate limiting for /api/chat
- deps: shared service instances for dependency injection
"""
