"""
Utility Functions Package

Modules:
- chunker: Split markdown documents into titled, sluggable sections
- document_store: Store query contract with Supabase and in-memory backends
- store_gateway: Retry-wrapped store access
- rag: Embedding generation and the keyword/vector retrieval chain
- prompts: System prompt templates
- generation: Streaming chat completions
- rate_limit: Per-client fixed-window rate governor
- docs: Documentation navigation and manual entries
- ingest: Markdown import
"""
