"""Infrastructure layer for files app.

This package contains integrations with external systems:
- Local filesystem storage backend
- Metadata extraction (MIME type, checksum) and display formatting

Keep infrastructure concerns separate from business logic.
"""
