"""Business logic layer for files app.

This package contains all business logic for storage operations:
- Path resolution for users and folders
- Quota tracking and storage statistics
- Upload, listing, download and delete of files and folders
- Sharing with other users and external links
- Access checks shared by every read and write path

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
