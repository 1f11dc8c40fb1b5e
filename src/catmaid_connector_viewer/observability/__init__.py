"""
catmaid_connector_viewer.observability

Observability package.

Responsibilities:
- Structured logging configuration and request-context middleware.
"""

# Package marker.
