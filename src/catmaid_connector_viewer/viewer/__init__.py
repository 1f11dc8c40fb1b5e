"""
catmaid_connector_viewer.viewer

Viewer-side state: skeleton selection source, pagination, and the viewer session.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# `viewer.session` imports the cache, and the cache imports `viewer.skeleton_source`;
# keep this module free of imports so neither side triggers the other at import time.
