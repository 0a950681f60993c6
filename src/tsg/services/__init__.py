"""
tsg.services

Service-layer package.

Responsibilities:
- Sequence store writes and orchestrator calls per operation.
- Enforce account scoping before any repository or remote call.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services take repositories and clients through their constructors and are
# tested with the in-memory repositories and fake orchestrators.
