"""
tsg.api.routers.internal

Internal routers package.

Responsibilities:
- Host the in-process job API that stands in for the orchestrator.
"""

# Package marker.
