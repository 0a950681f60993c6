"""
tsg.orchestrator

Orchestrator boundary package.

Responsibilities:
- Provide the job client used to mirror service groups in the orchestrator.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services depend on the `OrchestratorClient` protocol, not on HTTP directly.
