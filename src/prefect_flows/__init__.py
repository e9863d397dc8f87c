"""
Prefect flows for Citizenly orchestration.

This package contains flow definitions for:
- LegiScan legislative sync (quick, full, per session)
- Scheduled notification delivery

Responsibility: Define orchestration workflows using Prefect
"""
