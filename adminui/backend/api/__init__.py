"""
HTTP API.

health.py serves liveness and readiness at the root; endpoints/ holds the
/api routers.
"""
