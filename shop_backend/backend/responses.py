# backend/responses.py

"""
Shared API response helpers.

Error envelope used by every domain view:
    {"error": {"code": "<MACHINE_CODE>", "message": "<human readable>"}}
"""

from __future__ import annotations

from rest_framework.response import Response


def error_response(*, code: str, message: str, http_status: int):
    return Response(
        {"error": {"code": code, "message": message}},
        status=http_status,
    )
