from __future__ import annotations

from typing import Any

from django.db import connection
from django.db import transaction
from django.http import JsonResponse


def check_db() -> dict[str, Any]:
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1;")
            cursor.fetchone()
    except Exception as exc:  # noqa: BLE001 - health must degrade, not crash
        return {"ok": False, "error": str(exc)}
    else:
        return {"ok": True}


# ATOMIC_REQUESTS would need a cursor before the view runs.
@transaction.non_atomic_requests
def health(request):
    components = {"db": check_db()}
    all_ok = all(v.get("ok", False) for v in components.values())

    return JsonResponse(
        {"status": "ok" if all_ok else "down", "components": components},
        status=200 if all_ok else 503,
    )
