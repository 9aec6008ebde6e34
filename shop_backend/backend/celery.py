# backend/celery.py
"""
PATH: backend/celery.py

CELERY APPLICATION

Purpose:
- Run work that must not block or fail a committed checkout
  (order confirmation e-mails).

Notes:
- Configuration is read from Django settings under the CELERY_ namespace.
- Tasks are discovered from each installed app's tasks.py.
"""

from __future__ import annotations

import os

from celery import Celery

os.environ.setdefault(
    "DJANGO_SETTINGS_MODULE",
    os.getenv("DJANGO_SETTINGS_MODULE", "backend.settings.dev"),
)

app = Celery("shop")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
