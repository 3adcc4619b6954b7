# signage/state/redis_keys.py

"""
Redis names shared by the admin process and the hub process.

Never hardcode these strings outside this file.
"""

from signage.core.config import settings

# =========================
# EVENTS / WS
# =========================

# Pub/Sub channel carrying broadcast envelopes
# type: {"type": "alert" | "closeAlert" | "contentUpdate" | "patientListUpdate",
#        "data": {...}}
EVENTS_CHANNEL = settings.events_channel
