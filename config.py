# config.py
from __future__ import annotations

# ---------------------------
# Tracing
# ---------------------------
TRACE = False  # prints [EVAL] / [HTTP] / [SERVE] lines when True

# ---------------------------
# Remote evaluation (client side)
# ---------------------------
EVAL_SERVER_URL = "http://localhost:8080"
EVAL_TIMEOUT_S = 30.0  # seconds; None = wait indefinitely

# ---------------------------
# Remote evaluation (server side)
# ---------------------------
SERVER_HOST = "127.0.0.1"
SERVER_PORT = 8080

# Plans longer than this are rejected before any step runs (None = unlimited)
MAX_PLAN_STEPS = 64
