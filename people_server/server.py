# people_server/server.py
#
# Run with:
#   uvicorn people_server.server:app --port 8080

from __future__ import annotations

from people_server.people import RootQueryEvaluator
from remote.server import create_app

app = create_app(RootQueryEvaluator, title="People Query Server")
