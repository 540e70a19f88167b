"""
API tests for the root and health endpoints

Author: TM3
Date: 2025-10-17
"""
from unittest.mock import patch

from neo4j.exceptions import ServiceUnavailable


def test_root(client):
    assert client.get("/").json()["status"] == "online"


@patch("factorybay.main.run_query", return_value=[{"ok": 1}])
def test_healthy(mock_query, client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"]["status"] == "connected"


@patch("factorybay.main.run_query", side_effect=ServiceUnavailable("no route"))
def test_degraded_when_database_is_down(mock_query, client):
    body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["database"]["error"] == "no route"
