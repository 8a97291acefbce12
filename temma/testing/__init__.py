"""
Temma Testing - in-process request helpers.

Usage:
    from temma.testing import TestClient

    async def test_home(app):
        client = TestClient(app)
        response = await client.get("/")
        assert response.status_code == 200
"""

from .client import TestClient, TestResponse, make_test_receive, make_test_scope

__all__ = ["TestClient", "TestResponse", "make_test_scope", "make_test_receive"]
