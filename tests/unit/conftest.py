"""Unit test fixtures for CancelFlow.

Fixtures are inherited from the parent conftest.py:
- clock: FakeClock driving expiring stores
- app_config: AppConfig with small rate limits
- session_log: SessionLogger writing under tmp_path
- db_engine / db_session: in-memory SQLite with sample rows
- api_app / client: the API application and a TestClient for it
- read_db: factory for fresh sessions used in assertions
"""
