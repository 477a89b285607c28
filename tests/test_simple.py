"""
Simple test cases to verify test configuration.
"""
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

async def test_app_exists(client: AsyncClient):
    """Test that app exists."""
    assert client is not None

async def test_database_session(async_session: AsyncSession):
    """Test that database session works."""
    assert async_session is not None
    from sqlalchemy import text
    result = await async_session.execute(text("SELECT 1"))
    assert result.scalar() == 1

def test_logging_without_files_creates_no_log_dir(tmp_path, monkeypatch):
    """Test that file sinks are only installed on request."""
    from datarepo.logging import logger as log_module

    log_dir = tmp_path / "logs"
    monkeypatch.setattr(log_module, "LOG_DIR", log_dir)

    log_module.LogConfig.setup_logging(to_files=False)
    assert not log_dir.exists()

    log_module.LogConfig.setup_logging(to_files=True)
    assert log_dir.is_dir()

    log_module.LogConfig.setup_logging(to_files=False)
