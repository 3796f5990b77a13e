"""SQLAlchemy implementation of the RelationalProbe port."""

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine

from ..application.domain import RelationalProbe
from ..application.exceptions import StorageError


class SqlAlchemyProbe(RelationalProbe):
    """Runs a trivial round-trip query on a pooled async engine."""

    def __init__(self, url: str, pool_size: int = 5):
        self.engine = create_async_engine(
            url, pool_size=pool_size, pool_pre_ping=True
        )

    async def probe(self):
        try:
            async with self.engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError) as e:
            raise StorageError(str(e)) from e

    async def close(self):
        await self.engine.dispose()
