from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker  # Async SQLAlchemy engine/session.

from config import get_settings

settings = get_settings()

# The statements built by the API use positional `?` placeholders, so the
# configured driver must use the qmark paramstyle (sqlite/aiosqlite).
engine = create_async_engine(settings.async_database_url, echo=settings.sql_echo)

AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)  # Session factory.


async def get_db():
    # Dependency that yields a DB session and closes it after the request.
    async with AsyncSessionLocal() as session:
        yield session
