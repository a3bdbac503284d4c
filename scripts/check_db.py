import asyncio
import sys
import os

# Add parent directory to path so we can import from the app
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import get_db, settings
from repositories.raw_sql import RawSqlRepository


async def main():
    try:
        print(f"Testing database connection to {settings.async_database_url.split('://')[0]}...")
        async for session in get_db():
            result = await RawSqlRepository(session).execute("SELECT ? AS ok", [1])
            print(f"Connection successful! Result: {result.results[0]['ok']} ({result.meta.duration} ms)")
            break
    except Exception as e:
        print(f"Connection failed: {e}")
        sys.exit(1)

if __name__ == "__main__":
    asyncio.run(main())
