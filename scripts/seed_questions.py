import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db.session import AsyncSessionLocal, init_models
from db.seed import load_catalog
from services.question_bank import QuestionBank
from utils.parser import ParserError
from core.logger import setup_logging, logger

async def seed(path: str = None):
    await init_models()
    try:
        catalog = load_catalog(path)
    except ParserError as e:
        print(f"❌ {e}")
        return 1

    async with AsyncSessionLocal() as session:
        inserted = await QuestionBank(session).seed_if_empty(catalog)

    if inserted:
        print(f"✅ Inserted {inserted} questions.")
    else:
        print("Questions table is not empty, nothing inserted.")
        logger.info("Seed skipped, catalog already present")
    return 0

if __name__ == "__main__":
    setup_logging()
    if os.name == 'nt':
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    sys.exit(asyncio.run(seed(sys.argv[1] if len(sys.argv) > 1 else None)))
