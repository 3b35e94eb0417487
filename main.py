import asyncio

from core.config import settings
from core.logger import setup_logging, logger


async def start_api():
    import uvicorn
    from api.main import app
    config = uvicorn.Config(
        app,
        host=settings.API_HOST,
        port=settings.API_PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


async def main():
    # Setup structured logging
    setup_logging()
    # For multiple workers run 'uvicorn api.main:app --workers N' with REDIS_URL set
    logger.info("Starting API...", env=settings.ENV, host=settings.API_HOST, port=settings.API_PORT)
    await start_api()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logger.info("Application stopped.")
