import uvicorn

from .config import settings
from .logger import logger


def main() -> None:
    logger.info(f"Serving portal on {settings.host}:{settings.port}")
    uvicorn.run("mcportal.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
