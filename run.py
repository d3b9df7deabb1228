import logging

import uvicorn

from tweetcache.config import settings

logging.basicConfig(level=logging.INFO, format="%(asctime)s [SYSTEM] %(message)s")


def main():
    logging.info(f"Serving tweet cache on {settings.host}:{settings.port}")
    uvicorn.run("tweetcache.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
