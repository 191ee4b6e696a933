"""Run the service with uvicorn on the configured HOST and PORT."""

import uvicorn

from tinyurl.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("tinyurl.main:app", host=settings.HOST, port=settings.PORT, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
