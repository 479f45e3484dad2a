"""Run the API with uvicorn: ``python -m coursemarket``."""

import uvicorn

from coursemarket.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "coursemarket.main:app",
        host=settings.api_host,
        port=settings.api_port,
        workers=settings.api_workers,
        reload=settings.api_reload and settings.is_development,
        log_config=None,
    )


if __name__ == "__main__":
    main()
