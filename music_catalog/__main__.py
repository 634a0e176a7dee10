"""Run the API with uvicorn: ``python -m music_catalog``."""
import uvicorn

from music_catalog.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "music_catalog.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
