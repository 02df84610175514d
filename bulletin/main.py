"""
Run the API server.

    python -m bulletin.main
    uvicorn bulletin.api.app:app --reload
"""

import uvicorn

from bulletin.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "bulletin.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
