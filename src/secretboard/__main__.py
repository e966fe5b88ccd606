"""secretboard entrypoint.

Run with:
  python -m secretboard
"""

import uvicorn

from secretboard.config import load_settings
from secretboard.logging_config import configure_logging


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "secretboard.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
