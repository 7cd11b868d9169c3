"""Process entry point.

Builds the settings snapshot once, configures logging and hands control to
the server lifecycle. Exits non-zero only if the listening port cannot be
bound.
"""

from __future__ import annotations

import sys

from src.config.settings import ServiceSettings
from src.logging_config import configure_logging
from src.server import ServerLifecycle


def main() -> None:
    settings = ServiceSettings()
    configure_logging(settings.log_level)
    sys.exit(ServerLifecycle(settings).run())


if __name__ == "__main__":
    main()
