"""Entry point for Theme Sync.

Usage:
    python -m theme_sync deploy [--config PATH]   Send every project file to the uploader
    python -m theme_sync watch  [--config PATH]   Watch the project and send changes
"""

import sys


def main() -> None:
    """Delegate to the service CLI."""
    from theme_sync.service import main as service_main

    sys.exit(service_main())


if __name__ == "__main__":
    main()
