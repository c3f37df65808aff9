"""Allow running as ``python -m landing_exporter.cli``."""

from landing_exporter.cli import main

if __name__ == "__main__":
    main()
