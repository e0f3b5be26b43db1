import sys

from .cli.main import main

if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main())
