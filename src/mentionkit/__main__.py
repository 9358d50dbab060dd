"""Allow ``python -m mentionkit`` to launch the demo editor."""

from .app import main

if __name__ == "__main__":
    main()
