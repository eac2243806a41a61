"""Allow ``python -m wifiproxy``."""

from wifiproxy.cli import main

if __name__ == "__main__":
    main()
