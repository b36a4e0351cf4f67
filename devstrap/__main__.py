"""Allow running devstrap as a module: python -m devstrap"""

from devstrap.cli.parser import main

if __name__ == "__main__":
    main()
