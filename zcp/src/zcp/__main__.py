"""
ZCP CLI Entry Point

Run with: python -m zcp
"""

from zcp.cli.main import main

if __name__ == "__main__":
    main()
