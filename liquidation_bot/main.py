"""Allows ``python -m liquidation_bot.main``."""
from .cli import main

if __name__ == "__main__":
    main()
