#!/usr/bin/env python3
"""
Portfolio Tracker
Entry point for ``python -m portfolio_tracker.main``
"""
from .cli import main

if __name__ == "__main__":
    main()
