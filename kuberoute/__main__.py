"""Entry point for `python -m kuberoute`.

Usage:
    python -m kuberoute
    uv run python -m kuberoute
"""

from __future__ import annotations

import asyncio

from kuberoute.app import main

asyncio.run(main())
