"""Entry point for `python -m kubereports`.

Usage:
    python -m kubereports
    uv run python -m kubereports
"""

from __future__ import annotations

import asyncio

from kubereports.app import main

asyncio.run(main())
