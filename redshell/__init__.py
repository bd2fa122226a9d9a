"""RedShell: judge job deliverables and record verdicts on-chain."""

from __future__ import annotations

__version__ = "0.1.0"
