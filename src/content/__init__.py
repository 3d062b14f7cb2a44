"""
Built-in content for the adventure shell.
"""

from __future__ import annotations

from src.content.demo_adventure import DEMO_ADVENTURE_ID, create_demo_adventure

__all__ = ["DEMO_ADVENTURE_ID", "create_demo_adventure"]
