#!/usr/bin/env python3
"""
Simple Example: Business Cards from a List of Rows

Builds a template in code, renders one card per row and writes a ZIP.
"""

import asyncio
from pathlib import Path

from autodraw import (
    CanvasConfig,
    CardConfig,
    CardRenderer,
    ImageField,
    OutputConfig,
    Position,
    Settings,
    TextField,
    export_cards,
    write_archive,
)

config = CardConfig(
    canvas=CanvasConfig(width=1050, height=600, background_color="#F7F8FA"),
    output=OutputConfig(filename="{name}_{index:03d}"),
    fields=[
        TextField(text="{name}", position=Position(x=80, y=200), font_size=64, font_weight=700),
        TextField(text="{title} · {company}", position=Position(x=80, y=280), font_size=28, color="#555555"),
        TextField(
            text="{address}",
            position=Position(x=80, y=520),
            anchor="lb",
            font_size=22,
            wrap_width=600,
            color="#777777",
        ),
        ImageField(path="{logo}", position=Position(x=820, y=80), max_width=160, max_height=160),
    ],
)

rows = [
    {"name": "Alice Chen", "title": "Engineer", "company": "Acme", "address": "1 Main St", "logo": "logo.png"},
    {"name": "Bob Li", "title": "Designer", "company": "Acme", "address": "1 Main St", "logo": "logo.png"},
]

# Relative image paths resolve next to this script
renderer = CardRenderer(Settings(base_dir=Path(__file__).parent, substitution_policy="lenient"))

result = asyncio.run(export_cards(config, rows, renderer=renderer))
write_archive(result, Path("cards.zip"))

for warning in result.warnings:
    print(f"  ! {warning}")
print(f"✓ {result.count} card(s) saved to: cards.zip")
