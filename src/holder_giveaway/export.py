from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .leaderboard import LeaderboardEntry
from .project_constants import BASE_ENTRIES

RULES = (
    f"Rules: Hold >= dynamic min tokens (100 / 10 / 1), +{BASE_ENTRIES} base entries, "
    "max 10x multiplier, max 10M entries."
)

# (header, width); the last column is unpadded
COLUMNS = (
    ("Rank", 6),
    ("Wallet", 45),
    ("Balance", 15),
    ("% Supply", 12),
    ("Multiplier", 12),
    ("Multiplied", 12),
    ("Base", 8),
    ("Entries", 10),
    ("Current Value", 15),
    ("Source", 12),
    ("Form Required", 0),
)


def format_row(entry: LeaderboardEntry) -> str:
    cells = (
        str(entry.rank),
        entry.wallet,
        str(entry.balance),
        f"{entry.pct:.6f}",
        str(entry.multiplier),
        str(entry.multiplied_entries),
        str(entry.base_entries),
        str(entry.entries),
        f"{entry.current_value:.2f}",
        entry.source,
        "YES" if entry.form_required else "NO",
    )
    return "".join(cell.ljust(width) for cell, (_, width) in zip(cells, COLUMNS))


def render_table(entries: Iterable[LeaderboardEntry], now: Optional[datetime] = None) -> List[str]:
    """Fixed-column leaderboard export, one line per row, rules repeated as footer."""
    now = now or datetime.now(timezone.utc)
    lines = [
        "Leaderboard Snapshot",
        "",
        f"Snapshot Date: {now.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
        "",
        RULES,
        "",
        "".join(header.ljust(width) for header, width in COLUMNS),
    ]
    lines.extend(format_row(e) for e in entries)
    lines.extend(["", RULES])
    return lines
