"""
Market-cap milestones.

Two independent one-way latches, checked after every refresh:

* $200M: commit a future slot (finalized slot + SLOT_OFFSET) as the public seed
  of the giveaway draw, and snapshot the leaderboard.
* $300M: write the final airdrop snapshot.

Files are written first and the latch moves to FIRED only once every write has
succeeded, so a failed write is retried on the next refresh. A retry keeps
the slot of a commit already on disk.
"""
from __future__ import annotations

import enum
import json
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import MilestonePersistError, UpstreamFetchError
from .leaderboard import LeaderboardEntry
from .project_constants import (
    AIRDROP_SNAPSHOT_CAP,
    COMMIT_200M_FILE,
    COMMIT_200M_TEST_FILE,
    GIVEAWAY_COMMIT_CAP,
    MILESTONE_FILES,
    SLOT_OFFSET,
    SNAPSHOT_200M_FILE,
    SNAPSHOT_200M_TEST_FILE,
    SNAPSHOT_300M_FILE,
    SNAPSHOT_300M_TEST_FILE,
)

logger = logging.getLogger(__name__)

GIVEAWAY_COMMIT = "200M_commit"
AIRDROP_SNAPSHOT = "300M_snapshot"


class MilestoneState(enum.Enum):
    PENDING = "pending"
    FIRED = "fired"


def _backup_name(filename: str, stamp: str) -> str:
    root, ext = os.path.splitext(filename)
    return f"{root}_{stamp}{ext}"


class MilestoneTracker:
    def __init__(
        self,
        data_dir: str,
        slot_source: Callable[[], int],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.data_dir = data_dir
        self.slot_source = slot_source
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.giveaway = MilestoneState.PENDING
        self.airdrop = MilestoneState.PENDING

    @property
    def state(self) -> Dict[str, bool]:
        return {
            "giveawayCommitted": self.giveaway is MilestoneState.FIRED,
            "airdropDumped": self.airdrop is MilestoneState.FIRED,
        }

    def observe(self, market_cap: float, leaderboard: Sequence[LeaderboardEntry]) -> List[str]:
        """Fire every pending milestone the market cap has reached. Returns fired tags."""
        fired: List[str] = []

        if market_cap >= GIVEAWAY_COMMIT_CAP and self.giveaway is MilestoneState.PENDING:
            try:
                self.commit_200m(market_cap, leaderboard)
            except (MilestonePersistError, UpstreamFetchError):
                logger.exception("[200M LIVE] Commit failed; will retry next refresh")
            else:
                self.giveaway = MilestoneState.FIRED
                fired.append(GIVEAWAY_COMMIT)

        if market_cap >= AIRDROP_SNAPSHOT_CAP and self.airdrop is MilestoneState.PENDING:
            try:
                self.dump_300m(market_cap, leaderboard)
            except MilestonePersistError:
                logger.exception("[300M LIVE] Snapshot failed; will retry next refresh")
            else:
                self.airdrop = MilestoneState.FIRED
                fired.append(AIRDROP_SNAPSHOT)

        return fired

    def commit_200m(
        self,
        market_cap: float,
        leaderboard: Sequence[LeaderboardEntry],
        test: bool = False,
    ) -> Dict[str, Any]:
        """Write the slot commitment and 200M snapshot. Does not touch the latches."""
        slot = None if test else self._committed_slot()
        if slot is None:
            slot = self.slot_source()
        else:
            logger.info("[200M LIVE] Reusing committed slot %d", slot)
        now = self.clock()
        timestamp = now.isoformat()

        commit_record = {
            "trigger": "200M_commit_test" if test else "200M_commit",
            "timestamp": timestamp,
            "marketCap": market_cap,
            "slotCommit": slot,
            "offset": SLOT_OFFSET,
            "futureSlot": slot + SLOT_OFFSET,
        }
        snapshot_record = {
            "trigger": "200M_snapshot_test" if test else "200M_snapshot",
            "timestamp": timestamp,
            "marketCap": market_cap,
            "slot": slot,
            "leaderboard": [e.to_dict() for e in leaderboard],
        }

        if test:
            self._write(COMMIT_200M_TEST_FILE, commit_record)
            self._write(SNAPSHOT_200M_TEST_FILE, snapshot_record)
            logger.info("[200M TEST] Files written: commit + snapshot")
        else:
            stamp = timestamp.replace(":", "-")
            self._write(COMMIT_200M_FILE, commit_record)
            self._write(SNAPSHOT_200M_FILE, snapshot_record)
            self._write(_backup_name(COMMIT_200M_FILE, stamp), commit_record)
            self._write(_backup_name(SNAPSHOT_200M_FILE, stamp), snapshot_record)
            logger.info(
                "[200M LIVE] Commit + snapshot saved with backup (slot=%d, futureSlot=%d)",
                slot,
                slot + SLOT_OFFSET,
            )
        return commit_record

    def dump_300m(
        self,
        market_cap: float,
        leaderboard: Sequence[LeaderboardEntry],
        test: bool = False,
    ) -> Dict[str, Any]:
        """Write the final airdrop snapshot. Does not touch the latches."""
        timestamp = self.clock().isoformat()
        record = {
            "trigger": "300M_snapshot_test" if test else "300M_snapshot",
            "timestamp": timestamp,
            "marketCap": market_cap,
            "leaderboard": [e.to_dict() for e in leaderboard],
        }

        if test:
            self._write(SNAPSHOT_300M_TEST_FILE, record)
            logger.info("[300M TEST] Snapshot written")
        else:
            self._write(SNAPSHOT_300M_FILE, record)
            self._write(_backup_name(SNAPSHOT_300M_FILE, timestamp.replace(":", "-")), record)
            logger.info("[300M LIVE] Snapshot saved with backup")
        return record

    def milestone_path(self, name: str) -> Optional[str]:
        """Path of a persisted milestone file, or None if unknown or not written yet."""
        if name not in MILESTONE_FILES:
            return None
        path = os.path.join(self.data_dir, name)
        return path if os.path.isfile(path) else None

    def _committed_slot(self) -> Optional[int]:
        """slotCommit of a live commit already on disk; a retry must not move it."""
        path = os.path.join(self.data_dir, COMMIT_200M_FILE)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return int(json.load(f)["slotCommit"])
        except (OSError, ValueError, KeyError, TypeError):
            logger.warning("Unreadable %s; committing a fresh slot", path)
            return None

    def _write(self, filename: str, record: Dict[str, Any]) -> None:
        path = os.path.join(self.data_dir, filename)
        tmp = path + ".tmp"
        try:
            os.makedirs(self.data_dir, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2)
            # Readers only ever see the old file or the complete new one
            os.replace(tmp, path)
        except OSError as e:
            if os.path.isfile(tmp):
                os.remove(tmp)
            raise MilestonePersistError(f"Could not write {path}: {e}") from e
