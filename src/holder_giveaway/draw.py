"""
Giveaway draw over the $200M milestone files.

The commit file fixes a future slot before anyone knows its blockhash. Once
that slot is produced, every entrant of the 200M snapshot holds a block of
tickets as wide as its entries (rank order), and the winning ticket is
sha256(blockhash) modulo the total. Anyone holding the two milestone files
and the blockhash can re-run the draw.
"""
from __future__ import annotations

import hashlib
from bisect import bisect_left
from dataclasses import dataclass
from itertools import accumulate
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class Entrant:
    wallet: str
    entries: int
    first_ticket: int
    last_ticket: int  # inclusive

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wallet": self.wallet,
            "entries": self.entries,
            "firstTicket": self.first_ticket,
            "lastTicket": self.last_ticket,
        }


@dataclass(frozen=True)
class DrawResult:
    slot_commit: int
    future_slot: int
    blockhash: str
    seed_hash_hex: str
    total_entries: int
    winning_ticket: int
    winner: Entrant
    entrants: Tuple[Entrant, ...]

    def to_audit(self, commit_file: str, snapshot_file: str, generated_at: str) -> Dict[str, Any]:
        return {
            "metadata": {
                "tool": "holder-giveaway",
                "generated_at_utc": generated_at,
                "commit_file": commit_file,
                "snapshot_file": snapshot_file,
                "slot_commit": self.slot_commit,
                "future_slot": self.future_slot,
                "seed_blockhash": self.blockhash,
                "seed_hash_hex": self.seed_hash_hex,
                "total_entries": self.total_entries,
                "winning_ticket": self.winning_ticket,
            },
            "winner": self.winner.to_dict(),
            "all_entrants": [e.to_dict() for e in self.entrants],
        }


def eligible_from_snapshot(leaderboard: Iterable[Mapping[str, Any]]) -> List[Tuple[str, int]]:
    """(wallet, entries) pairs in rank order; wallets with no entries are skipped."""
    rows = sorted(leaderboard, key=lambda e: int(e["rank"]))
    return [(e["wallet"], int(e["entries"])) for e in rows if int(e["entries"]) > 0]


def ticket_table(eligible: Sequence[Tuple[str, int]]) -> List[Entrant]:
    ends = list(accumulate(entries for _, entries in eligible))
    return [
        Entrant(wallet, entries, end - entries, end - 1)
        for (wallet, entries), end in zip(eligible, ends)
    ]


def winning_ticket(blockhash: str, total_entries: int) -> Tuple[int, str]:
    digest = hashlib.sha256(blockhash.encode("utf-8")).hexdigest()
    return int(digest, 16) % total_entries, digest


def ticket_owner(table: Sequence[Entrant], ticket: int) -> Entrant:
    if not table or not 0 <= ticket <= table[-1].last_ticket:
        raise ValueError(f"Ticket {ticket} is outside the ticket table")
    return table[bisect_left([e.last_ticket for e in table], ticket)]


def run_draw(commit: Mapping[str, Any], snapshot: Mapping[str, Any], blockhash: str) -> DrawResult:
    """Draw from a 200M commit/snapshot pair; they must come from the same firing."""
    slot_commit = int(commit["slotCommit"])
    if int(snapshot["slot"]) != slot_commit:
        raise ValueError(
            f"Snapshot slot {snapshot['slot']} does not match committed slot {slot_commit}"
        )

    table = ticket_table(eligible_from_snapshot(snapshot["leaderboard"]))
    if not table:
        raise ValueError("No eligible entries in snapshot")
    total = table[-1].last_ticket + 1

    ticket, digest = winning_ticket(blockhash, total)
    return DrawResult(
        slot_commit=slot_commit,
        future_slot=int(commit["futureSlot"]),
        blockhash=blockhash,
        seed_hash_hex=digest,
        total_entries=total,
        winning_ticket=ticket,
        winner=ticket_owner(table, ticket),
        entrants=tuple(table),
    )
