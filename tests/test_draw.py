"""Tests for the slot-seeded draw and checking its audit against the milestone files."""

from __future__ import annotations

import json

import pytest

from holder_giveaway.draw import (
    eligible_from_snapshot,
    run_draw,
    ticket_owner,
    ticket_table,
    winning_ticket,
)
from holder_giveaway.errors import AuditMismatch
from holder_giveaway.project_constants import COMMIT_200M_FILE, SNAPSHOT_200M_FILE
from holder_giveaway.verify import verify_audit

from conftest import FIXED_NOW, WALLET_A, WALLET_B, WALLET_C

BLOCKHASH = "5Hq1futureSlotBlockhash"

SNAPSHOT = [
    {"rank": 2, "wallet": "b", "entries": 2},
    {"rank": 1, "wallet": "a", "entries": 3},
    {"rank": 3, "wallet": "c", "entries": 0},
]


# ---------------------------------------------------------------------------
# Ticket table
# ---------------------------------------------------------------------------


def test_eligible_in_rank_order_without_zero_entries() -> None:
    assert eligible_from_snapshot(SNAPSHOT) == [("a", 3), ("b", 2)]


def test_ticket_table_blocks() -> None:
    table = ticket_table(eligible_from_snapshot(SNAPSHOT))
    assert [(e.wallet, e.first_ticket, e.last_ticket) for e in table] == [
        ("a", 0, 2),
        ("b", 3, 4),
    ]


@pytest.mark.parametrize("ticket, wallet", [(0, "a"), (2, "a"), (3, "b"), (4, "b")])
def test_ticket_owner(ticket: int, wallet: str) -> None:
    table = ticket_table(eligible_from_snapshot(SNAPSHOT))
    assert ticket_owner(table, ticket).wallet == wallet


@pytest.mark.parametrize("ticket", [-1, 5])
def test_ticket_outside_table(ticket: int) -> None:
    table = ticket_table(eligible_from_snapshot(SNAPSHOT))
    with pytest.raises(ValueError):
        ticket_owner(table, ticket)


def test_winning_ticket_is_deterministic() -> None:
    ticket, digest = winning_ticket(BLOCKHASH, 1_000)
    assert (ticket, digest) == winning_ticket(BLOCKHASH, 1_000)
    assert int(digest, 16) % 1_000 == ticket


# ---------------------------------------------------------------------------
# Draw from milestone files
# ---------------------------------------------------------------------------


@pytest.fixture()
def milestone_files(tracker, board, tmp_path):
    """Live 200M commit + snapshot as written by the tracker (slot 1000)."""
    tracker.observe(200_000_000, board)
    return tmp_path / COMMIT_200M_FILE, tmp_path / SNAPSHOT_200M_FILE


def _load(path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def _write_audit(commit_path, snapshot_path, out) -> dict:
    result = run_draw(_load(commit_path), _load(snapshot_path), BLOCKHASH)
    audit = result.to_audit(str(commit_path), str(snapshot_path), FIXED_NOW.isoformat())
    out.write_text(json.dumps(audit), encoding="utf-8")
    return audit


def test_draw_over_tracker_snapshot(milestone_files) -> None:
    commit_path, snapshot_path = milestone_files
    result = run_draw(_load(commit_path), _load(snapshot_path), BLOCKHASH)

    # WALLET_B holds 5 tokens, below minTokens, so it holds no tickets
    assert [(e.wallet, e.entries) for e in result.entrants] == [
        (WALLET_A, 500_500),
        (WALLET_C, 10_500),
    ]
    assert WALLET_B not in {e.wallet for e in result.entrants}
    assert result.total_entries == 511_000
    assert result.future_slot == 1_500
    assert result.slot_commit == 1_000
    assert result.winner.first_ticket <= result.winning_ticket <= result.winner.last_ticket


def test_draw_rejects_snapshot_from_other_firing(milestone_files) -> None:
    commit_path, snapshot_path = milestone_files
    snapshot = _load(snapshot_path)
    snapshot["slot"] = 999

    with pytest.raises(ValueError, match="does not match committed slot"):
        run_draw(_load(commit_path), snapshot, BLOCKHASH)


def test_draw_needs_entries(milestone_files) -> None:
    commit_path, snapshot_path = milestone_files
    snapshot = _load(snapshot_path)
    snapshot["leaderboard"] = []

    with pytest.raises(ValueError, match="No eligible entries"):
        run_draw(_load(commit_path), snapshot, BLOCKHASH)


# ---------------------------------------------------------------------------
# Audit verification
# ---------------------------------------------------------------------------


def test_verify_against_milestone_files(milestone_files, tmp_path) -> None:
    commit_path, snapshot_path = milestone_files
    audit = _write_audit(commit_path, snapshot_path, tmp_path / "audit.json")

    result = verify_audit(str(tmp_path / "audit.json"), str(commit_path), str(snapshot_path))
    assert result.winner.wallet == audit["winner"]["wallet"]
    assert result.future_slot == audit["metadata"]["future_slot"] == 1_500


def test_verify_rejects_moved_future_slot(milestone_files, tmp_path) -> None:
    commit_path, snapshot_path = milestone_files
    audit_path = tmp_path / "audit.json"
    audit = _write_audit(commit_path, snapshot_path, audit_path)
    audit["metadata"]["future_slot"] = 2_500
    audit_path.write_text(json.dumps(audit), encoding="utf-8")

    with pytest.raises(AuditMismatch, match="future_slot"):
        verify_audit(str(audit_path), str(commit_path), str(snapshot_path))


def test_verify_rejects_entrants_not_in_snapshot(milestone_files, tmp_path) -> None:
    commit_path, snapshot_path = milestone_files
    audit_path = tmp_path / "audit.json"
    audit = _write_audit(commit_path, snapshot_path, audit_path)
    audit["all_entrants"][0]["entries"] += 1
    audit_path.write_text(json.dumps(audit), encoding="utf-8")

    with pytest.raises(AuditMismatch, match="all_entrants"):
        verify_audit(str(audit_path), str(commit_path), str(snapshot_path))


def test_verify_rejects_tampered_winner(milestone_files, tmp_path) -> None:
    commit_path, snapshot_path = milestone_files
    audit_path = tmp_path / "audit.json"
    audit = _write_audit(commit_path, snapshot_path, audit_path)
    audit["winner"]["wallet"] = WALLET_C if audit["winner"]["wallet"] == WALLET_A else WALLET_A
    audit_path.write_text(json.dumps(audit), encoding="utf-8")

    with pytest.raises(AuditMismatch, match="winner"):
        verify_audit(str(audit_path), str(commit_path), str(snapshot_path))


def test_verify_rejects_swapped_snapshot(milestone_files, tmp_path) -> None:
    commit_path, snapshot_path = milestone_files
    _write_audit(commit_path, snapshot_path, tmp_path / "audit.json")
    snapshot = _load(snapshot_path)
    snapshot["leaderboard"] = [e for e in snapshot["leaderboard"] if e["wallet"] != WALLET_C]
    snapshot_path.write_text(json.dumps(snapshot), encoding="utf-8")

    with pytest.raises(AuditMismatch, match="all_entrants"):
        verify_audit(str(tmp_path / "audit.json"), str(commit_path), str(snapshot_path))
