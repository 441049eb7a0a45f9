"""Check a draw audit against the 200M milestone files it was drawn from."""
from __future__ import annotations

import json
from typing import Any, Dict

from .draw import DrawResult, eligible_from_snapshot, run_draw
from .errors import AuditMismatch


def _load(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _expect(field: str, audit_value: Any, actual: Any) -> None:
    if audit_value != actual:
        raise AuditMismatch(f"{field} mismatch: audit={audit_value!r} recomputed={actual!r}")


def verify_audit(audit_path: str, commit_path: str, snapshot_path: str) -> DrawResult:
    """
    Re-run the draw from the commit and snapshot files and compare every field
    of the audit. Only the blockhash is taken from the audit itself; it is
    public on-chain data for the committed slot.
    """
    audit = _load(audit_path)
    commit = _load(commit_path)
    snapshot = _load(snapshot_path)
    meta = audit["metadata"]

    _expect("future_slot", meta["future_slot"], int(commit["futureSlot"]))
    _expect("slot_commit", meta["slot_commit"], int(commit["slotCommit"]))

    claimed = [(e["wallet"], int(e["entries"])) for e in audit["all_entrants"]]
    eligible = eligible_from_snapshot(snapshot["leaderboard"])
    if claimed != eligible:
        raise AuditMismatch(
            f"all_entrants mismatch: audit lists {len(claimed)} entrants, "
            f"snapshot yields {len(eligible)}"
        )

    try:
        result = run_draw(commit, snapshot, meta["seed_blockhash"])
    except ValueError as e:
        raise AuditMismatch(str(e)) from e

    _expect("total_entries", meta["total_entries"], result.total_entries)
    _expect("seed_hash_hex", meta["seed_hash_hex"], result.seed_hash_hex)
    _expect("winning_ticket", meta["winning_ticket"], result.winning_ticket)
    _expect("winner", audit["winner"]["wallet"], result.winner.wallet)
    return result
