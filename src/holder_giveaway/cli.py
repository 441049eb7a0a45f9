from __future__ import annotations

import argparse
import json
import logging
import os
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, FrozenSet, Iterator, Tuple

from .cache import LeaderboardCache
from .config import Settings
from .draw import run_draw
from .errors import AuditMismatch
from .export import render_table
from .milestones import MilestoneTracker
from .project_constants import COMMIT_200M_FILE, SNAPSHOT_200M_FILE
from .price import PriceOracle
from .rpc import RpcClient
from .scheduler import RefreshScheduler
from .token_accounts import build_blacklist
from .verify import verify_audit
from .views import (
    milestone_trigger_view,
    snapshot_full_view,
    snapshot_minimal_view,
    status_view,
    wallet_view,
)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@dataclass
class Service:
    settings: Settings
    blacklist: FrozenSet[str]
    cache: LeaderboardCache
    tracker: MilestoneTracker
    scheduler: RefreshScheduler


@contextmanager
def open_service(settings: Settings) -> Iterator[Service]:
    rpc = RpcClient(settings.rpc_url, timeout_s=settings.timeout_s)
    slot_rpc = RpcClient(settings.slot_rpc_url, timeout_s=settings.timeout_s)
    oracle = PriceOracle(settings.token_mint, timeout_s=settings.timeout_s)
    try:
        blacklist = build_blacklist(settings.blacklist_file)
        cache = LeaderboardCache()
        tracker = MilestoneTracker(settings.data_dir, slot_source=slot_rpc.get_slot)
        scheduler = RefreshScheduler(settings, rpc, oracle, tracker, cache, blacklist)
        yield Service(settings, blacklist, cache, tracker, scheduler)
    finally:
        oracle.close()
        slot_rpc.close()
        rpc.close()


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(rpc_url_override=args.rpc_url)


def _dump(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _refresh_or_fail(svc: Service) -> None:
    if not svc.scheduler.run_once():
        raise SystemExit("Refresh failed; see log above.")


def cmd_refresh(args: argparse.Namespace) -> int:
    with open_service(_settings(args)) as svc:
        _refresh_or_fail(svc)
        status, _ = status_view(svc.cache, svc.tracker)
        _dump(status)
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    stop = threading.Event()
    with open_service(_settings(args)) as svc:
        try:
            svc.scheduler.run_forever(stop)
        except KeyboardInterrupt:
            stop.set()
    return 0


def cmd_lookup(args: argparse.Namespace) -> int:
    with open_service(_settings(args)) as svc:
        _refresh_or_fail(svc)
        payload, code = wallet_view(svc.cache, args.wallet, svc.blacklist)
        _dump(payload)
    return 0 if code == 200 else 1


def cmd_snapshot(args: argparse.Namespace) -> int:
    with open_service(_settings(args)) as svc:
        _refresh_or_fail(svc)
        view = snapshot_minimal_view if args.minimal else snapshot_full_view
        payload, _ = view(svc.cache)
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    print(f"🧾 Wrote snapshot: {args.out} ({len(payload)} holders)")
    return 0


def cmd_table(args: argparse.Namespace) -> int:
    with open_service(_settings(args)) as svc:
        _refresh_or_fail(svc)
        lines = render_table(svc.cache.ready_snapshot().entries)
    with open(args.out, "w", encoding="utf-8") as f:
        f.write("\n".join(lines) + "\n")
    print(f"🧾 Wrote leaderboard table: {args.out}")
    return 0


def cmd_test_milestone(args: argparse.Namespace) -> int:
    with open_service(_settings(args)) as svc:
        if args.refresh:
            _refresh_or_fail(svc)
        payload, code = milestone_trigger_view(svc.tracker, svc.cache, args.which)
        _dump(payload)
    return 0 if code == 200 else 1


def _milestone_paths(args: argparse.Namespace, settings: Settings) -> Tuple[str, str]:
    commit = args.commit or os.path.join(settings.data_dir, COMMIT_200M_FILE)
    snapshot = args.snapshot or os.path.join(settings.data_dir, SNAPSHOT_200M_FILE)
    return commit, snapshot


def cmd_draw(args: argparse.Namespace) -> int:
    settings = _settings(args)
    log = logging.getLogger("draw")
    commit_path, snapshot_path = _milestone_paths(args, settings)

    with open(commit_path, "r", encoding="utf-8") as f:
        commit = json.load(f)
    with open(snapshot_path, "r", encoding="utf-8") as f:
        snapshot = json.load(f)

    rpc = RpcClient(settings.slot_rpc_url, timeout_s=settings.timeout_s)
    try:
        blockhash = rpc.get_blockhash_for_slot(int(commit["futureSlot"]))
    finally:
        rpc.close()
    log.info("Seed (blockhash): %s", blockhash)

    try:
        result = run_draw(commit, snapshot, blockhash)
    except ValueError as e:
        raise SystemExit(f"Cannot draw: {e}")
    log.info("Eligible entrants : %d", len(result.entrants))
    log.info("Total entries     : %d", result.total_entries)

    audit = result.to_audit(
        commit_path, snapshot_path, datetime.now(timezone.utc).isoformat()
    )
    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("🔒 GIVEAWAY DRAW")
    print("========================================")
    print(f"Future slot   : {result.future_slot}")
    print(f"Seed          : {result.blockhash}")
    print(f"Seed SHA-256  : {result.seed_hash_hex}")
    print("----------------------------------------")
    print("🏆 WINNER")
    print(f"Wallet        : {result.winner.wallet}")
    print(f"Entries       : {result.winner.entries}")
    print(f"Winning ticket: {result.winning_ticket} / {result.total_entries}")
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    commit_path, snapshot_path = _milestone_paths(args, _settings(args))
    try:
        result = verify_audit(args.audit, commit_path, snapshot_path)
    except AuditMismatch as e:
        print(f"❌ AUDIT REJECTED: {e}")
        return 1
    print("✅ AUDIT VERIFIED")
    print(f"Future slot   : {result.future_slot}")
    print(f"Winner        : {result.winner.wallet}")
    print(f"Winning ticket: {result.winning_ticket}")
    print(f"Total entries : {result.total_entries}")
    print(f"Seed SHA-256  : {result.seed_hash_hex}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="holder-giveaway",
        description="Token-holder giveaway leaderboard and milestone snapshots.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")

    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("refresh", help="Run one refresh cycle and print its status.")
    r.set_defaults(func=cmd_refresh)

    run = sub.add_parser("run", help="Refresh now and then on the update interval.")
    run.set_defaults(func=cmd_run)

    lk = sub.add_parser("lookup", help="Refresh, then show one wallet's entries.")
    lk.add_argument("--wallet", required=True, help="Wallet address.")
    lk.set_defaults(func=cmd_lookup)

    s = sub.add_parser("snapshot", help="Refresh, then write the leaderboard as JSON.")
    s.add_argument("--out", default="snapshot.json", help="Output JSON path.")
    s.add_argument(
        "--minimal",
        action="store_true",
        help="Only wallet, entries, balance and rank.",
    )
    s.set_defaults(func=cmd_snapshot)

    t = sub.add_parser("table", help="Refresh, then write the fixed-column leaderboard.")
    t.add_argument("--out", default="leaderboard.txt", help="Output text path.")
    t.set_defaults(func=cmd_table)

    for which in ("200m", "300m"):
        tm = sub.add_parser(
            f"test-{which}",
            help=f"Write the ${which.upper()} milestone *_test.json files.",
        )
        tm.add_argument(
            "--refresh",
            action="store_true",
            help="Refresh first so the test snapshot carries a leaderboard.",
        )
        tm.set_defaults(func=cmd_test_milestone, which=which)

    d = sub.add_parser("draw", help="Draw a winner from the committed 200M snapshot.")
    d.add_argument("--commit", default=None, help="Commit record path (else DATA_DIR).")
    d.add_argument("--snapshot", default=None, help="Snapshot path (else DATA_DIR).")
    d.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    d.set_defaults(func=cmd_draw)

    v = sub.add_parser(
        "verify", help="Check an audit.json against the 200M milestone files."
    )
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.add_argument("--commit", default=None, help="Commit record path (else DATA_DIR).")
    v.add_argument("--snapshot", default=None, help="Snapshot path (else DATA_DIR).")
    v.set_defaults(func=cmd_verify)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
