from __future__ import annotations

import json
from unittest.mock import patch

from holder_giveaway.cli import build_parser, cmd_test_milestone, cmd_verify
from holder_giveaway.project_constants import COMMIT_200M_FILE, SNAPSHOT_200M_FILE

from test_draw import _write_audit


def test_parser_routes_milestone_tests() -> None:
    args = build_parser().parse_args(["test-300m", "--refresh"])
    assert args.func is cmd_test_milestone
    assert args.which == "300m"
    assert args.refresh is True


def test_test_200m_writes_test_files(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("DEFAULT_TOKEN", "MINT")
    monkeypatch.setenv("RPC_URL", "http://rpc.test")
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    args = build_parser().parse_args(["test-200m"])

    with patch("holder_giveaway.cli.RpcClient.get_slot", return_value=42):
        assert args.func(args) == 0

    out = json.loads(capsys.readouterr().out)
    assert out["ok"] is True
    assert out["record"]["futureSlot"] == 542
    assert (tmp_path / "200M_commit_test.json").exists()
    assert not (tmp_path / "200M_commit.json").exists()


def test_verify_command_reads_data_dir(monkeypatch, tracker, board, tmp_path, capsys) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    tracker.observe(200_000_000, board)
    _write_audit(
        tmp_path / COMMIT_200M_FILE, tmp_path / SNAPSHOT_200M_FILE, tmp_path / "audit.json"
    )
    args = build_parser().parse_args(["verify", "--audit", str(tmp_path / "audit.json")])

    assert cmd_verify(args) == 0
    out = capsys.readouterr().out
    assert "AUDIT VERIFIED" in out
    assert "Future slot   : 1500" in out


def test_verify_command_rejects_mismatch(monkeypatch, tracker, board, tmp_path, capsys) -> None:
    monkeypatch.setenv("DATA_DIR", str(tmp_path))
    tracker.observe(200_000_000, board)
    audit = _write_audit(
        tmp_path / COMMIT_200M_FILE, tmp_path / SNAPSHOT_200M_FILE, tmp_path / "audit.json"
    )
    audit["metadata"]["future_slot"] += 1
    (tmp_path / "audit.json").write_text(json.dumps(audit), encoding="utf-8")
    args = build_parser().parse_args(["verify", "--audit", str(tmp_path / "audit.json")])

    assert cmd_verify(args) == 1
    assert "AUDIT REJECTED" in capsys.readouterr().out
