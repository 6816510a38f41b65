from __future__ import annotations

import json
from pathlib import Path

import pytest

from solana_dividends.allocation import AllocationSplit
from solana_dividends.shares import (
    DEFAULT_POLICY,
    HolderBalance,
    distribute_rewards,
)
from solana_dividends.report import (
    build_report,
    load_holders_file,
    verify_report,
    write_report,
)

D6 = 10**6
HOLDERS = [
    HolderBalance("wallet1", 2_500_000 * D6),
    HolderBalance("wallet2", 1_000_000 * D6),
    HolderBalance("wallet3", 30_000_000 * D6),
    HolderBalance("wallet4", 250_000 * D6),
]
POOL = 1000 * D6


def _write(tmp_path: Path, **kwargs) -> Path:
    results = distribute_rewards(HOLDERS, POOL, 6)
    report = build_report(HOLDERS, results, POOL, 6, DEFAULT_POLICY, **kwargs)
    out = tmp_path / "distribution.json"
    write_report(report, str(out))
    return out


def test_build_report_records_dust(tmp_path: Path) -> None:
    out = _write(tmp_path, mint="MintAddr")
    report = json.loads(out.read_text(encoding="utf-8"))
    meta = report["metadata"]
    assert meta["token_mint"] == "MintAddr"
    assert meta["total_shares"] == 57
    assert meta["reward_pool"] == str(POOL)
    assert meta["distributed"] == "999999999"
    assert meta["dust"] == "1"
    assert meta["dust_policy"] == "retained_by_distributor"
    assert "allocation" not in meta
    assert [e["address"] for e in report["distribution"]] == [h.address for h in HOLDERS]
    assert report["distribution"][2] == {
        "address": "wallet3",
        "balance": str(30_000_000 * D6),
        "shares": 50,
        "reward": "877192982",
    }


def test_build_report_with_allocation(tmp_path: Path) -> None:
    out = _write(tmp_path, allocation=AllocationSplit(40 * D6, POOL, 0, 960 * D6))
    meta = json.loads(out.read_text(encoding="utf-8"))["metadata"]
    assert meta["allocation"]["reward_pool"] == str(POOL)
    assert meta["allocation"]["owner"] == str(960 * D6)


def test_verify_report_roundtrip(tmp_path: Path) -> None:
    result = verify_report(str(_write(tmp_path)))
    assert result == {
        "ok": True,
        "holders": 4,
        "total_shares": 57,
        "reward_pool": POOL,
        "distributed": POOL - 1,
        "dust": 1,
    }


def test_verify_report_detects_tampered_reward(tmp_path: Path) -> None:
    out = _write(tmp_path)
    report = json.loads(out.read_text(encoding="utf-8"))
    report["distribution"][0]["reward"] = "87719299"
    out.write_text(json.dumps(report), encoding="utf-8")
    with pytest.raises(RuntimeError, match="Mismatch for wallet1"):
        verify_report(str(out))


def test_verify_report_detects_tampered_dust(tmp_path: Path) -> None:
    out = _write(tmp_path)
    report = json.loads(out.read_text(encoding="utf-8"))
    report["metadata"]["dust"] = "0"
    out.write_text(json.dumps(report), encoding="utf-8")
    with pytest.raises(RuntimeError, match="Dust mismatch"):
        verify_report(str(out))


def test_verify_report_detects_tampered_distributed(tmp_path: Path) -> None:
    out = _write(tmp_path)
    report = json.loads(out.read_text(encoding="utf-8"))
    report["metadata"]["distributed"] = "5"
    out.write_text(json.dumps(report), encoding="utf-8")
    with pytest.raises(RuntimeError, match="Distributed mismatch"):
        verify_report(str(out))


def test_verify_report_not_json(tmp_path: Path) -> None:
    out = tmp_path / "report.json"
    out.write_text("nope", encoding="utf-8")
    with pytest.raises(RuntimeError, match="not valid JSON"):
        verify_report(str(out))


def test_verify_report_malformed(tmp_path: Path) -> None:
    out = tmp_path / "bad.json"
    out.write_text(json.dumps({"metadata": {}, "distribution": []}), encoding="utf-8")
    with pytest.raises(RuntimeError, match="Malformed report"):
        verify_report(str(out))


def test_load_holders_file_list_and_mapping(tmp_path: Path) -> None:
    p = tmp_path / "holders.json"
    p.write_text(
        json.dumps([{"address": "a", "balance": 5}, {"address": "b", "balance": "18446744073709551615"}]),
        encoding="utf-8",
    )
    assert load_holders_file(str(p)) == [
        HolderBalance("a", 5),
        HolderBalance("b", 18446744073709551615),
    ]

    p.write_text(json.dumps({"x": 1, "y": "2"}), encoding="utf-8")
    assert load_holders_file(str(p)) == [HolderBalance("x", 1), HolderBalance("y", 2)]


def test_load_holders_file_merges_repeated_wallets(tmp_path: Path) -> None:
    p = tmp_path / "holders.json"
    p.write_text(
        json.dumps(
            [
                {"address": "a", "balance": 20_000_000 * D6},
                {"address": "b", "balance": 1},
                {"address": "a", "balance": "20000000000000"},
            ]
        ),
        encoding="utf-8",
    )
    holders = load_holders_file(str(p))
    assert holders == [HolderBalance("a", 40_000_000 * D6), HolderBalance("b", 1)]
    # one capped wallet, not two
    assert distribute_rewards(holders, 100, 6)[0].shares == 50


@pytest.mark.parametrize(
    "content",
    ["not json", "42", '[{"address": "a"}]', '{"a": 1.5}', '{"a": "1e6"}', '{"a": true}'],
)
def test_load_holders_file_rejects_bad_input(tmp_path: Path, content: str) -> None:
    p = tmp_path / "holders.json"
    p.write_text(content, encoding="utf-8")
    with pytest.raises(RuntimeError):
        load_holders_file(str(p))
