"""
Module 07 - CLI Tests
Tests for merkledrop_cli/main.py and the command modules.

Tests:
- allowlist -> generate -> verify -> proof -> split round trip
- Signed generation with the key from the environment
- Exit codes for runtime errors and verification failures
"""
import json

import pytest
import yaml

from core.config import DropConfig
from merkledrop_cli.config import load_config
from merkledrop_cli.main import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED, main
from orchestrator.artifacts.io import load_distribution, save_distribution

from fixtures.common import (
    TEST_CHAIN_ID,
    TEST_CONTRACT,
    TEST_SIGNER_ADDRESS,
    make_address,
    write_csv,
)


DOMAIN_ARGS = ["--contract", TEST_CONTRACT, "--chain-id", str(TEST_CHAIN_ID)]


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Run every CLI test in an empty directory with no signing key."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("PRIVATE_KEY", raising=False)
    return tmp_path


@pytest.fixture
def input_csv(workdir):
    rows = [(make_address(i), f"{i}.5") for i in range(1, 6)]
    return write_csv(workdir / "allowlist.csv", rows)


def run_json(capsys, argv):
    code = main(argv)
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


class TestGenerate:
    """Tests for the generate command."""

    def test_unsigned(self, capsys, workdir, input_csv):
        code, data = run_json(capsys, ["generate", "-i", str(input_csv), "--unsigned", "-o", "build", "--json"])
        assert code == EXIT_SUCCESS
        assert data["total_entries"] == 5
        assert data["token_total"] == str(sum(i * 10**18 + 5 * 10**17 for i in range(1, 6)))
        assert "signer" not in data
        assert (workdir / "build" / "distribution.json").exists()
        assert (workdir / "build" / "tree.json").exists()

    def test_signed(self, capsys, workdir, input_csv, signing_key):
        code, data = run_json(capsys, ["generate", "-i", str(input_csv), "--json", *DOMAIN_ARGS])
        assert code == EXIT_SUCCESS
        assert data["signer"] == TEST_SIGNER_ADDRESS
        assert load_distribution(workdir / "distribution.json").signed

    def test_signed_without_key(self, capsys, input_csv):
        code = main(["generate", "-i", str(input_csv), *DOMAIN_ARGS])
        assert code == EXIT_RUNTIME_ERROR
        assert "PRIVATE_KEY" in capsys.readouterr().err

    def test_no_domain_fails(self, capsys, workdir, input_csv):
        assert main(["generate", "-i", str(input_csv)]) == EXIT_RUNTIME_ERROR
        assert "--unsigned" in capsys.readouterr().err
        assert not (workdir / "distribution.json").exists()
        assert not (workdir / "tree.json").exists()

    def test_unsigned_flag_skips_key(self, capsys, workdir, input_csv):
        code = main(["generate", "-i", str(input_csv), "--unsigned", "--no-tree", *DOMAIN_ARGS])
        assert code == EXIT_SUCCESS
        assert not (workdir / "tree.json").exists()
        assert not load_distribution(workdir / "distribution.json").signed

    def test_decimals(self, capsys, workdir):
        path = write_csv(workdir / "in.csv", [(make_address(1), "2.5")])
        code, data = run_json(capsys, ["generate", "-i", str(path), "--unsigned", "-d", "6", "--json"])
        assert code == EXIT_SUCCESS
        assert data["token_total"] == "2500000"

    def test_duplicates(self, capsys, workdir):
        path = write_csv(workdir / "in.csv", [(make_address(1), "1"), (make_address(1), "2")])
        assert main(["generate", "-i", str(path), "--unsigned"]) == EXIT_RUNTIME_ERROR
        capsys.readouterr()

        code, data = run_json(capsys, ["generate", "-i", str(path), "--unsigned", "--duplicates", "keep_last", "--json"])
        assert code == EXIT_SUCCESS
        assert data["token_total"] == str(2 * 10**18)

    def test_bad_row(self, capsys, workdir):
        path = write_csv(workdir / "in.csv", [(make_address(1), "1"), ("nope", "1")])
        assert main(["generate", "-i", str(path), "--unsigned"]) == EXIT_RUNTIME_ERROR
        assert "Row 3" in capsys.readouterr().err

    def test_missing_input(self, capsys):
        assert main(["generate", "-i", "missing.csv", "--unsigned"]) == EXIT_RUNTIME_ERROR

    def test_run_config(self, capsys, workdir, input_csv):
        write_csv(input_csv, [(make_address(1), "7")])
        run_config = workdir / "run.yaml"
        run_config.write_text(yaml.safe_dump({"input": {"path": str(input_csv), "decimals": 0}}))
        code, data = run_json(capsys, ["generate", "--run-config", str(run_config), "--unsigned", "--json"])
        assert code == EXIT_SUCCESS
        assert data["token_total"] == "7"


class TestVerify:
    """Tests for the verify command."""

    def test_round_trip(self, capsys, workdir, input_csv, signing_key):
        main(["generate", "-i", str(input_csv), *DOMAIN_ARGS])
        capsys.readouterr()

        code, data = run_json(capsys, [
            "verify", "distribution.json", "--signer", TEST_SIGNER_ADDRESS, *DOMAIN_ARGS, "--json",
        ])
        assert code == EXIT_SUCCESS
        assert data["ok"] is True
        assert data["signatures_checked"] is True

    def test_tampered(self, capsys, workdir, input_csv):
        main(["generate", "-i", str(input_csv), "--unsigned"])
        distribution = load_distribution(workdir / "distribution.json")
        address = next(iter(distribution.claims))
        record = distribution.claims[address]
        distribution.claims[address] = record.model_copy(update={"amount": str(record.amount_int + 1)})
        save_distribution(distribution, workdir / "distribution.json")
        capsys.readouterr()

        assert main(["verify"]) == EXIT_VERIFICATION_FAILED

    def test_missing_file(self, capsys):
        assert main(["verify", "nope.json"]) == EXIT_RUNTIME_ERROR

    def test_signer_without_domain(self, capsys, input_csv):
        main(["generate", "-i", str(input_csv), "--unsigned"])
        assert main(["verify", "--signer", TEST_SIGNER_ADDRESS]) == EXIT_RUNTIME_ERROR


class TestProof:
    """Tests for the proof command."""

    @pytest.fixture
    def generated(self, capsys, input_csv):
        main(["generate", "-i", str(input_csv), "--unsigned"])
        capsys.readouterr()

    def test_valid(self, capsys, generated):
        code, data = run_json(capsys, ["proof", make_address(2), "--json"])
        assert code == EXIT_SUCCESS
        assert data["valid"] is True
        assert data["claim"]["amount"] == str(25 * 10**17)

    def test_human_output(self, capsys, generated):
        assert main(["proof", make_address(2).upper().replace("0X", "0x")]) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "valid: true" in out
        assert "expected_root:" in out

    def test_wrong_amount(self, capsys, generated):
        assert main(["proof", make_address(2), "1"]) == EXIT_VERIFICATION_FAILED

    def test_not_found(self, capsys, generated):
        code, data = run_json(capsys, ["proof", make_address(77), "--json"])
        assert code == EXIT_RUNTIME_ERROR
        assert data["error_codes"] == ["CLAIM_NOT_FOUND"]

    def test_non_integer_amount(self, capsys, generated):
        assert main(["proof", make_address(2), "2.5"]) == EXIT_RUNTIME_ERROR


class TestSplitAndAllowlist:
    """Tests for split and allowlist."""

    def test_allowlist_then_generate_then_split(self, capsys, workdir):
        assert main(["allowlist", "--out", "data/list.csv", "--count", "7", "--seed", "5"]) == EXIT_SUCCESS
        assert main(["generate", "-i", "data/list.csv", "--unsigned"]) == EXIT_SUCCESS
        capsys.readouterr()

        code, data = run_json(capsys, ["split", "--out-dir", "claims", "--json"])
        assert code == EXIT_SUCCESS
        assert data["files"] == 7
        assert len(list((workdir / "claims").glob("*.json"))) == 7

    def test_allowlist_invalid_range(self, capsys):
        assert main(["allowlist", "--min", "5", "--max", "1"]) == EXIT_RUNTIME_ERROR

    def test_split_missing_distribution(self, capsys):
        assert main(["split"]) == EXIT_RUNTIME_ERROR


class TestConfigCommand:
    """Tests for the config command and CLI config loading."""

    def test_init_and_load(self, capsys, workdir):
        assert main(["config", "--init"]) == EXIT_SUCCESS
        config = load_config()
        assert config.distribution_path == "distribution.json"
        assert config.run_config is None
        assert main(["config", "--init"]) == EXIT_RUNTIME_ERROR

    def test_init_run(self, capsys, workdir):
        assert main(["config", "--init-run", "run.yaml"]) == EXIT_SUCCESS
        config = DropConfig.from_yaml(workdir / "run.yaml")
        assert config.to_dict() == DropConfig().to_dict()

    def test_show(self, capsys):
        code, data = run_json(capsys, ["config", "--show"])
        assert code == EXIT_SUCCESS
        assert data["run"]["input"]["decimals"] == 18

    def test_env_overrides_file(self, workdir, monkeypatch):
        (workdir / "merkledrop.json").write_text(json.dumps({"distribution_path": "a.json"}))
        monkeypatch.setenv("MERKLEDROP_DISTRIBUTION", "b.json")
        assert load_config().distribution_path == "b.json"

    def test_no_command(self, capsys):
        assert main([]) == EXIT_RUNTIME_ERROR
