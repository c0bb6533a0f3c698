"""
Test suite for the command-line interface.
"""

import json

import pytest

from wedeploy.cli import create_parser, resolve_network
from wedeploy.config import AppSettings


def test_wait_command_arguments():
    args = create_parser().parse_args(["wait", "tx-1", "--executed", "--environment", "testnet"])

    assert args.command == "wait"
    assert args.tx_id == "tx-1"
    assert args.executed
    assert args.environment == "testnet"


def test_transfer_command_arguments():
    args = create_parser().parse_args([
        "transfer", "--recipient", "3Mxyz", "--amount", "100000000", "--log-json",
    ])

    assert args.amount == 100_000_000
    assert args.fee is None
    assert args.log_json


def test_transfer_requires_recipient():
    with pytest.raises(SystemExit):
        create_parser().parse_args(["transfer", "--amount", "1"])


def test_resolve_network_from_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "environments.json"
    path.write_text(json.dumps({
        "testnet": {
            "name": "testnet",
            "nodeAPI": "http://localhost:6862",
            "nodeTimeout": 1000,
            "chainID": "T",
            "apiKey": "key",
            "transferFee": 1,
            "invokeFee": 1,
            "additionalFee": 1,
            "issueFee": 1,
            "setScriptFee": 1,
            "setWasmScriptFee": 1,
        },
    }))
    args = create_parser().parse_args([
        "contract-info", "contract", "--environments-file", str(path), "--environment", "testnet",
    ])

    network = resolve_network(args, AppSettings())

    assert network.name == "testnet"
    assert network.chain_id == ord("T")


def test_resolve_network_requires_environment(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    args = create_parser().parse_args([
        "contract-info", "contract", "--environments-file", "environments.json",
    ])

    with pytest.raises(ValueError, match="--environment"):
        resolve_network(args, AppSettings())


def test_show_public_key_script(tmp_path, monkeypatch):
    from scripts.show_public_key import public_key_info
    from wedeploy.tx.encoding import b58encode
    from wedeploy.tx.signer import LocalSigner

    monkeypatch.chdir(tmp_path)
    seed = b58encode(bytes(range(32)))
    monkeypatch.setenv("WEDEPLOY_PRIVATE_KEY", seed)

    info = public_key_info(AppSettings())

    assert info == {"public_key": LocalSigner.from_base58_seed(seed).public_key}


def test_show_public_key_requires_seed(tmp_path, monkeypatch):
    from scripts.show_public_key import public_key_info

    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("WEDEPLOY_PRIVATE_KEY", raising=False)

    with pytest.raises(ValueError, match="WEDEPLOY_PRIVATE_KEY"):
        public_key_info(AppSettings())
