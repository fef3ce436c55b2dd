import json

import pytest

from config.chains import CHAINS, ChainId, ChainRegistry, get_chain
from config.settings import DEPLOYMENTS_FILE
from core.errors import InvalidInput, UnsupportedNetwork
import validate_config


def test_bundled_registry_loads():
    registry = ChainRegistry.load()
    assert registry.version == 1
    assert registry.get(1) == "0xC82ECc4572321aa9F051443C30a0a0fA792b3798"
    assert registry.get(ChainId.BSC_TESTNET) == "0xF43041138eDfb1CA2E602b82989093F4C52C4D69"
    assert len(registry) == 5
    assert DEPLOYMENTS_FILE.name == "deployments.json"


def test_every_chain_has_a_deployment():
    registry = ChainRegistry.load()
    for chain_id in CHAINS:
        assert chain_id in registry


def test_unsupported_network(registry):
    with pytest.raises(UnsupportedNetwork) as exc:
        registry.get(137)
    assert exc.value.chain_id == 137
    assert exc.value.stage == "config"
    assert 137 not in registry


def test_load_from_file(tmp_path):
    path = tmp_path / "deployments.json"
    path.write_text(json.dumps({"version": 3, "deployments": {"10": "0x" + "ab" * 20}}))
    registry = ChainRegistry.load(path)
    assert registry.version == 3
    assert registry.get(10) == "0x" + "ab" * 20


@pytest.mark.parametrize("data", [
    {},
    {"deployments": {"one": "0x" + "ab" * 20}},
    {"deployments": {"1": ""}},
    {"deployments": {"1": "0x1234"}},
    {"deployments": {"1": "0x" + "zz" * 20}},
])
def test_invalid_registry(data):
    with pytest.raises(InvalidInput):
        ChainRegistry.from_mapping(data)


def test_get_chain():
    assert get_chain(56).name == "BSC"
    assert get_chain(ChainId.FANTOM).native_token == "FTM"
    with pytest.raises(UnsupportedNetwork):
        get_chain(424242)


def test_rpc_override(monkeypatch):
    monkeypatch.setenv("BSC_RPC_URL", "http://localhost:8545")
    assert get_chain(56).get_rpc() == "http://localhost:8545"
    monkeypatch.delenv("BSC_RPC_URL")
    assert get_chain(56).get_rpc() == "https://bsc-dataseed.binance.org"


def test_validate_config_passes_on_bundled_data(capsys):
    assert validate_config.main() == 0
    assert "5 deployments" in capsys.readouterr().out


def test_validate_config_reports_missing_chain(tmp_path, capsys):
    path = tmp_path / "deployments.json"
    path.write_text(json.dumps({"deployments": {"1": "0x" + "ab" * 20, "999": "0x" + "ab" * 20}}))
    assert validate_config.main(path) == 1
    out = capsys.readouterr().out
    assert "999" in out
    assert "BSC has no multicast deployment" in out


def test_validate_config_unreadable(tmp_path):
    assert validate_config.main(tmp_path / "missing.json") == 1
