import pytest

import constants
from config import load_config


@pytest.fixture(autouse=True)
def clear_env(monkeypatch):
    monkeypatch.delenv(constants.VAULT_LISTING_URL_ENV_VAR, raising=False)
    monkeypatch.delenv(constants.HYPERLIQUID_INFO_URL_ENV_VAR, raising=False)


def test_defaults():
    config = load_config([])
    assert config.min_tvl == constants.DEFAULT_MIN_TVL
    assert config.min_apr == constants.DEFAULT_MIN_APR
    assert config.blacklist == constants.DEFAULT_BLACKLIST
    assert config.max_vaults is None
    assert config.max_retries == 3
    assert config.fetch_trades and config.fetch_funding and config.fetch_ledger
    assert config.fetch_depositors and config.fetch_positions
    assert config.write_summary
    assert config.listing_url == constants.VAULT_LISTING_URL
    assert config.info_url == constants.HYPERLIQUID_INFO_URL


def test_thresholds_and_toggles_parsing():
    config = load_config([
        '--min-tvl', '50000',
        '--min-apr', '0.05',
        '--blacklist', '0xABC', '0xDef',
        '--max-vaults', '5',
        '--skip-trades', '--skip-positions',
        '--max-retries', '4',
        '--base-delay', '0.5',
        '--portfolio-period', 'month',
    ])
    assert config.min_tvl == 50000.0
    assert config.min_apr == 0.05
    assert config.blacklist == ['0xabc', '0xdef']
    assert config.max_vaults == 5
    assert not config.fetch_trades
    assert not config.fetch_positions
    assert config.fetch_funding
    assert config.max_retries == 4
    assert config.base_delay == 0.5
    assert config.portfolio_period == 'month'


def test_empty_blacklist_disables_default():
    assert load_config(['--blacklist']).blacklist == []


def test_environment_overrides_endpoints(monkeypatch):
    monkeypatch.setenv(constants.VAULT_LISTING_URL_ENV_VAR, 'http://localhost/vaults')
    monkeypatch.setenv(constants.HYPERLIQUID_INFO_URL_ENV_VAR, 'http://localhost/info')
    config = load_config([])
    assert config.listing_url == 'http://localhost/vaults'
    assert config.info_url == 'http://localhost/info'


@pytest.mark.parametrize('argv', [
    ['--max-vaults', '0'],
    ['--max-retries', '0'],
    ['--base-delay', '-1'],
    ['--history-start', '-5'],
    ['--portfolio-period', 'decade'],
])
def test_invalid_values_exit(argv):
    with pytest.raises(SystemExit):
        load_config(argv)


def test_snapshot_is_plain_data():
    snapshot = load_config(['--blacklist', '0xb', '0xa']).snapshot()
    assert snapshot['blacklist'] == ['0xa', '0xb']
    assert snapshot['min_tvl'] == constants.DEFAULT_MIN_TVL
