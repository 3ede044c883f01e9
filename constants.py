#!/usr/bin/env python3
from typing import Dict, List

# --- ANSI Color Codes ---
C_GREEN = '\033[92m'
C_RED = '\033[91m'
C_YELLOW = '\033[93m'
C_BLUE = '\033[94m'
C_RESET = '\033[0m'

# --- API Configuration ---
VAULT_LISTING_URL = 'https://stats-data.hyperliquid.xyz/Mainnet/vaults'
HYPERLIQUID_INFO_URL = 'https://api.hyperliquid.xyz/info'
USER_AGENT = 'VaultExtractor/1.0'

# --- Environment Variable Names ---
VAULT_LISTING_URL_ENV_VAR = 'VAULT_LISTING_URL'
HYPERLIQUID_INFO_URL_ENV_VAR = 'HYPERLIQUID_INFO_URL'

# --- Eligibility Defaults ---
DEFAULT_MIN_TVL = 10000.0
DEFAULT_MIN_APR = 0.00001  # Greater than 0% as a decimal fraction
DEFAULT_BLACKLIST: List[str] = [
    '0xdfc24b077bc1425ad1dea75bcb6f8158e10df303',  # Hyperliquidity Provider (HLP)
    '0x63c621a33714ec48660e32f2374895c8026a3a00',  # Liquidator
]

# --- Retry / Pacing Defaults ---
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0
DEFAULT_REQUEST_TIMEOUT = 30
DEFAULT_REQUEST_DELAY = 0.25

# --- Pagination Defaults ---
DEFAULT_PAGE_SIZE = 10
DEFAULT_MAX_PAGES = 60  # Only used when the listing carries no usable pagination metadata

# --- Detail Resources ---
# Discriminator values for the info endpoint.
DETAIL_TYPE_VAULT = 'vaultDetails'
DETAIL_TYPE_FILLS = 'userFills'
DETAIL_TYPE_LEDGER = 'userNonFundingLedgerUpdates'
DETAIL_TYPE_FUNDING = 'userFunding'
DETAIL_TYPE_CLEARINGHOUSE = 'clearinghouseState'

PORTFOLIO_PERIODS = ('day', 'week', 'month', 'allTime', 'perpDay', 'perpWeek', 'perpMonth', 'perpAllTime')
DEFAULT_PORTFOLIO_PERIOD = 'allTime'

# Output record keys for each optional nested resource.
NESTED_RESOURCE_KEYS: Dict[str, str] = {
    'trades': 'tradeHistoryData',
    'funding': 'fundingHistoryData',
    'ledger': 'depositsWithdrawalsData',
    'depositors': 'depositorsData',
    'positions': 'positionsData',
    'balances': 'balancesData',
}

NOT_AVAILABLE = 'N/A'

# --- Output ---
DEFAULT_OUTPUT_DIR = 'output'
RAW_DATASET_PREFIX = 'vault_details_raw'
SUMMARY_DATASET_PREFIX = 'vault_summary'
