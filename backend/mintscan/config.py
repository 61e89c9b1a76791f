"""
Configuration module for the Mintscan backend.
Contains environment variables and other configuration settings.
"""
import os
from dotenv import load_dotenv
from typing import Dict, Any

# Load environment variables
load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


# Public cluster endpoints by network name
CLUSTER_URLS: Dict[str, str] = {
    'mainnet-beta': 'https://api.mainnet-beta.solana.com',
    'devnet': 'https://api.devnet.solana.com',
    'testnet': 'https://api.testnet.solana.com',
}

SOLANA_NETWORK = os.getenv('SOLANA_NETWORK', 'devnet')
SOLANA_RPC_URL = os.getenv('SOLANA_RPC_URL') or CLUSTER_URLS.get(SOLANA_NETWORK, CLUSTER_URLS['devnet'])
COMMITMENT = os.getenv('COMMITMENT', 'confirmed')

# RPC Configuration
RPC_TIMEOUT = float(os.getenv('RPC_TIMEOUT', '30.0'))  # seconds
RPC_MAX_RETRIES = int(os.getenv('RPC_MAX_RETRIES', '3'))
RPC_RETRY_DELAY = float(os.getenv('RPC_RETRY_DELAY', '1.0'))  # seconds

# Scanner Configuration
POLL_INTERVAL = float(os.getenv('POLL_INTERVAL', '5.0'))  # seconds
SLOT_LAG = int(os.getenv('SLOT_LAG', '2'))
MAX_SLOTS_PER_CYCLE = int(os.getenv('MAX_SLOTS_PER_CYCLE', '0'))  # 0 means unbounded
BLOCK_FAILURE_POLICY = os.getenv('BLOCK_FAILURE_POLICY', 'retry')
INCLUDE_INNER_INSTRUCTIONS = _get_bool('INCLUDE_INNER_INSTRUCTIONS', True)
# Operator override of the starting cursor, unset it again once the scanner has restarted
CURSOR_RESET = int(os.environ['CURSOR_RESET']) if os.getenv('CURSOR_RESET') else None

# Persistence
MINTS_FILE = os.getenv('MINTS_FILE', 'mints.json')
CURSOR_FILE = os.getenv('CURSOR_FILE', 'cursor.json')  # empty string disables cursor persistence

SCANNER_CONFIG: Dict[str, Any] = {
    'poll_interval': POLL_INTERVAL,
    'slot_lag': SLOT_LAG,
    'max_slots_per_cycle': MAX_SLOTS_PER_CYCLE,
    'failure_policy': BLOCK_FAILURE_POLICY,
    'include_inner': INCLUDE_INNER_INSTRUCTIONS,
    'reset_cursor': CURSOR_RESET,
}


class Constants:
    """
    Constants used throughout the application.
    """
    # Solana Program IDs
    TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"

    # Query surface
    DEFAULT_TOKEN_LIMIT = 100
    MAX_TOKEN_LIMIT = 10_000


class Config:
    """
    Configuration class for application settings.
    """
    DEBUG = _get_bool('DEBUG', False)
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # API Settings
    API_VERSION = "0.1.0"
    API_TITLE = "Mintscan API"
    API_DESCRIPTION = "Continuously scans Solana blocks for newly initialized SPL token mints"
    HOST = os.getenv('HOST', '0.0.0.0')
    PORT = int(os.getenv('PORT', '5000'))
    CORS_ORIGINS = [o for o in os.getenv('CORS_ORIGINS', '*').split(',') if o]

    # Ledger
    SOLANA_NETWORK = SOLANA_NETWORK
    RPC_URL = SOLANA_RPC_URL
    COMMITMENT = COMMITMENT
    TARGET_PROGRAM_ID = os.getenv('TARGET_PROGRAM_ID', Constants.TOKEN_PROGRAM_ID)

    # Scanner
    SCANNER_CONFIG = SCANNER_CONFIG
    MINTS_FILE = MINTS_FILE
    CURSOR_FILE = CURSOR_FILE
