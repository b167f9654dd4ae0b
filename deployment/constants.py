from pathlib import Path

import deployment

#
# Filesystem
#

DEPLOYMENT_DIR = Path(deployment.__file__).parent
PROJECT_ROOT = DEPLOYMENT_DIR.parent
CONTRACT_FLAGS_FILEPATH = DEPLOYMENT_DIR / "contract-flags.json"
SYNTH_LIST_FILEPATH = DEPLOYMENT_DIR / "synths.json"
OUTPUT_DIR = DEPLOYMENT_DIR / "out"
BUILD_DIR = PROJECT_ROOT / "build"

COMPILED_FOLDER = "compiled"
MANIFEST_FILENAME = "contracts.json"
JOURNAL_FILENAME = "contracts.journal.json"

#
# Gas
#

CONTRACT_DEPLOYMENT_GAS_LIMIT = 6_500_000
METHOD_CALL_GAS_LIMIT = 150_000
GAS_PRICE_GWEI = 1

#
# Contracts
#

# Initial SNX/USD rate handed to ExchangeRates
SNX_INITIAL_RATE = "0.2"

# Fees taken by the FeePool, in ether units
TRANSFER_FEE_RATE = "0.0015"
EXCHANGE_FEE_RATE = "0.0015"

# Depot pricing, in ether units
DEPOT_USD_ETH_PRICE = "500"
DEPOT_USD_SNX_PRICE = ".10"

INITIAL_SYNTHETIX_SUPPLY = "100000000"
