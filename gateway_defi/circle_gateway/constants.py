"""Circle Gateway constants.

Domain ids are Circle's own chain identifiers, shared with CCTP.

See `Circle Gateway supported blockchains <https://developers.circle.com/gateway/references/supported-blockchains>`__.
"""

#: Gateway API base URL, mainnet
GATEWAY_API_URL = "https://gateway-api.circle.com/v1"

#: Gateway API base URL, testnet
GATEWAY_TESTNET_API_URL = "https://gateway-api-testnet.circle.com/v1"

#: The only token this package moves
GATEWAY_TOKEN = "USDC"

#: USDC decimals on every supported chain
USDC_DECIMALS = 6

#: EIP-712 domain name of the Gateway Wallet contract
GATEWAY_WALLET_EIP712_NAME = "GatewayWallet"

#: EIP-712 domain version of the Gateway Wallet contract
GATEWAY_WALLET_EIP712_VERSION = "1"

#: Default burn intent lifetime in seconds
DEFAULT_DEADLINE_HORIZON = 3600

GATEWAY_DOMAIN_ETHEREUM = 0
GATEWAY_DOMAIN_AVALANCHE = 1
GATEWAY_DOMAIN_ARBITRUM = 3
GATEWAY_DOMAIN_BASE = 6

#: Domain id -> human readable chain name
GATEWAY_DOMAIN_NAMES: dict[int, str] = {
    GATEWAY_DOMAIN_ETHEREUM: "Ethereum",
    GATEWAY_DOMAIN_AVALANCHE: "Avalanche",
    GATEWAY_DOMAIN_ARBITRUM: "Arbitrum",
    GATEWAY_DOMAIN_BASE: "Base",
}

#: Domain id -> EVM chain id on mainnet
MAINNET_CHAIN_IDS: dict[int, int] = {
    GATEWAY_DOMAIN_ETHEREUM: 1,
    GATEWAY_DOMAIN_AVALANCHE: 43114,
    GATEWAY_DOMAIN_ARBITRUM: 42161,
    GATEWAY_DOMAIN_BASE: 8453,
}

#: Domain id -> EVM chain id on testnet (Sepolia, Fuji, Arbitrum Sepolia, Base Sepolia)
TESTNET_CHAIN_IDS: dict[int, int] = {
    GATEWAY_DOMAIN_ETHEREUM: 11155111,
    GATEWAY_DOMAIN_AVALANCHE: 43113,
    GATEWAY_DOMAIN_ARBITRUM: 421614,
    GATEWAY_DOMAIN_BASE: 84532,
}

#: Chain name as accepted from callers -> domain id.
#:
#: Lookups are case-insensitive, keys are stored in lower case.
CHAIN_NAME_ALIASES: dict[str, int] = {
    "ethereum": GATEWAY_DOMAIN_ETHEREUM,
    "mainnet": GATEWAY_DOMAIN_ETHEREUM,
    "sepolia": GATEWAY_DOMAIN_ETHEREUM,
    "avalanche": GATEWAY_DOMAIN_AVALANCHE,
    "avalanchefuji": GATEWAY_DOMAIN_AVALANCHE,
    "arbitrum": GATEWAY_DOMAIN_ARBITRUM,
    "arbitrumsepolia": GATEWAY_DOMAIN_ARBITRUM,
    "base": GATEWAY_DOMAIN_BASE,
    "basesepolia": GATEWAY_DOMAIN_BASE,
}
