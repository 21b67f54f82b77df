"""Protocol constants for the Movement mainnet profile."""

from typing import TypedDict


class MovePositionAssets(TypedDict):
    """MovePosition broker naming for one vault asset."""

    fa_address: str
    virtual_coin: str
    broker_name: str


DEFAULT_CHAIN_ID = 126  # Movement mainnet

DEFAULT_RPC_URL = "https://mainnet.movementnetwork.xyz/v1"

GRAPHQL_ENDPOINT = (
    "https://rwf3uyiewzdnhavtega3imkynm.appsync-api.us-east-1.amazonaws.com/graphql"
)
SENTIO_MULTI_REWARDS_ENDPOINT = (
    "https://app.sentio.xyz/api/v1/graphql/solo-labs/canopy-multi-rewards-movement"
)
MOVEPOSITION_API_URL = "https://api.moveposition.xyz"

CACHE_TTL_SECONDS = 60.0

# Router defaults
DEFAULT_MIN_SHARES_OUT = "0"
DEFAULT_MAX_LOSS = "100"
WITHDRAW_MIN_AMOUNT_OUT = "0"
WITHDRAW_MIN_AMOUNT_OUT_EXTERNAL_PROOF = "100"

NATIVE_COIN_TYPE = "0x1::aptos_coin::AptosCoin"
FUNGIBLE_ASSET_METADATA_TYPE = "0x1::fungible_asset::Metadata"

MOVEPOSITION_PACKET_SIGNER_NETWORK = "aptos"

MOVEPOSITION_PORTFOLIOS_PATH = "/portfolios/"
MOVEPOSITION_LEND_PATH = "/brokers/lend/v2"
MOVEPOSITION_REDEEM_PATH = "/brokers/redeem/v2"

# Concrete strategy implementations, used to classify a vault's platform
ECHELON_SIMPLE_CONCRETE_ADDRESS = (
    "0x5d2b6a8b6478d86f62c9d3378e2a1fa265e85e69046946632d1fecae1940e851"
)
MERIDIAN_SIMPLE_CONCRETE_ADDRESS = (
    "0x133b23036f4ac78279fd4cc75b798ccfe2d3c002585049d7483230653b924b7d"
)
LAYERBANK_SIMPLE_CONCRETE_ADDRESS = (
    "0xad1b34939f164ec6f6c0157da3a30bf9e5d408250978691872a79aa584852b85"
)
MOVEPOSITION_SIMPLE_CONCRETE_ADDRESS = (
    "0xd7c7b27e361434e18d2410fd02f7140a8c10d174c9be0efd5324578d243953bd"
)

_MOVEPOSITION_COINS = (
    "0xccd2621d2897d407e06d18e6ebe3be0e6d9b61f1e809dd49360522b9105812cf::coins"
)

MOVEPOSITION_MAINNET_ASSETS: list[MovePositionAssets] = [
    {
        "fa_address": "0x000000000000000000000000000000000000000000000000000000000000000a",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::MOVE",
        "broker_name": "movement-move-fa",
    },
    {
        "fa_address": "0x83121c9f9b0527d1f056e21a950d6bf3b9e9e2e8353d0e95ccea726713cbea39",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::USDC",
        "broker_name": "movement-usdc",
    },
    {
        "fa_address": "0x447721a30109c662dde9c73a0c2c9c9c459fb5e5a9c92f03c50fa69737f5d08d",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::USDt",
        "broker_name": "movement-usdt",
    },
    {
        "fa_address": "0x908828f4fb0213d4034c3ded1630bbd904e8a3a6bf3c63270887f0b06653a376",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::WETH",
        "broker_name": "movement-weth",
    },
    {
        "fa_address": "0xb06f29f24dde9c6daeec1f930f14a441a8d6c0fbea590725e88b340af3e1939c",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::WBTC",
        "broker_name": "movement-wbtc",
    },
    {
        "fa_address": "0x2f6af255328fe11b88d840d1e367e946ccd16bd7ebddd6ee7e2ef9f7ae0c53ef",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::EZETH",
        "broker_name": "movement-ezeth",
    },
    {
        "fa_address": "0x51ffc9885233adf3dd411078cad57535ed1982013dc82d9d6c433a55f2e0035d",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::RSETH",
        "broker_name": "movement-rseth",
    },
    {
        "fa_address": "0x95c0fd13373299ada1b9f09ff62473ab8b3908e6a30011730210c141dffdc990",
        "virtual_coin": f"{_MOVEPOSITION_COINS}::STBTC",
        "broker_name": "movement-stbtc",
    },
]

# virtual coin type -> broker name
MOVEPOSITION_NAME_MAP: dict[str, str] = {
    a["virtual_coin"]: a["broker_name"] for a in MOVEPOSITION_MAINNET_ASSETS
}

# vault asset (FA metadata address) -> virtual coin type
MOVEPOSITION_VIRTUAL_COIN_MAP: dict[str, str] = {
    a["fa_address"]: a["virtual_coin"] for a in MOVEPOSITION_MAINNET_ASSETS
}
