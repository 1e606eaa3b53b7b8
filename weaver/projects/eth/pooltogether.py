from ..pooltogether import PoolTogetherV4Adapter


class EthPoolTogetherAdapter(PoolTogetherV4Adapter):
    chain = "eth"
    pool_v4 = "0xdd4d117723C257CEe402285D3aCF218E9A8236E1"
    usdc = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
