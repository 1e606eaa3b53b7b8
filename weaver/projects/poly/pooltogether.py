from ..pooltogether import PoolTogetherV4Adapter


class PolyPoolTogetherAdapter(PoolTogetherV4Adapter):
    chain = "poly"
    pool_v4 = "0x6a304dFdb9f808741244b6bfEe65ca7B3b3A6076"
    usdc = "0x2791Bca1f2de4661ED88A30C99A7a9449Aa84174"
