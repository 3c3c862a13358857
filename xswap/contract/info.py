#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

from typing import (
    Dict,
    List,
    Optional,
)

import json

from pathlib import Path

from xswap.types import (
    DexProtocol,
    Network,
)

CONTRACT_DIR = Path(__file__).parent


class Info(object):
    """
    Temporary hard code contract information for the sake of simplicity.
    This will eventually be replaced/complemented with a more dynamic config file.
    """

    def __init__(self, address: Optional[str], from_block: Optional[int], abi_file: Optional[str] = None) -> None:
        """
        Contract information

        :param address: contract address
        :param from_block: block height of contract deployment (used to filter events)
        :param abi_file: json file (relative to the contract directory) containing list of event/function interfaces
        """
        self.address = address
        self.from_block = from_block

        self.abi = None
        if abi_file is not None:
            with open(CONTRACT_DIR / abi_file, "r", encoding="utf-8") as f:
                data = json.load(f)
                self.abi = data["abi"]

    def __repr__(self):
        return f"Info <address={self.address} from_block={self.from_block}>"


# Factory contracts per network and protocol variant
FACTORIES: Dict[Network, Dict[DexProtocol, Info]] = {
    Network.ETHEREUM: {
        DexProtocol.UNISWAP_V2: Info(
            address="0x5C69bEe701ef814a2B6a3EDD4B1652CB9cc5aA6f",
            from_block=10000835,
        ),
        DexProtocol.UNISWAP_V3: Info(
            address="0x1F98431c8aD98523631AE4a59f267346ea31F984",
            from_block=12369621,
        ),
    },
    Network.BASE: {
        DexProtocol.UNISWAP_V2: Info(
            address="0x8909Dc15e40173Ff4699343b6eB8132c65e18eC6",
            from_block=6601915,
        ),
        DexProtocol.UNISWAP_V3: Info(
            address="0x33128a8fC17869897dcE68Ed026d694621f6FDfD",
            from_block=1371680,
        ),
        DexProtocol.AERODROME_BASIC: Info(
            address="0x420DD381b31aEf6683db6B902084cB0FFECe40Da",
            from_block=3200559,
        ),
        DexProtocol.AERODROME_SLIPSTREAM: Info(
            address="0x5e7BB104d84c7CB9B682AaC2F3d509f5F406809A",
            from_block=13843704,
        ),
    },
}

# Multicall contracts (aggregated read-only calls)
MULTICALL: Dict[Network, Info] = {
    Network.ETHEREUM: Info(
        address="0xcA11bde05977b3631167028862bE2a173976CA11",
        from_block=14353601,
        abi_file="Multicall3.json",
    ),
    Network.BASE: Info(
        address="0xcA11bde05977b3631167028862bE2a173976CA11",
        from_block=5022,
        abi_file="Multicall3.json",
    ),
}

# Well-known tokens that always take the token A slot of a pair (in this order)
TRACKED_TOKENS: Dict[Network, List[str]] = {
    Network.ETHEREUM: [
        "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",  # USDC
        "0xdAC17F958D2ee523a2206206994597C13D831ec7",  # USDT
        "0x6B175474E89094C44Da98b954EedeAC495271d0F",  # DAI
        "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",  # WETH
        "0x2260FAC5E5542a773Aa44fBCfeDf7C193bc2C599",  # WBTC
    ],
    Network.BASE: [
        "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",  # USDC
        "0xd9aAEc86B65D86f6A7B5B1b0c42FFA531710b6CA",  # USDbC
        "0x50c5725949A6F0c72E6C4a641F24049A917DB0Cb",  # DAI
        "0x4200000000000000000000000000000000000006",  # WETH
        "0xcbB7C0000aB88B473b1f5aFd9ef808440eed33Bf",  # cbBTC
    ],
}
