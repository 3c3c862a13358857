#!/usr/bin/env python3
# -*- coding: utf-8 -*-

# Copyright (C) 2022-2022 Riku Block
# All rights reserved.
#
# This file is part of XSwap.

import os
import logging


DEFAULT = {
    # Logging settings
    "LOG_LEVEL": os.getenv("LOG_LEVEL", logging.INFO),
    "LOG_FORMAT": "%(asctime)s.%(msecs)04d %(levelname)-5s [%(threadName)-10s %(process)5d] %(name)s: %(message)s",
    "LOG_DATE_FORMAT": "%H:%M:%S",

    # Database settings
    "DB_DRIVER": "postgresql",
    "DB_HOST": os.getenv("DB_HOST", "localhost"),
    "DB_PORT": os.getenv("DB_PORT", 5432),
    "DB_USERNAME": os.getenv("DB_USERNAME", "root"),
    "DB_PASSWORD": os.getenv("DB_PASSWORD", "password"),
    "DB_DATABASE": os.getenv("DB_DATABASE", "debug"),
    "DB_SCHEMA": os.getenv("DB_SCHEMA", "public"),

    "DB_DEBUG": False,

    # Redis cache settings (optional shared metadata cache)
    "REDIS_ENABLED": os.getenv("REDIS_ENABLED", "0") == "1",
    "REDIS_HOST": os.getenv("REDIS_HOST", "localhost"),
    "REDIS_PORT": os.getenv("REDIS_PORT", 6379),
    "REDIS_PASSWORD": os.getenv("REDIS_PASSWORD", "password"),
    "REDIS_DATABASE": os.getenv("REDIS_DATABASE", 0),

    # web3 provider RPC urls
    "API_URL": {
        "base": os.getenv("BASE_RPC_URL", "https://mainnet.base.org"),
        "ethereum": os.getenv("ETHEREUM_RPC_URL", "http://localhost:8545/"),
    },

    # Stream settings
    "XS_NETWORK": os.getenv("XS_NETWORK", "base"),
    # comma separated list of protocols, empty means all protocols of the network
    "XS_PROTOCOLS": os.getenv("XS_PROTOCOLS", ""),
    "XS_POOLS_ONLY": os.getenv("XS_POOLS_ONLY", "0") == "1",
    "XS_FROM_BLOCK": os.getenv("XS_FROM_BLOCK"),
    "XS_TO_BLOCK": os.getenv("XS_TO_BLOCK"),
    "XS_CHUNK_SIZE": os.getenv("XS_CHUNK_SIZE", 500),
    "XS_NUM_SAFETY_BLOCKS": os.getenv("XS_NUM_SAFETY_BLOCKS", 10),
    "XS_POLL_INTERVAL": os.getenv("XS_POLL_INTERVAL", 5.0),
    "XS_PROGRESS_INTERVAL": os.getenv("XS_PROGRESS_INTERVAL", 5.0),

    # Token enrichment settings
    "XS_TOKEN_BATCH_SIZE": os.getenv("XS_TOKEN_BATCH_SIZE", 100),
    "XS_ENRICH_WORKERS": os.getenv("XS_ENRICH_WORKERS", 4),
    "XS_CACHE_SIZE": os.getenv("XS_CACHE_SIZE", 100_000),
}

CONFIG = dict(DEFAULT)
