from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import find_dotenv, load_dotenv

from .project_constants import DEFAULT_TOKEN_DECIMALS


@dataclass(frozen=True)
class Settings:
    rpc_url: str | None
    excluded_wallets_file: str | None = None
    token_decimals: int = DEFAULT_TOKEN_DECIMALS

    def require_rpc_url(self) -> str:
        if not self.rpc_url:
            raise RuntimeError(
                "Missing HELIUS_API_KEY (or RPC_URL). Put it in .env or export it."
            )
        return self.rpc_url

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv(find_dotenv(usecwd=True))

        excluded = os.getenv("EXCLUDED_WALLETS_FILE", "").strip() or None
        decimals_env = os.getenv("TOKEN_DECIMALS", "").strip()
        try:
            decimals = int(decimals_env) if decimals_env else DEFAULT_TOKEN_DECIMALS
        except ValueError:
            raise RuntimeError(f"TOKEN_DECIMALS must be an integer, got {decimals_env!r}")

        # --rpc-url wins, then RPC_URL, then a helius url built from the key.
        rpc_url = rpc_url_override or os.getenv("RPC_URL", "").strip()
        if not rpc_url:
            helius_key = os.getenv("HELIUS_API_KEY", "").strip()
            if helius_key:
                rpc_url = f"https://mainnet.helius-rpc.com/?api-key={helius_key}"

        return Settings(
            rpc_url=rpc_url or None,
            excluded_wallets_file=excluded,
            token_decimals=decimals,
        )
