import os
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict


class TokenCatalogEntry(BaseModel):
    """
    Known token contract.

    Attributes
    ----------
    chain : str
        Chain the contract is deployed on
    symbol : str
        Human readable token name
    contract_address : str
        Token contract address
    """
    chain: str
    symbol: str
    contract_address: str

    model_config = ConfigDict(frozen=True)


class Settings(BaseSettings):
    """
    Application settings using Pydantic Settings.

    Settings are frozen: every component receives the same immutable
    value at construction.

    Attributes
    ----------
    ws_rpc_url : str
        Websocket RPC endpoint used for the newHeads subscription
    chain : str
        Chain identifier used by the notification service
    watched_addresses : list[str]
        Addresses to report transactions for
    token_catalog : list[TokenCatalogEntry]
        Known token contracts used to name webhook assets
    sepolia_explorer_url : str
        Block explorer for sepolia chains
    mainnet_explorer_url : str
        Block explorer for mainnet (and anything unrecognized)
    transaction_fetch_timeout : float
        Seconds to wait for a single transaction fetch
    max_pending_blocks : int
        Upper bound on blocks processed concurrently
    fetch_full_transactions : bool
        Request transaction bodies together with the block
    monitor_enabled : bool
        Start the chain monitor together with the API
    tatum_api_key : str
        Notification service API key
    tatum_subscription_url : str
        Notification service subscription endpoint
    webhook_url : str
        Public URL of this service's /webhook endpoint
    subscription_type : str
        Subscription type requested from the notification service
    """

    ws_rpc_url: str = "wss://sepolia.gateway.tenderly.co"
    chain: str = "ethereum-sepolia"

    watched_addresses: list[str] = [
        "0x2C57E373624D66B7a2E000A91E12ED6B865D57BA",
        "0xE90ACFD806d52c857AD0a2705D49A4F846ACfDAE",
        "0xB3988b8a447C154112D7D58119eB4f5Ec2193669",
        "0x0f95B9495423589b6fD5aEf958C873b629C4B788",
    ]
    token_catalog: list[TokenCatalogEntry] = [
        TokenCatalogEntry(
            chain="ethereum-sepolia",
            symbol="USDT",
            contract_address="0x5C95260eBD1dD21547528E73dc601d74B2793e0D",
        ),
        TokenCatalogEntry(
            chain="ethereum-sepolia",
            symbol="USDC",
            contract_address="0x387d687B9574E93aCCEF1c272ce0D77381305eC3",
        ),
    ]

    sepolia_explorer_url: str = "https://sepolia.etherscan.io"
    mainnet_explorer_url: str = "https://etherscan.io"

    transaction_fetch_timeout: float = 10.0
    max_pending_blocks: int = 8
    fetch_full_transactions: bool = True
    monitor_enabled: bool = False

    tatum_api_key: str = ""
    tatum_subscription_url: str = "https://api.tatum.io/v4/subscription"
    webhook_url: str = ""
    subscription_type: str = "ADDRESS_EVENT"

    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True
    )

    def get_explorer_tx_url(self, tx_hash: str, chain: str | None) -> str:
        """
        Build block explorer URL for a transaction.

        Parameters
        ----------
        tx_hash : str
            Transaction hash
        chain : str | None
            Chain name as reported by the notification service

        Returns
        -------
        str
            Explorer URL, mainnet explorer when chain is not recognized
        """
        chain = chain or ""
        if "sepolia" in chain:
            base_url = self.sepolia_explorer_url
        elif "mainnet" in chain:
            base_url = self.mainnet_explorer_url
        else:
            base_url = self.mainnet_explorer_url
        return f"{base_url.rstrip('/')}/tx/{tx_hash}"
