import os
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from web3 import AsyncWeb3

from weth_scanner.errors import ConfigurationError
from weth_scanner.utils.units import parse_wad

WETH_ADDRESS = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
INFURA_URL = "https://mainnet.infura.io/v3/{key}"

# providers cap eth_getLogs at 10k results per call
BLOCK_PAGINATION_SIZE = 200
NUM_WORKERS = 100
MAX_ATTEMPTS = 3


class AppConfig(BaseModel):
    api_key: str = Field(default_factory=lambda: os.getenv("API_KEY", "").strip())
    rpc_url: str = Field(default_factory=lambda: os.getenv("RPC_URL", "").strip())
    rpc_pool: list[str] = Field(default_factory=lambda: [x.strip() for x in os.getenv("RPC_POOL", "").split(",") if x.strip()])
    token_address: str = Field(default_factory=lambda: os.getenv("TOKEN_ADDRESS", WETH_ADDRESS), validate_default=True)

    pagination_size: int = Field(default_factory=lambda: int(os.getenv("PAGINATION_SIZE", str(BLOCK_PAGINATION_SIZE))))
    worker_count: int = Field(default_factory=lambda: int(os.getenv("CONCURRENCY", str(NUM_WORKERS))))
    max_attempts: int = Field(default_factory=lambda: int(os.getenv("MAX_ATTEMPTS", str(MAX_ATTEMPTS))))
    retry_base_delay: float = Field(default_factory=lambda: float(os.getenv("RETRY_BASE_DELAY", "0.0")))
    call_timeout: float = Field(default_factory=lambda: float(os.getenv("CALL_TIMEOUT", "30.0")))

    output_path: str = Field(default_factory=lambda: os.getenv("OUTPUT", "events.json"))

    @field_validator("token_address")
    @classmethod
    def _checksum_token(cls, v: str) -> str:
        if not AsyncWeb3.is_address(v):
            raise ValueError(f"Invalid TOKEN_ADDRESS {v!r}")
        return AsyncWeb3.to_checksum_address(v)

    def rpc_urls(self) -> list[str]:
        if self.rpc_url:
            primary = self.rpc_url
        elif self.api_key:
            primary = INFURA_URL.format(key=self.api_key)
        else:
            raise ConfigurationError("No API_KEY or RPC_URL defined in .env!")
        return [primary] + list(self.rpc_pool or [])


class ScanConfig(BaseModel):
    """Immutable run parameters shared read-only by every component of a scan."""
    model_config = ConfigDict(frozen=True)

    start_block: int = Field(ge=0)
    end_block: int = Field(ge=0)
    threshold: int = Field(ge=0)  # wei, inclusive
    pagination_size: int = Field(default=BLOCK_PAGINATION_SIZE, ge=1)
    worker_count: int = Field(default=NUM_WORKERS, ge=1)
    max_attempts: int = Field(default=MAX_ATTEMPTS, ge=1)
    retry_base_delay: float = Field(default=0.0, ge=0.0)

    @model_validator(mode="after")
    def _check_interval(self) -> "ScanConfig":
        if self.end_block < self.start_block:
            raise ValueError(f"end block {self.end_block} is before start block {self.start_block}")
        return self


def load_env() -> AppConfig:
    from dotenv import load_dotenv
    load_dotenv()
    try:
        return AppConfig()
    except ValueError as e:  # ValidationError or a bad int()/float() in a default factory
        raise ConfigurationError(f"invalid environment: {e}") from e


def build_scan_config(start_block: int, end_block: int, threshold: str, app: AppConfig | None = None) -> ScanConfig:
    app = app or AppConfig()
    try:
        threshold_wei = parse_wad(threshold)
    except ValueError as e:
        raise ConfigurationError(f"Invalid threshold passed in: {e}") from e
    try:
        return ScanConfig(
            start_block=start_block,
            end_block=end_block,
            threshold=threshold_wei,
            pagination_size=app.pagination_size,
            worker_count=app.worker_count,
            max_attempts=app.max_attempts,
            retry_base_delay=app.retry_base_delay,
        )
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e
