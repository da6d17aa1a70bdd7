from dataclasses import dataclass

from weth_scanner.ports import BlockRange


class ScannerError(Exception):
    pass


class ConfigurationError(ScannerError):
    """Invalid or missing run parameters. Raised before any query is issued."""


class QueryFailure(ScannerError):
    def __init__(self, block_range: BlockRange, cause: BaseException | str) -> None:
        self.block_range = block_range
        self.cause = cause
        super().__init__(f"query {block_range} failed: {cause!r}")


class OutputWriteError(ScannerError):
    pass


@dataclass(frozen=True)
class RangeSkipped:
    """A range abandoned after every attempt failed. Logged and reported, never raised."""
    block_range: BlockRange
    attempts: int
    error: str
