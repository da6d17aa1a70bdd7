import json
from pathlib import Path

from weth_scanner.errors import OutputWriteError
from weth_scanner.ports import OutputSink, TransferRecord


class JsonFileSink(OutputSink):
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def write(self, records: list[TransferRecord]) -> str:
        payload = json.dumps([r.to_json() for r in records], ensure_ascii=False, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise OutputWriteError(f"could not write {self.path}: {e}") from e
        return str(self.path)
