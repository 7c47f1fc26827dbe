"""CLI entrypoint for capturing raw order book frames to a JSON-lines file.

Captured frames can be replayed offline with ``trade-sim simulate --book``
(one frame per file) or loaded in tests.
"""

from __future__ import annotations

from pathlib import Path

import click
import websocket

from packages.common.config import load_config
from packages.common.errors import ProtocolError
from packages.common.logging import get_logger, setup_logging
from packages.data_ingestion.parser import decode_frame

logger = get_logger(__name__)


@click.command()
@click.option("--config", "config_path", default="config/default.yaml", help="Config file path")
@click.option("--out", "out_path", default="frames.jsonl", help="Output file (appended)")
@click.option("--count", default=100, type=int, help="Number of valid frames to capture")
def main(config_path: str, out_path: str, count: int) -> None:
    """Record valid frames from the configured feed."""
    setup_logging()
    cfg = load_config(config_path)

    ws = websocket.create_connection(
        cfg.feed.endpoint, timeout=cfg.feed.connect_timeout_seconds
    )
    captured = 0
    try:
        with Path(out_path).open("a", encoding="utf-8") as f:
            while captured < count:
                raw = ws.recv()
                if not raw:
                    continue
                try:
                    decode_frame(raw)
                except ProtocolError as e:
                    logger.warning("frame_skipped", error=str(e))
                    continue
                text = raw if isinstance(raw, str) else raw.decode("utf-8")
                f.write(text.strip() + "\n")
                captured += 1
    finally:
        ws.close()

    logger.info("frames_recorded", path=out_path, count=captured)


if __name__ == "__main__":
    main()
