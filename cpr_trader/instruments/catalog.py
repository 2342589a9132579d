"""Daily instrument catalog download and nearest-expiry option lookup."""

import gzip
import json
import shutil
import socket
import threading
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional
from urllib.error import URLError
from urllib.request import Request, urlopen

import structlog

from ..config.defaults import CatalogParams
from ..data.models import Instrument
from ..errors import CatalogError
from ..signals.engine import Direction
from ..utils.time import DEFAULT_EXCHANGE_TZ, exchange_now, start_of_day_ms, to_exchange_time

logger = structlog.get_logger(__name__)

CATALOG_FILE_NAME = "complete.json"


class InstrumentCatalog:
    """Local copy of the broker's instrument master.

    The gzipped JSON is downloaded at most once per trading date and kept
    decompressed on disk; lookups read from an in-memory copy of that file.
    """

    def __init__(self, params: CatalogParams = CatalogParams(),
                 tz_name: str = DEFAULT_EXCHANGE_TZ) -> None:
        self.params = params
        self.tz_name = tz_name
        self.output_dir = Path(params.output_dir)
        self.output_path = self.output_dir / CATALOG_FILE_NAME
        self.logger = logger
        self._instruments: Optional[list[dict[str, Any]]] = None
        self._loaded_mtime: Optional[float] = None
        self._lock = threading.Lock()

    def is_fresh(self, today: date) -> bool:
        """True if the cached file was written on exchange date ``today`` or later."""
        if not self.output_path.exists():
            return False
        mtime = datetime.fromtimestamp(self.output_path.stat().st_mtime, timezone.utc)
        written = to_exchange_time(mtime, self.tz_name).date()
        return written >= today

    def ensure_fresh(self, today: date) -> bool:
        """Download the catalog unless today's copy exists. Returns True on download."""
        if self.is_fresh(today):
            return False
        self.download()
        return True

    def download(self) -> None:
        """
        Download, decompress and atomically replace the cached catalog.

        Raises:
            CatalogError: network or decompression failure
        """
        self.logger.info("Starting instruments file download", url=self.params.url)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        partial = self.output_path.with_suffix(".json.part")

        try:
            req = Request(self.params.url, method="GET")
            with urlopen(req, timeout=self.params.timeout_seconds) as response:
                with gzip.GzipFile(fileobj=response) as gunzip, open(partial, "wb") as out:
                    shutil.copyfileobj(gunzip, out)
        except (OSError, URLError, socket.timeout, EOFError) as e:
            partial.unlink(missing_ok=True)
            self.logger.error("Instruments download failed", url=self.params.url, error=str(e))
            raise CatalogError(f"Instruments download failed: {e}", source=self.params.url) from e

        partial.replace(self.output_path)
        with self._lock:
            self._instruments = None
        self.logger.info("Instruments file downloaded and extracted", path=str(self.output_path))

    def _load(self) -> list[dict[str, Any]]:
        with self._lock:
            try:
                mtime = self.output_path.stat().st_mtime
            except FileNotFoundError as e:
                raise CatalogError("Instruments file not downloaded",
                                   source=str(self.output_path)) from e

            if self._instruments is None or self._loaded_mtime != mtime:
                try:
                    with open(self.output_path, encoding="utf-8") as f:
                        instruments = json.load(f)
                except json.JSONDecodeError as e:
                    raise CatalogError(
                        "Failed to parse instruments file, it might be corrupted",
                        source=str(self.output_path),
                    ) from e
                if not isinstance(instruments, list):
                    raise CatalogError("Instruments file is not a list",
                                       source=str(self.output_path))
                self._instruments = instruments
                self._loaded_mtime = mtime

            return self._instruments

    def find_nearest_option(self, asset_symbol: str, strike_price: float,
                            option_type: str, min_expiry_ms: int = 0) -> Optional[Instrument]:
        """
        Return the earliest-expiry contract matching the triple, or None.

        Args:
            asset_symbol: Underlying symbol, e.g. ``NIFTY`` (case-insensitive)
            strike_price: Exact strike
            option_type: ``CE`` or ``PE`` (case-insensitive)
            min_expiry_ms: Contracts expiring before this epoch-ms are ignored

        Raises:
            CatalogError: catalog missing or unreadable
        """
        symbol = asset_symbol.upper()
        kind = option_type.upper()

        best: Optional[dict[str, Any]] = None
        for item in self._load():
            if str(item.get("asset_symbol") or "").upper() != symbol:
                continue
            if str(item.get("instrument_type") or "").upper() != kind:
                continue
            if item.get("strike_price") != strike_price:
                continue
            expiry = item.get("expiry")
            if expiry is None or expiry < min_expiry_ms:
                continue
            if best is None or expiry < best["expiry"]:
                best = item

        if best is None:
            return None

        return Instrument(
            instrument_key=best["instrument_key"],
            trading_symbol=best.get("trading_symbol", best["instrument_key"]),
            asset_symbol=best["asset_symbol"],
            strike_price=best["strike_price"],
            instrument_type=best["instrument_type"],
            expiry=best["expiry"],
            lot_size=best.get("lot_size"),
        )


class NearestExpiryResolver:
    """Resolves (asset, strike, direction) to the nearest non-expired contract."""

    def __init__(self, catalog: InstrumentCatalog, tz_name: str = DEFAULT_EXCHANGE_TZ) -> None:
        self.catalog = catalog
        self.tz_name = tz_name

    def __call__(self, asset_name: str, strike: int, direction: Direction) -> Optional[Instrument]:
        today_start = start_of_day_ms(exchange_now(self.tz_name))
        return self.catalog.find_nearest_option(
            asset_name, strike, direction.value, min_expiry_ms=today_start
        )
