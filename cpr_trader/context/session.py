"""
Lazily loaded per-trading-day context.

Holds the day's levels, the day's asset and broker credentials. Each value is
fetched on first use and reused for the rest of the trading date; failures
are never cached so the next tick retries the lookup.
"""

from datetime import date
from typing import Optional

import structlog

from ..config.defaults import CredentialParams
from ..data.models import DailyLevels, ExecutionCredentials, SessionAsset
from ..errors import CredentialsUnavailable, LevelsNotConfigured, NoAssetConfigured
from ..persistence.context_store import ContextStore

logger = structlog.get_logger(__name__)


class SessionContext:
    """Per-day trading context owned by the engine."""

    def __init__(self, store: ContextStore,
                 credential_params: CredentialParams = CredentialParams()) -> None:
        self.store = store
        self.credential_params = credential_params
        self.logger = logger

        self.levels: Optional[DailyLevels] = None
        self.asset: Optional[SessionAsset] = None
        self.asset_date: Optional[date] = None
        self.market_data_credentials: Optional[ExecutionCredentials] = None
        self.execution_credentials: Optional[ExecutionCredentials] = None

    def ensure_daily_levels(self, trading_date: date) -> DailyLevels:
        """
        Load the levels for ``trading_date`` unless already cached.

        Raises:
            ContextUnavailable: store unreachable
            LevelsNotConfigured: no row for the date
        """
        if self.levels is not None and self.levels.for_day == trading_date:
            return self.levels

        levels = self.store.load_daily_levels(trading_date)
        if levels is None:
            raise LevelsNotConfigured(
                "No daily levels available for today",
                trading_date=trading_date.isoformat(),
            )

        self.levels = levels
        self.logger.info(
            "Loaded daily levels",
            trading_date=trading_date.isoformat(),
            levels=levels.as_dict(),
        )
        return levels

    def ensure_daily_asset(self, trading_date: date, weekday: str) -> SessionAsset:
        """
        Load the asset assigned to ``weekday`` unless already cached for the date.

        Raises:
            ContextUnavailable: store unreachable
            NoAssetConfigured: nothing assigned to the weekday
        """
        if self.asset is not None and self.asset_date == trading_date:
            return self.asset

        asset = self.store.load_daily_asset(weekday)
        if asset is None:
            raise NoAssetConfigured("No asset available for today", weekday=weekday)

        self.asset = asset
        self.asset_date = trading_date
        self.logger.info(
            "Loaded daily asset",
            trading_date=trading_date.isoformat(),
            weekday=weekday,
            asset=asset.name,
            instrument_token=asset.instrument_token,
        )
        return asset

    def ensure_credentials(self, force_refresh: bool = False) -> ExecutionCredentials:
        """
        Load market data and execution credentials if absent or when forced.

        Returns the market data credentials.

        Raises:
            ContextUnavailable: store unreachable
            CredentialsUnavailable: no active market data credentials
        """
        if (not force_refresh
                and self.market_data_credentials is not None
                and self.execution_credentials is not None):
            return self.market_data_credentials

        params = self.credential_params
        market_data = self.store.load_credentials(
            params.market_data_broker, role=params.market_data_role
        )
        execution = self.store.load_credentials(params.execution_broker)

        if not market_data:
            raise CredentialsUnavailable(
                "No active market data credentials",
                broker=params.market_data_broker,
            )

        self.market_data_credentials = market_data[0]
        if execution:
            self.execution_credentials = execution[0]
        else:
            self.logger.warning(
                "No active execution credentials",
                broker=params.execution_broker,
            )

        self.logger.debug(
            "Refreshed broker credentials",
            forced=force_refresh,
            market_data_broker=params.market_data_broker,
            execution_accounts=len(execution),
        )
        return self.market_data_credentials

    def current_execution_credentials(self) -> Optional[ExecutionCredentials]:
        """Credentials supplier for the order gateway."""
        return self.execution_credentials
