"""
Data Loader Module for Portfolio Optimization
==============================================

Turns price tables that have already been fetched or exported into Asset
objects. The quantitative engine itself never reads files; this module is the
adapter the command line tool uses.

Supported inputs:
1. CSV or Excel price tables: first column = dates, one column per ticker
2. pandas DataFrames of prices (DatetimeIndex optional)
3. Stored statistics rows (ticker, expected_return, volatility), which yield
   synthetic assets without history
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from portfolio_optimizer.core.asset import Asset

logger = logging.getLogger(__name__)


class DataLoader:
    """
    A class for loading asset price data from various sources.

    Example:
        >>> loader = DataLoader()
        >>> prices = loader.load_prices("prices.csv")
        >>> assets = loader.assets_from_frame(prices)
    """

    def __init__(self, min_history: int = 2):
        """
        Initialize the DataLoader.

        Args:
            min_history: Minimum number of prices below which validation warns
        """
        self.min_history = min_history

    def load_prices(
        self,
        file_path: Union[str, Path],
        sheet: Optional[Union[str, int]] = None
    ) -> pd.DataFrame:
        """
        Read a price table from a CSV or Excel file.

        The first column is parsed as dates and becomes the index; columns that
        cannot be converted to numbers are dropped.

        Args:
            file_path: Path to a .csv, .xlsx or .xls file
            sheet: Excel sheet name or index (default: first sheet)

        Returns:
            DataFrame of prices, one column per ticker, sorted by date

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file type is unsupported or holds no price column
        """
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        if path.suffix.lower() == '.csv':
            df = pd.read_csv(path, index_col=0)
        elif path.suffix.lower() in ('.xlsx', '.xls'):
            df = pd.read_excel(path, sheet_name=0 if sheet is None else sheet, index_col=0)
        else:
            raise ValueError(f"Unsupported file type: {path.suffix}")

        if isinstance(df.index, pd.DatetimeIndex):
            parsed = df.index
        elif not pd.api.types.is_numeric_dtype(df.index.dtype):
            parsed = pd.to_datetime(df.index, errors='coerce')
        else:
            parsed = None

        if parsed is not None and len(parsed) > 0 and parsed.notna().all():
            df.index = parsed
            df = df.sort_index()
        else:
            logger.warning(f"{path.name}: first column is not a date column; using row order")

        numeric = df.apply(pd.to_numeric, errors='coerce')
        dropped = [col for col in numeric.columns if numeric[col].isna().all()]
        if dropped:
            logger.info(f"Dropping non-numeric columns: {dropped}")
            numeric = numeric.drop(columns=dropped)

        if numeric.shape[1] == 0:
            raise ValueError(f"No price columns found in {path}")

        logger.info(f"Loaded {numeric.shape[0]} rows x {numeric.shape[1]} tickers from {path.name}")
        return numeric

    def assets_from_frame(self, prices: pd.DataFrame) -> List[Asset]:
        """
        Build one Asset per column of a price table.

        Missing prices are dropped per column, so assets may end up with
        histories of different lengths (the engine aligns them on the end).
        """
        has_dates = isinstance(prices.index, pd.DatetimeIndex)
        assets = []
        for column in prices.columns:
            series = prices[column].dropna()
            dates = series.index if has_dates else None
            assets.append(Asset(str(column), series.to_numpy(dtype=float), dates))
        return assets

    def assets_from_statistics(
        self,
        records: Union[pd.DataFrame, Iterable[Tuple[str, float, float]]]
    ) -> List[Asset]:
        """
        Rebuild synthetic assets from stored (ticker, expected_return, volatility) rows.

        Args:
            records: DataFrame with columns ticker / expected_return / volatility,
                or an iterable of 3-tuples
        """
        if isinstance(records, pd.DataFrame):
            rows = records[['ticker', 'expected_return', 'volatility']].itertuples(index=False)
        else:
            rows = records
        return [Asset.from_statistics(t, er, vol) for t, er, vol in rows]

    def validate_assets(self, assets: List[Asset]) -> Dict[str, Any]:
        """
        Validate assets before analysis.

        Returns:
            Dictionary with is_valid, errors, and warnings
        """
        errors = []
        warnings_list = []

        if len(assets) == 0:
            errors.append("No assets loaded")

        tickers = [a.ticker for a in assets]
        duplicates = sorted({t for t in tickers if tickers.count(t) > 1})
        if duplicates:
            errors.append(f"Duplicate tickers: {duplicates}")

        for asset in assets:
            if asset.prices.size < self.min_history:
                warnings_list.append(
                    f"Asset '{asset.ticker}' has only {asset.prices.size} prices"
                )
            if np.isnan(asset.returns).any():
                warnings_list.append(
                    f"Asset '{asset.ticker}' has undefined returns (zero prices)"
                )

        return {
            'is_valid': len(errors) == 0,
            'errors': errors,
            'warnings': warnings_list
        }


def generate_sample_prices(
    n_assets: int = 4,
    n_periods: int = 252,
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate sample daily prices for testing.

    Prices follow a geometric Brownian motion with asset-specific drift and
    volatility, on a business-day calendar.

    Args:
        n_assets: Number of assets (default: 4)
        n_periods: Number of price observations
        seed: Random seed for reproducibility

    Returns:
        DataFrame of prices indexed by date, one column per asset
    """
    np.random.seed(seed)

    drifts = np.linspace(0.0002, 0.0008, n_assets)
    vols = np.linspace(0.010, 0.025, n_assets)
    shocks = np.random.normal(drifts, vols, size=(n_periods - 1, n_assets))
    log_paths = np.vstack([np.zeros(n_assets), np.cumsum(shocks, axis=0)])
    prices = 100.0 * np.exp(log_paths)

    if n_assets == 4:
        names = ['AAPL', 'MSFT', 'NVDA', 'JNJ']
    elif n_assets == 6:
        names = ['AAPL', 'MSFT', 'NVDA', 'JNJ', 'JPM', 'KO']
    else:
        names = [f'Stock_{i+1}' for i in range(n_assets)]

    dates = pd.bdate_range(start="2023-01-02", periods=n_periods)
    return pd.DataFrame(prices, index=dates, columns=names)
