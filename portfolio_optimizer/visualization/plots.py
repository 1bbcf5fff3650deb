"""
Plotting Module for Portfolio Optimization
==========================================

Static charts for the analysis results:
- Grid portfolios on the risk-return plane with the individual assets and the
  optimal portfolios highlighted
- Portfolio weight bars
- Cumulative returns of compared portfolios

Figures are returned and optionally saved; nothing here opens a window.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from portfolio_optimizer.core.asset import Asset
from portfolio_optimizer.core.comparer import ComparisonResult
from portfolio_optimizer.core.optimizer import FrontierPoint


def plot_efficient_frontier(
    frontier: Sequence[FrontierPoint],
    assets: Optional[Sequence[Asset]] = None,
    portfolios: Optional[Dict[str, Tuple[float, float]]] = None,
    figsize: Tuple[int, int] = (12, 8),
    save_path: Optional[str] = None,
    title: str = "Efficient Frontier (Grid Portfolios)"
) -> Figure:
    """
    Plot grid portfolios on the risk-return plane.

    Args:
        frontier: Points from GridOptimizer.efficient_frontier, already
            ordered by volatility
        assets: If provided, individual assets are marked and labelled
        portfolios: Optional {name: (expected_return, volatility)} to highlight
        figsize: Figure size (width, height)
        save_path: If provided, save the figure to this path
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    if frontier:
        vols = np.array([p.volatility for p in frontier])
        rets = np.array([p.expected_return for p in frontier])
        ax.scatter(vols * 100, rets * 100, c='lightsteelblue', s=6,
                   label='Grid Portfolios', zorder=1)

        # Upper envelope: highest return seen so far along increasing volatility
        envelope = np.maximum.accumulate(rets)
        on_envelope = rets >= envelope
        ax.plot(vols[on_envelope] * 100, rets[on_envelope] * 100,
                'b-', linewidth=2, label='Efficient Frontier', zorder=2)

    if assets:
        asset_vols = np.array([a.volatility for a in assets])
        asset_rets = np.array([a.expected_return for a in assets])
        ax.scatter(asset_vols * 100, asset_rets * 100,
                   c='red', s=100, marker='o', edgecolors='black',
                   label='Individual Assets', zorder=5)
        for asset, vol, ret in zip(assets, asset_vols, asset_rets):
            ax.annotate(asset.ticker, (vol * 100, ret * 100),
                        xytext=(5, 5), textcoords='offset points',
                        fontsize=9, fontweight='bold')

    markers = ['*', 'D', 's', '^', 'v', 'p', 'h']
    for i, (name, (ret, vol)) in enumerate((portfolios or {}).items()):
        ax.scatter([vol * 100], [ret * 100], s=250, marker=markers[i % len(markers)],
                   edgecolors='black', label=name, zorder=6)

    ax.set_xlabel('Annualized Volatility %', fontsize=12)
    ax.set_ylabel('Annualized Expected Return %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.legend(loc='upper left', fontsize=10)
    ax.grid(True, alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_portfolio_weights(
    weights: Sequence[float],
    asset_names: List[str],
    title: str = "Portfolio Weights",
    figsize: Tuple[int, int] = (10, 6),
    save_path: Optional[str] = None
) -> Figure:
    """
    Create a bar chart of portfolio weights.

    Args:
        weights: Portfolio weights
        asset_names: Names of assets
        title: Plot title
        figsize: Figure size
        save_path: Path to save figure

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    weights = np.asarray(weights, dtype=float)
    colors = plt.cm.viridis(np.linspace(0.2, 0.8, len(weights)))
    bars = ax.bar(asset_names, weights * 100, color=colors, edgecolor='black')

    for bar, w in zip(bars, weights):
        ax.annotate(f'{w*100:.1f}%',
                    xy=(bar.get_x() + bar.get_width() / 2, bar.get_height()),
                    xytext=(0, 3), textcoords='offset points',
                    ha='center', va='bottom', fontsize=10)

    ax.set_xlabel('Assets', fontsize=12)
    ax.set_ylabel('Weight %', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    ax.grid(True, axis='y', alpha=0.3)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig


def plot_cumulative_returns(
    comparison: ComparisonResult,
    figsize: Tuple[int, int] = (12, 6),
    save_path: Optional[str] = None,
    title: str = "Cumulative Returns"
) -> Figure:
    """
    Plot the wealth index of each compared portfolio.

    The x-axis uses the shared dates when the comparison recovered them,
    otherwise the period number.

    Args:
        comparison: Result of compare_portfolios
        figsize: Figure size
        save_path: Path to save figure
        title: Plot title

    Returns:
        matplotlib Figure object
    """
    fig, ax = plt.subplots(figsize=figsize)

    frame = comparison.cumulative_frame()
    for i, label in enumerate(frame.columns):
        ax.plot(frame.index, frame.iloc[:, i].to_numpy(), linewidth=1.5, label=label)

    ax.axhline(y=1.0, color='black', linestyle='-', linewidth=0.5)
    ax.set_xlabel('Date' if len(comparison.dates) else 'Period', fontsize=12)
    ax.set_ylabel('Growth of 1', fontsize=12)
    ax.set_title(title, fontsize=14, fontweight='bold')
    if len(frame.columns):
        ax.legend(loc='upper left', fontsize=9)
    ax.grid(True, alpha=0.3)

    fig.autofmt_xdate()
    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150, bbox_inches='tight')

    return fig
