"""
CLI entry point for portfolio analysis.

Usage:
    python run_cli.py                       # Run with sample data
    python run_cli.py --file prices.csv     # Run with a price table
    python run_cli.py --step 0.05           # Coarser weight grid
    python run_cli.py --non-negative        # Long-only tangency weights

For installed package, use: po-analyze
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from portfolio_optimizer.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
