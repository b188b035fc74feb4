#!/usr/bin/env python3
"""
Command line entry point for wavelet denoising.

Reads a frame of series (csv or parquet; MultiIndex [id, time] or 'id'/'time'
columns plus 'value'), rolls the denoising pipeline over every series and
writes the per-bar denoised value, trend, slope and volatility.
"""

import argparse
import sys
import logging
from pathlib import Path

import pandas as pd

from .config import (
    WAVELET_TYPE, DECOMPOSITION_LEVELS, WINDOW_LENGTH, THRESHOLD_RULE, SHRINKAGE_MODE,
    SMOOTHING_PERIOD, LEVEL_WEIGHT_DECAY, N_JOBS, PipelineConfig
)
from .exceptions import ConfigurationError


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Stationary wavelet denoising and volatility")

    # Input/Output paths
    parser.add_argument('--input', '-i', type=str, default=None,
                       help='Input csv or parquet file')
    parser.add_argument('--output', '-o', type=str, default='denoised.parquet',
                       help='Output csv or parquet file')

    # Transform
    parser.add_argument('--wavelet-type', type=str, default=WAVELET_TYPE,
                       help='Wavelet family (PyWavelets name)')
    parser.add_argument('--decomposition-levels', type=int, default=DECOMPOSITION_LEVELS,
                       help='Number of decomposition levels')
    parser.add_argument('--window-length', type=int, default=WINDOW_LENGTH,
                       help='Samples per window (at least 2**levels)')
    parser.add_argument('--reconstruct-level', type=int, default=None,
                       help='Detail levels kept in the denoised series (default levels - 1)')

    # Shrinkage
    parser.add_argument('--threshold-rule', type=str, default=THRESHOLD_RULE,
                       choices=['universal', 'bayes', 'sure', 'auto'],
                       help='Threshold rule')
    parser.add_argument('--shrinkage-mode', type=str, default=SHRINKAGE_MODE,
                       choices=['soft', 'hard'],
                       help='Shrinkage mode')

    # Volatility
    parser.add_argument('--smoothing-period', type=int, default=SMOOTHING_PERIOD,
                       help='EMA period of the volatility estimate')
    parser.add_argument('--level-weight-decay', type=float, default=LEVEL_WEIGHT_DECAY,
                       help='Level weight decay of the volatility estimate')
    parser.add_argument('--volatility-window', type=int, default=None,
                       help='Trailing coefficients per level used for volatility (default all)')

    # Runtime
    parser.add_argument('--n-jobs', '-j', type=int, default=None,
                       help='Number of parallel jobs')
    parser.add_argument('--verbose', '-v', action='store_true',
                       help='Verbose logging')
    parser.add_argument('--validate-only', action='store_true',
                       help='Validate config and exit')

    return parser.parse_args(argv)


def get_pipeline_config(args: argparse.Namespace) -> PipelineConfig:
    """Build the pipeline configuration from arguments."""
    return PipelineConfig(
        wavelet=args.wavelet_type,
        levels=args.decomposition_levels,
        window_length=args.window_length,
        threshold_rule=args.threshold_rule,
        shrinkage_mode=args.shrinkage_mode,
        smoothing_period=args.smoothing_period,
        level_weight_decay=args.level_weight_decay,
        volatility_window=args.volatility_window,
        reconstruct_level=args.reconstruct_level,
    )


def _load_df(path: Path) -> pd.DataFrame:
    if path.suffix.lower() == '.csv':
        return pd.read_csv(path)
    return pd.read_parquet(path)


def _save_df(df: pd.DataFrame, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == '.csv':
        df.to_csv(path, index=True)
    else:
        df.to_parquet(path, index=True)


def run_denoising(args: argparse.Namespace) -> int:
    """Run batch denoising with the configured pipeline."""
    from .batch_processor import run_batch, get_batch_summary

    logger = logging.getLogger(__name__)

    config = get_pipeline_config(args)
    config.validate()
    if args.validate_only:
        logger.info("Validation only - exiting")
        return 0

    if args.input is None:
        logger.error("No input file given (--input)")
        return 1
    input_path = Path(args.input)
    if not input_path.exists():
        logger.error(f"Input file does not exist: {input_path}")
        return 1

    logger.info(f"Running denoising with config: {config.to_dict()}")
    df = _load_df(input_path)
    output_df, metadata_df = run_batch(df, config, n_jobs=args.n_jobs or N_JOBS, verbose=True)

    output_path = Path(args.output)
    _save_df(output_df, output_path)
    logger.info(f"Saved output to: {output_path}")

    summary = get_batch_summary(output_df, metadata_df)
    logger.info(f"Processed {summary['n_series']} series, {summary['n_steps']} steps")
    logger.info(f"Success: {summary['n_successful']}, Failed: {summary['n_failed']}")
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    try:
        logger.info("Starting wavelet denoising")
        return run_denoising(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
