#!/usr/bin/env python3
"""
Wavelet denoising: example script (synthetic demo + batch run)
==============================================================

This script demonstrates the stationary wavelet pipeline in two steps:
  1) **Synthetic demo**: a noisy sine whose noise level jumps half way;
     compares the threshold rules and prints the volatility estimate and bands.
  2) **Batch run**: read a parquet/csv frame (MultiIndex [id,time] or id/time
     columns, plus 'value'), roll the pipeline over every id and write the
     per-bar output.

Usage
-----
# Synthetic demo only
python denoise_example.py

# Demo + batch run over a subset of 200 randomly sampled ids
python denoise_example.py --x prices.parquet --out denoised.csv --n_ids 200 --random_sample

# Skip the demo, hard shrinkage with SURE
python denoise_example.py --x prices.parquet --skip_demo --rule sure --mode hard
"""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from wavedenoise import (
    DenoisePipeline, PipelineConfig, TransformAdapter, ThresholdRule, ShrinkageMode,
)
from wavedenoise.batch_processor import run_batch, get_batch_summary


# -----------------------------
# Synthetic demo utilities
# -----------------------------

def make_synthetic(
    n: int = 512,
    period: float = 32.0,
    sigma0: float = 0.1,
    sigma1: float = 0.4,
    seed: int = 123,
) -> tuple[np.ndarray, np.ndarray]:
    """Sine with a noise-level change at n // 2.

    Returns
    -------
    clean: np.ndarray shape (n,)
    noisy: np.ndarray shape (n,)
    """
    rng = np.random.default_rng(seed)
    t = np.arange(n)
    clean = np.sin(2.0 * np.pi * t / period)
    sigma = np.where(t < n // 2, sigma0, sigma1)
    return clean, clean + sigma * rng.standard_normal(n)


def run_synthetic_demo(cfg: PipelineConfig) -> None:
    print("\n[1/2] Synthetic demo: sine, noise sigma 0.1 -> 0.4 ...")
    clean, noisy = make_synthetic()
    n = cfg.window_length

    adapter = TransformAdapter(cfg.wavelet)
    window_clean, window_noisy = clean[-n:], noisy[-n:]
    print(f"  {'rule':12s} {'mode':6s} {'mse':>10s}")
    print(f"  {'(raw)':12s} {'':6s} {np.mean((window_noisy - window_clean) ** 2):10.6f}")
    for rule in ThresholdRule:
        for mode in ShrinkageMode:
            out = adapter.denoise(window_noisy, cfg.levels, rule, mode)
            mse = np.mean((out - window_clean) ** 2)
            print(f"  {rule.display_name:12s} {mode.display_name:6s} {mse:10.6f}")

    print("\nRolling pipeline (volatility should rise after the change) ...")
    pipeline = DenoisePipeline(cfg)
    checkpoints = {len(noisy) // 2 - 1, len(noisy) // 2 + n // 2, len(noisy) - 1}
    for end in range(n, len(noisy) + 1):
        step = pipeline.process(noisy[end - n:end])
        if end - 1 in checkpoints:
            bands = pipeline.estimator.create_bands(step.denoised)
            print(f"  bar {end - 1:4d}: denoised={step.denoised:+.4f} slope={step.slope:+.4f} "
                  f"vol={step.volatility:.4f}  {bands}")


# -----------------------------
# Batch run
# -----------------------------

def pick_subset(ids: Sequence, n_ids: Optional[int], random_sample: bool, seed: int) -> list:
    ids_unique = list(dict.fromkeys(ids))  # preserve order
    if (n_ids is None) or (n_ids <= 0) or (n_ids >= len(ids_unique)):
        return ids_unique
    if random_sample:
        rng = np.random.default_rng(seed)
        return list(rng.choice(ids_unique, size=n_ids, replace=False))
    return ids_unique[:n_ids]


def run_file(
    x_path: str,
    out_path: str,
    cfg: PipelineConfig,
    n_ids: Optional[int] = None,
    random_sample: bool = False,
    seed: int = 42,
    n_jobs: Optional[int] = None,
) -> None:
    print("\n[2/2] Batch run: loading X ...")
    X = pd.read_csv(x_path) if x_path.endswith(".csv") else pd.read_parquet(x_path)
    if not isinstance(X.index, pd.MultiIndex):
        X = X.set_index(["id", "time"])
    X = X.sort_index()

    all_ids = X.index.get_level_values(0).unique().tolist()
    sel_ids = pick_subset(all_ids, n_ids=n_ids, random_sample=random_sample, seed=seed)
    print(f"Processing {len(sel_ids)} ids (out of {len(all_ids)}) ...")

    X = X.loc[X.index.get_level_values(0).isin(sel_ids)]
    output_df, metadata_df = run_batch(X, cfg, n_jobs=n_jobs)
    output_df.to_csv(out_path)
    print(f"Saved {out_path} with shape {output_df.shape}")
    print(get_batch_summary(output_df, metadata_df))


# -----------------------------
# CLI
# -----------------------------

def main():
    ap = argparse.ArgumentParser(description="Wavelet denoising example: synthetic demo + batch run")
    ap.add_argument("--x", default=None, help="Path to the input frame (parquet or csv)")
    ap.add_argument("--out", default="denoised.csv", help="Output CSV path")
    ap.add_argument("--wavelet", type=str, default="db4", help="Wavelet family")
    ap.add_argument("--J", type=int, default=3, help="Decomposition levels")
    ap.add_argument("--window", type=int, default=128, help="Window length")
    ap.add_argument("--rule", type=str, default="universal", help="universal | bayes | sure | auto")
    ap.add_argument("--mode", type=str, default="soft", help="soft | hard")
    ap.add_argument("--n_ids", type=int, default=None, help="If set, process only this many ids")
    ap.add_argument("--random_sample", action="store_true", help="If set, sample ids at random")
    ap.add_argument("--seed", type=int, default=42, help="Random seed for sampling")
    ap.add_argument("--n_jobs", type=int, default=None, help="Parallel jobs for the batch run")
    ap.add_argument("--skip_demo", action="store_true", help="Skip the synthetic demo step")
    args = ap.parse_args()

    cfg = PipelineConfig(wavelet=args.wavelet, levels=args.J, window_length=args.window,
                         threshold_rule=args.rule, shrinkage_mode=args.mode)
    cfg.validate()

    if not args.skip_demo:
        run_synthetic_demo(cfg)

    if args.x:
        run_file(
            x_path=args.x,
            out_path=args.out,
            cfg=cfg,
            n_ids=args.n_ids,
            random_sample=args.random_sample,
            seed=args.seed,
            n_jobs=args.n_jobs,
        )


if __name__ == "__main__":
    main()
