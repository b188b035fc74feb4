"""
Batch processing for wavelet denoising.

Rolls a ``DenoisePipeline`` bar by bar over many series held in one
DataFrame (MultiIndex [id, time] or 'id'/'time' columns, numeric 'value').
Series run in parallel with joblib; each series is processed sequentially
because the volatility EMA carries state from bar to bar.
"""

import pandas as pd
import numpy as np
from joblib import Parallel, delayed
from tqdm.auto import tqdm
from typing import Tuple, Dict, Any, Optional, Union
import logging

from .config import N_JOBS, PipelineConfig
from .swt.pipeline import DenoisePipeline

logger = logging.getLogger(__name__)

OUTPUT_COLUMNS = ['denoised', 'trend', 'slope', 'volatility']


def process_series(id_value, values: np.ndarray,
                   config: Optional[Union[PipelineConfig, Dict[str, Any]]] = None) -> pd.DataFrame:
    """
    Run the pipeline over one series.

    Args:
        id_value: Series identifier
        values: Series values, oldest first
        config: Pipeline configuration

    Returns:
        DataFrame indexed by bar position with OUTPUT_COLUMNS; bars before the
        first full window are absent
    """
    pipeline = DenoisePipeline(config)
    window_length = pipeline.config.window_length
    values = np.asarray(values, dtype=float)

    rows = []
    positions = []
    for end in range(window_length, len(values) + 1):
        step = pipeline.process(values[end - window_length:end])
        rows.append(step.to_dict())
        positions.append(end - 1)

    out = pd.DataFrame(rows, index=pd.Index(positions, name='position'), columns=OUTPUT_COLUMNS)
    out.insert(0, 'id', id_value)
    logger.debug(f"Series {id_value}: {len(out)} steps from {len(values)} values")
    return out


def _process_one(id_value, g: pd.DataFrame, config: PipelineConfig) -> Tuple[pd.DataFrame, Dict[str, Any]]:
    try:
        g_sorted = g.sort_index(level='time')
        values = g_sorted['value'].to_numpy(float)
        out = process_series(id_value, values, config)
        if len(out):
            out['time'] = g_sorted.index.get_level_values('time').to_numpy()[out.index.to_numpy()]
        meta = {'id': id_value, 'status': 'success', 'n_observations': len(values), 'n_steps': len(out)}
        return out, meta
    except Exception as e:
        logger.error(f"Error processing series {id_value}: {str(e)}")
        empty = pd.DataFrame(columns=['id'] + OUTPUT_COLUMNS + ['time'])
        meta = {'id': id_value, 'status': 'failed', 'error': str(e),
                'n_observations': len(g) if g is not None else 0, 'n_steps': 0}
        return empty, meta


def validate_input_dataframe(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate and normalise the input frame to a sorted [id, time] MultiIndex.

    Raises:
        ValueError: If the structure is invalid
    """
    if not isinstance(df.index, pd.MultiIndex):
        if not {'id', 'time'}.issubset(df.columns):
            raise ValueError("DataFrame must have 'id' and 'time' columns or MultiIndex [id, time]")
        df = df.set_index(['id', 'time'])
    elif list(df.index.names) != ['id', 'time']:
        raise ValueError("MultiIndex should have names ['id', 'time']")

    if 'value' not in df.columns:
        raise ValueError("DataFrame must have column: 'value'")
    if not pd.api.types.is_numeric_dtype(df['value']):
        raise ValueError("'value' column must be numeric")
    if df.empty:
        raise ValueError("DataFrame cannot be empty")
    return df.sort_index()


def run_batch(df: pd.DataFrame, config: Optional[Union[PipelineConfig, Dict[str, Any]]] = None,
              n_jobs: Optional[int] = None, verbose: bool = True) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Denoise every series of a frame.

    Args:
        df: Input frame (see module docstring)
        config: Pipeline configuration shared by all series
        n_jobs: Number of parallel jobs
        verbose: Whether to show progress

    Returns:
        Tuple of (output_df, metadata_df)
    """
    if n_jobs is None:
        n_jobs = N_JOBS
    if not isinstance(config, PipelineConfig):
        config = PipelineConfig.from_dict(config)
    config.validate()

    df = validate_input_dataframe(df)
    grouped = df.groupby(level='id')
    series_ids = list(grouped.groups.keys())
    logger.info(f"Processing {len(series_ids)} series with {n_jobs} parallel jobs")

    if n_jobs == 1:
        results = []
        for series_id in tqdm(series_ids, desc='Denoising', disable=not verbose):
            results.append(_process_one(series_id, grouped.get_group(series_id), config))
    else:
        results = Parallel(n_jobs=n_jobs, verbose=1 if verbose else 0)(
            delayed(_process_one)(series_id, grouped.get_group(series_id), config)
            for series_id in series_ids
        )

    frames = [r[0] for r in results if len(r[0])]
    output_df = (pd.concat(frames) if frames
                 else pd.DataFrame(columns=['id'] + OUTPUT_COLUMNS + ['time']))
    metadata_df = pd.DataFrame([r[1] for r in results]).set_index('id').sort_index()
    return output_df, metadata_df


def get_batch_summary(output_df: pd.DataFrame, metadata_df: pd.DataFrame) -> Dict[str, Any]:
    """Summary statistics for a batch run."""
    summary = {
        'n_series': len(metadata_df),
        'n_successful': int((metadata_df['status'] == 'success').sum()),
        'n_failed': int((metadata_df['status'] == 'failed').sum()),
        'n_steps': len(output_df),
    }
    if len(output_df):
        summary['avg_volatility'] = float(output_df['volatility'].mean())
        summary['avg_abs_slope'] = float(output_df['slope'].abs().mean())
    return summary
