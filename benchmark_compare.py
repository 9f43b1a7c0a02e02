#!/usr/bin/env python3
"""
benchmark_compare.py -- Measure the LZW compressor at several code-width
ceilings.

Each data set is compressed and decompressed once per ``max_bits`` value.
The script records the compression ratio (compressed size over original
size), the time taken to encode and decode, and whether the round trip
reproduced the input.  Results are collected into a pandas DataFrame and
plotted using matplotlib.

Smaller ``max_bits`` values keep the dictionary small and reset it more
often; larger ones let long inputs build longer matches at the cost of
wider codes.  The ``mixed_patterns`` data set is an image-like buffer
(gradients, stripes, flat areas and a noisy corner) built with numpy, the
kind of input LZW was designed for.

Run this script directly to print a table of metrics and output a PNG
chart named ``lzw_comparison_plot.png`` into the working directory.
"""

import argparse
import random
import time
from typing import Dict, Iterable, List, Optional, Sequence

import matplotlib
matplotlib.use('Agg') # headless backend
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from lzw import DEFAULT_MAX_BITS, compress, decompress

DEFAULT_MAX_BITS_VALUES = (9, 10, DEFAULT_MAX_BITS, 14, 16)
DEFAULT_PLOT_PATH = 'lzw_comparison_plot.png'

def mixed_patterns(width: int = 128, height: int = 128, seed: int = 7) -> bytes:
    """Build an 8-bit greyscale image with several kinds of structure.

    The top half is a horizontal gradient, the bottom left quarter has
    vertical stripes, the bottom right is flat apart from a block of
    random noise in its corner.  Rows are concatenated top to bottom.
    """
    img = np.zeros((height, width), dtype=np.uint8)
    half_h, half_w = height // 2, width // 2
    img[:half_h, :] = np.linspace(0, 255, width, dtype=np.uint8)
    stripes = ((np.arange(half_w) // 4) % 2) * 200 + 20
    img[half_h:, :half_w] = stripes.astype(np.uint8)
    img[half_h:, half_w:] = 96
    rng = np.random.default_rng(seed)
    noise_h, noise_w = max(1, height // 8), max(1, width // 8)
    img[height - noise_h:, width - noise_w:] = rng.integers(0, 256, size=(noise_h, noise_w), dtype=np.uint8)
    return img.tobytes()

def default_data_sets(size: int = 4096) -> Dict[str, bytes]:
    """Named byte buffers of roughly ``size`` bytes each."""
    side = max(1, int(size ** 0.5))
    return {
        "repetitive_text": (b"A" * 2000 + b"B" * 1000 + (b"CD" * 500))[:size],
        "english_like": (b"In compression we favor short programs and transparent circuits. " * (size // 64 + 1))[:size],
        "source_code": open(__file__, 'rb').read()[:size], # start of this script as code sample
        "byte_counter": bytes([i % 256 for i in range(size)]),
        # use a deterministic random seed for reproducibility
        "random_bytes": bytes(random.Random(42).getrandbits(8) for _ in range(size)),
        "mixed_patterns": mixed_patterns(side, side),
    }

def _measure(name: str, data: bytes, max_bits: int) -> Dict[str, object]:
    t0 = time.perf_counter()
    cdata = compress(data, max_bits)
    comp_time = (time.perf_counter() - t0) * 1000.0
    t0 = time.perf_counter()
    ddata = decompress(cdata, max_bits)
    decomp_time = (time.perf_counter() - t0) * 1000.0
    ratio = len(cdata) / len(data) if data else float('nan')
    return {
        'dataset': name,
        'algorithm': f'lzw_{max_bits}',
        'max_bits': max_bits,
        'orig_bytes': len(data),
        'comp_bytes': len(cdata),
        'ratio': ratio,
        'comp_ms': comp_time,
        'decomp_ms': decomp_time,
        'valid': ddata == data,
    }

def plot_results(df: pd.DataFrame, plot_path: str) -> str:
    """Draw ratio and timings as grouped bar charts and save to ``plot_path``."""
    fig, axs = plt.subplots(3, 1, figsize=(8, 10))
    for ax, metric, title in zip(
        axs,
        ['ratio', 'comp_ms', 'decomp_ms'],
        ['Compression Ratio (lower is better)',
         'Compression Time (ms)',
         'Decompression Time (ms)']):
        subset = df.pivot(index='dataset', columns='algorithm', values=metric)
        subset.plot.bar(ax=ax)
        ax.set_title(title)
        ax.set_ylabel(metric)
        ax.legend(loc='best', fontsize='small')
    plt.tight_layout()
    plt.savefig(plot_path, dpi=150)
    plt.close(fig)
    return plot_path

def run_benchmarks(data_sets: Optional[Dict[str, bytes]] = None,
                   max_bits_values: Iterable[int] = DEFAULT_MAX_BITS_VALUES,
                   plot_path: Optional[str] = DEFAULT_PLOT_PATH):
    """Run compression benchmarks on a suite of test data sets.

    Returns a pandas DataFrame with results for each combination of
    dataset and ``max_bits`` together with the path of the chart, or
    ``None`` when ``plot_path`` is ``None``.
    """
    if data_sets is None:
        data_sets = default_data_sets()
    results: List[Dict[str, object]] = []
    for name, data in data_sets.items():
        for max_bits in max_bits_values:
            results.append(_measure(name, data, max_bits))
    df = pd.DataFrame(results)
    if plot_path is not None:
        plot_results(df, plot_path)
    return df, plot_path

def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Benchmark the LZW compressor")
    parser.add_argument('--max-bits', type=int, nargs='+', default=list(DEFAULT_MAX_BITS_VALUES),
                        help="Code width ceilings to compare (default: %(default)s)")
    parser.add_argument('--size', type=int, default=4096, help="Approximate size of each data set in bytes")
    parser.add_argument('--plot', default=DEFAULT_PLOT_PATH, help="Output PNG path")
    parser.add_argument('--no-plot', action='store_true', help="Only print the table")
    args = parser.parse_args(argv)
    plot_path = None if args.no_plot else args.plot
    df, plot_path = run_benchmarks(default_data_sets(args.size), args.max_bits, plot_path)
    print(df.to_string(index=False))
    if plot_path:
        print(f"Plot written to {plot_path}")
    return 0 if df['valid'].all() else 1


if __name__ == '__main__':
    raise SystemExit(main())
