#!/usr/bin/env python3
"""Plot onset detection curves with their picked peaks, beats and ground truth.

One panel per onset configuration (curve, dashed local-mean + delta threshold,
picked peaks) plus a summary panel with the ensemble onsets and tracked beats.

Usage:
    uv run python scripts/visualize.py data/train/song.wav
    uv run python scripts/visualize.py data/train/song.wav --start 5 --end 15
    uv run python scripts/visualize.py data/train/song.wav --output my_plot.png
"""

import argparse
import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from beatgrid.analysis.engine import AnalysisEngine
from beatgrid.analysis.evaluation import BEAT_SUFFIX, ONSET_SUFFIX, ground_truth_path, load_ground_truth
from beatgrid.analysis.onset import SHARPEN_KERNEL, detection_curve, normalize, sharpen
from beatgrid.analysis.peak_picking import frame_to_time, mean_threshold, pick_peaks
from beatgrid.analysis.spectral import stft
from beatgrid.audio.loader import load_audio
from beatgrid.config import settings


def main():
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("audio", type=Path)
    parser.add_argument("--start", type=float, default=0.0, help="Start of the plotted range (s)")
    parser.add_argument("--end", type=float, default=None, help="End of the plotted range (s)")
    parser.add_argument("--output", type=Path, default=None)
    args = parser.parse_args()

    audio, sr = load_audio(args.audio)
    result = AnalysisEngine(settings).analyze_audio(audio, sr)
    spectra = stft(audio, settings.window_size, settings.hop_size)

    gt_onsets = load_ground_truth(ground_truth_path(args.audio, ONSET_SUFFIX)) or []
    gt_beats = load_ground_truth(ground_truth_path(args.audio, BEAT_SUFFIX), first_token=True) or []

    n_panels = len(settings.onset_methods) + 1
    fig, axes = plt.subplots(n_panels, 1, figsize=(14, 2.5 * n_panels), sharex=True)

    for ax, config in zip(axes, settings.onset_methods):
        curve = detection_curve(spectra, config.method, sr, settings.mel_bands, settings.log_lambda)
        if config.sharpen and len(curve) >= len(SHARPEN_KERNEL):
            curve = sharpen(curve)
        curve = normalize(curve, settings.normalization)
        mask = pick_peaks(curve, config.peak_picker)
        times = frame_to_time(np.arange(len(curve)), curve.hop_size, sr)
        peak_frames = mask.indices
        threshold = mean_threshold(curve.data, config.peak_picker.local_window_mean, config.peak_picker.delta)

        ax.plot(times, curve.data, linewidth=0.8, color="steelblue")
        ax.plot(times, threshold, linewidth=0.6, linestyle="--", color="gray")
        ax.plot(times[peak_frames], curve.data[peak_frames], "v", color="crimson", markersize=4)
        for t in gt_onsets:
            ax.axvline(t, color="green", alpha=0.3, linewidth=0.8)
        ax.set_ylabel(config.method.value.upper())
        ax.set_title(f"{config.method.value} (quality {config.quality}): {len(peak_frames)} onsets", fontsize=9)

    summary = axes[-1]
    summary.vlines(result.onsets, 0, 1, color="steelblue", linewidth=0.8, label="ensemble onsets")
    summary.vlines(result.beats, 1, 2, color="crimson", linewidth=1.2, label="beats")
    summary.vlines(gt_beats, 2, 3, color="green", linewidth=1.2, label="ground-truth beats")
    bpms = ", ".join(f"{b:.1f}" for b in result.tempo_bpms) or "-"
    summary.set_title(f"Tempo candidates: {bpms} BPM", fontsize=9)
    summary.set_yticks([])
    summary.legend(loc="upper right", fontsize=8)
    summary.set_xlabel("Time (s)")

    end = args.end if args.end is not None else len(audio) / sr
    summary.set_xlim(args.start, end)
    fig.tight_layout()

    output = args.output or Path(f"{args.audio.stem}_onsets.png")
    fig.savefig(output, dpi=120)
    print(f"Saved to {output}")


if __name__ == "__main__":
    main()
