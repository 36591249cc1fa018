#!/usr/bin/env python3
"""
Train an attention clustering network on synthetic clusters.

The script draws a labeled dataset of well-separated blobs, initializes the
point table from the data, trains by entropy minimization and reports:

- the mean per-sample entropy before and after training
- the nearest-neighbor label agreement of the learned attention vectors

Optionally the trained weights are written to a JSON weight file.
"""

import os
import sys

# Ensure repo_root/src is importable when running this file directly:
# repo_root/
#   src/occam/...
#   scripts/train_synthetic_clusters.py
THIS_DIR = os.path.dirname(os.path.abspath(__file__))
ROOT_DIR = os.path.abspath(os.path.join(THIS_DIR, ".."))
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import argparse
import logging

import numpy as np

from occam import (
    AttentionNetwork,
    TrainingConfig,
    make_clusters,
    nearest_neighbor_agreement,
    save_parameters,
)


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--classes", type=int, default=3)
    ap.add_argument("--per-class", type=int, default=16)
    ap.add_argument("--width", type=int, default=4)
    ap.add_argument("--noise", type=float, default=0.5)
    ap.add_argument("--iterations", type=int, default=4096)
    ap.add_argument("--lr", type=float, default=1e-3)
    ap.add_argument("--kind", choices=["softmax", "spherical"], default="softmax")
    ap.add_argument(
        "--sampling", choices=["random", "sweep"], default="random", help="Sample order."
    )
    ap.add_argument("--seed", type=int, default=1, help="RNG seed.")
    ap.add_argument("--verbose", action="store_true", help="Print every iteration.")
    ap.add_argument("--save", type=str, default=None, help="Weight file to write.")
    args = ap.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    rng = np.random.default_rng(args.seed)
    samples = make_clusters(
        rng,
        classes=args.classes,
        per_class=args.per_class,
        width=args.width,
        noise=args.noise,
    )
    labels = [s.label for s in samples]

    net = AttentionNetwork(
        args.width, len(samples), rng=rng, kind=args.kind, lr=args.lr
    )
    net.set_points(np.stack([s.features for s in samples]))

    before = float(net.entropies(samples).mean())
    result = net.fit(
        samples,
        TrainingConfig(
            iterations=args.iterations,
            sampling=args.sampling,
            verbose=int(args.verbose),
        ),
    )
    after = float(net.entropies(samples).mean())
    agreement = nearest_neighbor_agreement(net.vectors(samples), labels)

    print(f"state: {result.state.value} - iterations: {result.iterations}")
    print(f"mean entropy: {before:.6f} -> {after:.6f}")
    print(f"nearest-neighbor agreement: {agreement:.3f}")

    if args.save:
        save_parameters(net.parameters, args.save)
        print(f"Saved weights to: {os.path.abspath(args.save)}")


if __name__ == "__main__":
    main()
