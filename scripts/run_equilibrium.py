#!/usr/bin/env python3
from __future__ import annotations

import argparse
from pathlib import Path
import pandas as pd
import matplotlib.pyplot as plt
from tqdm.auto import tqdm

from sparse_markov import BuildError, Markov, Prob, solve_equilibrium


def read_edges(path: Path, sep: str | None) -> list[tuple[str, str, float]]:
    """Read `src dst weight` rows; a missing weight column counts each edge once."""
    df = pd.read_csv(path, sep=sep or r"\s+", header=None, comment="#", dtype=str, engine="python")
    if df.shape[1] < 2:
        raise ValueError(f"{path}: expected at least two columns (src dst [weight]).")
    if df.shape[1] == 2:
        df[2] = "1.0"

    edges = []
    for src, dst, w in tqdm(df.iloc[:, :3].itertuples(index=False), total=len(df), desc="edges"):
        edges.append((str(src), str(dst), float(w)))
    return edges


def main() -> None:
    ap = argparse.ArgumentParser(description="Stationary distribution of a weighted edge list.")

    ap.add_argument("edges", help="Edge list file: src dst [weight] per line.")
    ap.add_argument("--sep", default=None, help="Column separator (default: whitespace).")
    ap.add_argument("--outputs-dir", default="outputs", help="Directory to save CSV/figures.")

    ap.add_argument("--tol", type=float, default=1e-10, help="Max-abs convergence tolerance.")
    ap.add_argument("--max-iter", type=int, default=1000, help="Max power iterations.")
    ap.add_argument("--laziness", type=float, default=0.5, help="Holding probability of the lazy chain.")
    ap.add_argument("--progress-every", type=int, default=0, help="Print progress every N iterations.")
    ap.add_argument("--plot", action="store_true", help="Also save a bar chart of the distribution.")

    args = ap.parse_args()

    outputs_dir = Path(args.outputs_dir)
    outputs_dir.mkdir(parents=True, exist_ok=True)

    edges = read_edges(Path(args.edges), args.sep)
    nodes = list(dict.fromkeys(x for src, dst, _ in edges for x in (src, dst)))
    print(f"Nodes: {len(nodes)}  edges: {len(edges)}")

    try:
        markov = Markov.from_assoc(len(nodes), len(nodes), edges, row_labels=nodes, col_labels=nodes)
    except BuildError as e:
        raise SystemExit(f"Cannot build chain: {e}")

    initial = Prob.uniform(markov.row_ix_map)
    result = solve_equilibrium(
        markov,
        initial,
        args.tol,
        args.max_iter,
        laziness=args.laziness,
        progress_every=args.progress_every,
    )
    status = "converged" if result.converged else "did not converge"
    print(f"Equilibrium {status} after {result.iterations} iterations (residual {result.residual:.3e})")

    pi = result.distribution
    print(f"Entropy: {pi.entropy():.4f}  effective states: {pi.effective_states():.2f}")
    print(f"Entropy rate: {markov.entropy_rate(pi):.4f}")
    print(f"Detailed balance deviation: {markov.detailed_balance_deviation_sum(pi):.3e}")

    table = pi.to_series().rename_axis("node").reset_index().sort_values("p", ascending=False)
    out_csv = outputs_dir / "equilibrium.csv"
    table.to_csv(out_csv, index=False)
    print("\nSaved:", out_csv)
    print(table.head(20).to_string(index=False))

    if args.plot:
        plt.figure()
        plt.bar(table["node"].astype(str), table["p"])
        plt.xlabel("node")
        plt.ylabel(r"$\pi$")
        plt.title("Stationary distribution")
        plt.xticks(rotation=90)
        plt.tight_layout()
        fig = outputs_dir / "equilibrium.png"
        plt.savefig(fig, dpi=300, bbox_inches="tight")
        plt.close()
        print("Saved figure:", fig)


if __name__ == "__main__":
    main()
