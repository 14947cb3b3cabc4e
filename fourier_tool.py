#!/usr/bin/env python3
"""
Fourier Series Playground

Expands a named sample waveform over an interval, prints the Fourier series
formula, and optionally the coefficient table, an equivalent C function and
a plot of the reconstructed waveform.

Usage:
    f-tool square --domain=-pi,pi --count 10 --tolerance 0.01 --plot square.png
"""

import argparse
import logging
import re
import sys

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from scipy import signal

from fourier_series import (
    PI,
    DegenerateCoefficients,
    export_c_function,
    fourier_expand,
)

logger = logging.getLogger(__name__)

DEFAULT_COUNT = 10

WAVEFORMS = {
    "sin": np.sin,
    "cos": np.cos,
    "abs": np.abs,
    "square": lambda x: float(signal.square(x)),
    "sawtooth": lambda x: float(signal.sawtooth(x)),
    "triangle": lambda x: float(signal.sawtooth(x, 0.5)),
    "parabola": lambda x: x ** 2,
    "constant": lambda x: 1.0,
}

_PI_MULTIPLE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)?)\s*\*?\s*pi\s*$", re.IGNORECASE)


def parse_bound(text):
    """Parse a domain bound: a float, or a multiple of pi such as -pi or 0.5*pi."""
    match = _PI_MULTIPLE.match(text)
    if match:
        factor = match.group(1)
        if factor in ("", "+"):
            return PI
        if factor == "-":
            return -PI
        return float(factor) * PI
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid domain bound: {text!r}") from None


def parse_domain(text):
    """Parse 'D0,D1' into a pair of bounds."""
    parts = text.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"domain must be written as D0,D1, got {text!r}")
    return tuple(parse_bound(part) for part in parts)


def coefficient_table(expansion):
    coeffs = expansion.coefficients
    return pd.DataFrame(
        {"a": coeffs.a, "b": coeffs.b},
        index=pd.RangeIndex(coeffs.count + 1, name="n"),
    )


def plot_expansion(expansion, source=None, n_points=1000, out_path=None, show=True):
    x, y_series = expansion.sample(n_points)
    formula = expansion.expression(precision=4)

    fig, ax = plt.subplots(figsize=(10, 5))
    if source is not None:
        y_source = np.array([source(float(xi)) for xi in x])
        ax.plot(x, y_source, '-', label="Source function", alpha=0.6)
    ax.plot(x, y_series, '-', label=f"Reconstructed (n={expansion.coefficients.count})")
    ax.set_title("Fourier Series Approximation")
    ax.set_xlabel("x")
    ax.set_ylabel("f(x)")
    ax.grid(True)
    ax.legend()

    ax.text(0.02, -0.15, formula, transform=ax.transAxes, fontsize=9,
            verticalalignment='top', family='monospace')

    if out_path:
        fig.savefig(out_path, dpi=150, bbox_inches="tight")
    if show:
        plt.show()
    if out_path or show:
        plt.close(fig)
    return fig, ax


def setup_logging(verbosity):
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stdout,
    )


def build_parser():
    p = argparse.ArgumentParser(description="Fourier series playground with formula output")
    p.add_argument("waveform", choices=sorted(WAVEFORMS), help="Sample function to expand")
    p.add_argument("--domain", type=parse_domain, default=(-PI, PI), metavar="D0,D1",
                   help="Expansion interval, e.g. 0,2pi or --domain=-pi,pi (default: -pi,pi)")
    p.add_argument("--count", type=int, default=DEFAULT_COUNT,
                   help=f"Number of harmonics (default={DEFAULT_COUNT})")
    p.add_argument("--step", type=float, help="Integration step on the normalized [-pi, pi] interval (default: domain width / 10)")
    p.add_argument("--tolerance", type=float, help="Simplify coefficients to this relative tolerance")
    p.add_argument("--precision", type=int, help="Significant digits in the printed formula")
    p.add_argument("--table", action="store_true", help="Print the coefficient table")
    p.add_argument("--c-function", action="store_true", help="Print an equivalent C function")
    p.add_argument("--plot", metavar="PATH", help="Save a plot of the approximation")
    p.add_argument("--show", action="store_true", help="Show the plot interactively")
    p.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity")
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    setup_logging(args.verbose)

    source = WAVEFORMS[args.waveform]
    try:
        expansion = fourier_expand(source, args.domain, args.count, step=args.step)
    except ValueError as exc:
        p.error(str(exc))
    logger.info("expanded %s over %s with %d harmonics", args.waveform, expansion.domain, args.count)

    if args.tolerance is not None:
        try:
            expansion.simplify(args.tolerance)
        except DegenerateCoefficients:
            logger.warning("all coefficients are zero, nothing to simplify")
        except ValueError as exc:
            p.error(str(exc))

    print("Fourier series formula:")
    print(expansion.expression(precision=args.precision))

    if args.table:
        print("\nCoefficients:")
        print(coefficient_table(expansion).to_string())

    if args.c_function:
        print("\nEquivalent C function:")
        print(export_c_function(expansion, func_name=f"{args.waveform}_series"))

    if args.plot or args.show:
        plot_expansion(expansion, source=source, out_path=args.plot, show=args.show)
    return 0


if __name__ == "__main__":
    sys.exit(main())
