"""
Truncated Fourier series of a real function over a closed interval.

The source function is sampled on [-pi, pi] after an affine change of
variable, its cosine/sine coefficients are estimated with a left Riemann
sum, and the resulting expansion can be evaluated, simplified and printed.
"""

import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

PI = np.pi
DEFAULT_STEP_DIVISOR = 10

# fraction of a step tolerated when deciding whether the last sample hits pi
_SAMPLE_SLACK = 1e-9


class InvalidSeriesCount(ValueError):
    """Raised when a series is requested with fewer than one harmonic."""

    def __init__(self, count):
        self.count = count
        super().__init__(f"series count must be a positive integer, got {count!r}")


class DegenerateCoefficients(ValueError):
    """Raised when simplifying a series whose coefficients are all zero."""


def _check_count(count):
    if isinstance(count, bool) or not isinstance(count, (int, np.integer)) or count < 1:
        raise InvalidSeriesCount(count)
    return int(count)


def _format_number(v, precision=None):
    if precision is None:
        return repr(float(v))
    return format(float(v), f".{precision}g")


@dataclass(frozen=True)
class Domain:
    """Closed interval [start, end] the series is expanded over."""

    start: float
    end: float

    def __post_init__(self):
        start, end = float(self.start), float(self.end)
        if not (math.isfinite(start) and math.isfinite(end)):
            raise ValueError(f"domain bounds must be finite, got [{start}, {end}]")
        if start >= end:
            raise ValueError(f"domain start must be below its end, got [{start}, {end}]")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", end)

    @classmethod
    def coerce(cls, domain):
        if isinstance(domain, cls):
            return domain
        start, end = domain
        return cls(start, end)

    @property
    def width(self):
        return self.end - self.start

    @property
    def midpoint(self):
        return 0.5 * (self.start + self.end)

    def to_angle(self, x):
        """Map x from the domain onto the standard angle interval [-pi, pi]."""
        return (np.asarray(x, dtype=float) - self.start) / self.width * 2 * PI - PI

    def from_angle(self, t):
        """Inverse of `to_angle`."""
        return (t + PI) / (2 * PI) * self.width + self.start


class Coefficients:
    """Cosine terms `a` and sine terms `b` of a series, indexed by harmonic.

    `a[0]` holds twice the mean value, `b[0]` is always zero and only keeps
    the two sequences aligned. Both have `count + 1` entries.
    """

    def __init__(self, a, b):
        a = np.array(a, dtype=float)
        b = np.array(b, dtype=float)
        if a.ndim != 1 or b.ndim != 1:
            raise ValueError(f"Expected 1D coefficient sequences, got shapes {a.shape} and {b.shape}")
        if a.shape != b.shape:
            raise ValueError(f"a/b length mismatch: {a.size} vs {b.size}")
        if a.size < 2:
            raise InvalidSeriesCount(a.size - 1)
        if b[0] != 0:
            raise ValueError(f"b[0] must be zero, got {b[0]}")
        b[0] = 0.0
        self._a = a
        self._b = b

    @property
    def a(self):
        view = self._a.view()
        view.flags.writeable = False
        return view

    @property
    def b(self):
        view = self._b.view()
        view.flags.writeable = False
        return view

    @property
    def count(self):
        return self._a.size - 1

    def __repr__(self):
        return f"Coefficients(a={self._a.tolist()}, b={self._b.tolist()})"

    def __eq__(self, other):
        if not isinstance(other, Coefficients):
            return NotImplemented
        return np.array_equal(self._a, other._a) and np.array_equal(self._b, other._b)

    def copy(self):
        return Coefficients(self._a, self._b)

    def max_abs(self):
        return max(np.max(np.abs(self._a)), np.max(np.abs(self._b)))

    def apply(self, t):
        """Sum the series at angle(s) t; returns a float for scalar input."""
        t = np.asarray(t, dtype=float)
        total = np.full(t.shape, self._a[0] / 2)
        for n in range(1, self._a.size):
            if self._a[n] != 0:
                total += self._a[n] * np.cos(n * t)
            if self._b[n] != 0:
                total += self._b[n] * np.sin(n * t)
        if total.ndim == 0:
            return float(total)
        return total

    def simplify(self, tolerance):
        """Zero coefficients below `tolerance` relative to the largest one and
        round the rest to the decimals that tolerance calls for. Lossy."""
        if not tolerance > 0:
            raise ValueError(f"tolerance must be positive, got {tolerance}")
        max_coef = self.max_abs()
        if max_coef == 0:
            raise DegenerateCoefficients("cannot simplify a series whose coefficients are all zero")

        digits = int(math.ceil(math.log10(1 / (max_coef * tolerance))))
        zeroed = 0
        for values in (self._a, self._b):
            negligible = np.abs(values) / max_coef < tolerance
            zeroed += int(np.count_nonzero(negligible & (values != 0)))
            if digits > 0:
                values[:] = _round_half_away(values, digits)
            values[negligible] = 0.0
        logger.debug("simplified series: %d digits kept, %d terms zeroed", digits, zeroed)


def _round_half_away(values, digits):
    m = 10.0 ** digits
    return np.sign(values) * np.floor(np.abs(values) * m + 0.5) / m


class FourierExpansion:
    """Coefficients bound to the domain they were estimated over."""

    def __init__(self, coefficients, domain):
        self._coefficients = coefficients
        self._domain = Domain.coerce(domain)

    @property
    def coefficients(self):
        return self._coefficients

    @property
    def domain(self):
        return self._domain

    def __repr__(self):
        return f"FourierExpansion({self._coefficients!r}, {self._domain!r})"

    def __str__(self):
        return self.expression()

    def __call__(self, x):
        return self.evaluate(x)

    def copy(self):
        return FourierExpansion(self._coefficients.copy(), self._domain)

    def evaluate(self, x):
        """Value of the series at x.

        Points outside the domain are not rejected: the series is periodic,
        so they get the periodic extension of the approximated function.
        """
        return self._coefficients.apply(self._domain.to_angle(x))

    def sample(self, n_points=1000):
        x = np.linspace(self._domain.start, self._domain.end, n_points)
        return x, self.evaluate(x)

    def simplify(self, tolerance):
        self._coefficients.simplify(tolerance)

    def expression(self, precision=None):
        """Human readable formula in the substituted variable t."""
        a = self._coefficients.a
        b = self._coefficients.b

        terms = []
        half_a0 = a[0] / 2
        if half_a0 != 0:
            terms.append(_format_number(half_a0, precision))
        for i in range(1, a.size):
            for value, basis in ((a[i], "cos"), (b[i], "sin")):
                if value == 0:
                    continue
                magnitude = _format_number(abs(value), precision)
                if not terms:
                    sign = "-" if value < 0 else ""
                    terms.append(f"{sign}{magnitude} * {basis}{i}t")
                else:
                    sign = "-" if value < 0 else "+"
                    terms.append(f"{sign} {magnitude} * {basis}{i}t")
        formula = "f(t) = " + (" ".join(terms) if terms else "0")

        d = self._domain
        if d.start == 0:
            scale = _format_number(2 / d.end, precision)
            where = f"where t = ({scale} * x - 1) * π"
        else:
            scale = _format_number(2 / d.width, precision)
            where = f"where t = ({scale} * (x - {_format_number(d.start, precision)}) - 1) * π"
        return formula + "\n" + where


def _sample_points(step):
    n_samples = int(math.ceil(2 * PI / step - _SAMPLE_SLACK))
    return -PI + step * np.arange(max(n_samples, 1))


def estimate(f, count, step):
    """Estimate `count` harmonics of f, a function already living on [-pi, pi].

    Each coefficient is a left Riemann sum with the given step; there is no
    adaptive refinement, so accuracy is entirely up to the step.
    """
    count = _check_count(count)
    if not step > 0:
        raise ValueError(f"integration step must be positive, got {step}")

    x = _sample_points(step)
    y = np.array([f(float(xi)) for xi in x], dtype=float)
    logger.debug("estimating %d harmonics from %d samples (step=%g)", count, x.size, step)

    a = np.zeros(count + 1)
    b = np.zeros(count + 1)
    for n in range(count + 1):
        a[n] = np.sum(step * y * np.cos(n * x)) / PI
        if n > 0:
            b[n] = np.sum(step * y * np.sin(n * x)) / PI
    return Coefficients(a, b)


def fourier_expand(f, domain, count, step=None):
    """Expand f over `domain` into a series of `count` harmonics.

    `step` is the quadrature step on the normalized angle interval
    [-pi, pi], handed unchanged to `estimate`. It defaults to the domain
    width divided by DEFAULT_STEP_DIVISOR.
    """
    count = _check_count(count)
    domain = Domain.coerce(domain)
    if step is None:
        step = domain.width / DEFAULT_STEP_DIVISOR
    elif not step > 0:
        raise ValueError(f"integration step must be positive, got {step}")

    def normalized(t):
        return f(domain.from_angle(t))

    coefficients = estimate(normalized, count, step)
    return FourierExpansion(coefficients, domain)


def export_c_function(expansion, func_name="f_series", precision=12):
    """Generate a C function string that evaluates the Fourier series."""
    a = expansion.coefficients.a
    b = expansion.coefficients.b
    d = expansion.domain

    lines = []
    lines.append("#include <math.h>")
    lines.append("")
    lines.append(f"double {func_name}(double x) {{")
    lines.append(f"    double t = (x - {d.start:.{precision}f}) / {d.width:.{precision}f} * 2.0 * M_PI - M_PI;")
    lines.append(f"    double result = {a[0] / 2:.{precision}f};  // a0/2")
    for n in range(1, a.size):
        if a[n] != 0:
            lines.append(f"    result += {a[n]:+.{precision}f} * cos({n} * t);")
        if b[n] != 0:
            lines.append(f"    result += {b[n]:+.{precision}f} * sin({n} * t);")
    lines.append("    return result;")
    lines.append("}")
    return "\n".join(lines)
