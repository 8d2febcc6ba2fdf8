import math
import numbers
from dataclasses import dataclass
from typing import Sequence, Tuple

from pmfir.exceptions import ValidationError

BAND_TYPES = ("bandpass", "differentiator", "hilbert")


@dataclass(frozen=True)
class FilterSpec:
    """Band description of a linear-phase FIR design problem.

    Parameters:
    -----------
    h_len (int) - filter length
    bands (sequence of (f0, f1)) - disjoint band intervals in [0, 0.5], ascending
    des (sequence of float) - desired response, one value per band
    weights (sequence of float) - relative error weight, one positive value per band
    band_type (str) - response symmetry ('bandpass', 'differentiator', 'hilbert').
        Only 'bandpass' is approximated as given; the others are accepted but not transformed.
    """

    h_len: int
    bands: Tuple[Tuple[float, float], ...]
    des: Tuple[float, ...]
    weights: Tuple[float, ...]
    band_type: str = "bandpass"

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "bands", tuple(self._as_pair(i, band) for i, band in enumerate(self.bands)))
        try:
            object.__setattr__(self, "des", tuple(float(d) for d in self.des))
            object.__setattr__(self, "weights", tuple(float(w) for w in self.weights))
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Desired values and weights must be sequences of numbers: {exc}") from exc
        object.__setattr__(self, "band_type", str(self.band_type).lower())
        self._validate()
        object.__setattr__(self, "h_len", int(self.h_len))

    @classmethod
    def from_edges(cls, h_len:int, edges:Sequence[float], des:Sequence[float], weights:Sequence[float]=None, band_type:str="bandpass"):
        """Build a spec from a flat edge list [f0, f1, f0, f1, ...].

        Missing weights default to one per band.
        """
        edges = list(edges)
        if len(edges) % 2 != 0:
            raise ValidationError(f"Band edges must come in pairs, got {len(edges)} values.")
        bands = tuple((edges[2*i], edges[2*i+1]) for i in range(len(edges) // 2))
        if weights is None:
            weights = (1.0,) * len(bands)
        return cls(h_len=h_len, bands=bands, des=tuple(des), weights=tuple(weights), band_type=band_type)

    # derived sizes

    @property
    def s(self) -> int:
        return self.h_len % 2

    @property
    def n(self) -> int:
        return (self.h_len - self.s) // 2

    @property
    def r(self) -> int:
        """Number of approximating functions."""
        return self.n + self.s

    @property
    def num_bands(self) -> int:
        return len(self.bands)

    @staticmethod
    def _as_pair(i:int, band) -> Tuple[float, float]:
        try:
            f0, f1 = band
            return float(f0), float(f1)
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Band {i} must be an (f0, f1) pair of numbers, got {band!r}.") from exc

    def _validate(self):
        if isinstance(self.h_len, bool) or not isinstance(self.h_len, numbers.Integral):
            raise ValidationError(f"h_len must be an integer, got {self.h_len!r}.")
        if self.h_len < 1:
            raise ValidationError(f"h_len must be at least 1, got {self.h_len}.")
        if self.band_type not in BAND_TYPES:
            raise ValidationError(f"Unsupported band type: '{self.band_type}'. Available options are: 'bandpass', 'differentiator', 'hilbert'.")

        if self.num_bands == 0:
            raise ValidationError("At least one band is required.")
        if len(self.des) != self.num_bands:
            raise ValidationError(f"Number of desired values ({len(self.des)}) must equal number of bands ({self.num_bands}).")
        if len(self.weights) != self.num_bands:
            raise ValidationError(f"Number of weights ({len(self.weights)}) must equal number of bands ({self.num_bands}).")

        for i, (f0, f1) in enumerate(self.bands):
            if not (math.isfinite(f0) and math.isfinite(f1)):
                raise ValidationError(f"Band {i} has non-finite edges [{f0}, {f1}].")
            if f0 < 0 or f1 > 0.5:
                raise ValidationError(f"Band {i} edges [{f0}, {f1}] must lie within [0, 0.5].")
            if f1 <= f0:
                raise ValidationError(f"Band {i} upper edge {f1} must be larger than its lower edge {f0}.")
            if i > 0 and f0 <= self.bands[i-1][1]:
                raise ValidationError(
                    f"Bands must be disjoint and ascending: band {i} [{f0}, {f1}] overlaps or precedes "
                    f"band {i-1} {list(self.bands[i-1])}."
                )

        for i, (d, w) in enumerate(zip(self.des, self.weights)):
            if not math.isfinite(d):
                raise ValidationError(f"Desired response of band {i} must be finite, got {d}.")
            if not (math.isfinite(w) and w > 0):
                raise ValidationError(f"Weight of band {i} must be strictly positive, got {w}.")

    def __str__(self):
        lines = [f"FilterSpec(h_len={self.h_len}, r={self.r}, band_type='{self.band_type}'):"]
        for (f0, f1), d, w in zip(self.bands, self.des, self.weights):
            lines.append(f"  [{f0:12.8f} {f1:12.8f}]  des={d:g}  weight={w:g}")
        return "\n".join(lines)
