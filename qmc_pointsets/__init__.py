"""
Quasi-Monte Carlo Point Sets
============================

This package provides low-discrepancy point sets for quasi-Monte Carlo
integration, with a common point/coordinate iterator interface and
random shifts and permutations for randomized QMC.

Main classes:
- CycleBasedPointSetBase2, LFSRPointSetBase2: points as cycles of a GF(2) recurrence
- DigitalNetBase2, DigitalNetBase2FromFile: digital nets given by generator matrices
- NiedSequenceBase2: first 2^k points of the Niederreiter sequence
- PaddedPointSet: side-by-side concatenation, with Latin supercube permutations
- Rank1Lattice, KorobovLattice: rank-1 lattices, Korobov generator search

Reference:
    P. L'Ecuyer and C. Lemieux, Recent advances in randomized quasi-Monte
    Carlo methods (2002)

License: MIT
"""

from .cycle_based import CycleBasedPointSetBase2, LFSRPointSetBase2
from .digital_net import DigitalNetBase2, mask_rows
from .digital_net_file import DigitalNetBase2FromFile
from .exceptions import (
    ArgumentError,
    ExhaustionError,
    FatalLoadError,
    ParseError,
    PointSetError,
)
from .korobov import KorobovLattice
from .niederreiter import NiedSequenceBase2
from .padded import PaddedPointSet
from .point_set import PointSet, PointSetIterator
from .randomization import RandomShift
from .rank1 import Rank1Lattice
from .utils import EPSILON_HALF, INFINITE, MAXBITS

__version__ = "1.0.0"
__all__ = [
    "PointSet",
    "PointSetIterator",
    "CycleBasedPointSetBase2",
    "LFSRPointSetBase2",
    "DigitalNetBase2",
    "DigitalNetBase2FromFile",
    "NiedSequenceBase2",
    "PaddedPointSet",
    "Rank1Lattice",
    "KorobovLattice",
    "RandomShift",
    "mask_rows",
    "PointSetError",
    "ArgumentError",
    "ParseError",
    "ExhaustionError",
    "FatalLoadError",
    "MAXBITS",
    "EPSILON_HALF",
    "INFINITE",
]
