"""
Digital Nets in Base 2 Read From a File or URL
==============================================

Parameter files hold whitespace-separated integers; ``//`` starts a
comment that runs to the end of the line. The layout is::

    b            // base, must be 2
    k            // number of columns
    r            // number of rows
    n            // number of points, must be 2^k
    s            // dimension
    a_1 ... a_k  // columns of C_1
    ...
    a_1 ... a_k  // columns of C_s

Column ``a_c`` of ``C_j`` packs the rows on 31 bits with the first row in
bit 30: ``a_c = 2^30 (C_j)_{1c} + 2^29 (C_j)_{2c} + ... + 2^{31-r} (C_j)_{rc}``.
"""

import io
import logging
import os
import re
import urllib.request
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

import numpy as np

from .digital_net import DigitalNetBase2, mask_rows
from .exceptions import ArgumentError, ParseError
from .utils import MAXBITS

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, io.TextIOBase]

_COMMENT = re.compile(r"//[^\n]*")
_URL_PREFIXES = ("http:", "https:", "ftp:")


def read_source(source: Source) -> Tuple[str, str]:
    """
    Read the whole text of a parameter resource.

    Parameters
    ----------
    source : str, path-like or text stream
        A local path, a URL starting with ``http:``, ``https:`` or ``ftp:``,
        or an object with a ``read()`` method.

    Returns
    -------
    text : str
        Content of the resource.
    name : str
        Name used in messages.
    """
    if hasattr(source, "read"):
        return source.read(), getattr(source, "name", "<stream>")
    name = os.fspath(source)
    if isinstance(name, str) and name.startswith(_URL_PREFIXES):
        with urllib.request.urlopen(name) as response:
            return response.read().decode("ascii"), name
    with open(name, "r", encoding="ascii") as f:
        return f.read(), str(name)


def tokenize(text: str) -> Iterator[str]:
    """Yield the tokens of ``text``, skipping ``//`` comments."""
    for line in text.splitlines():
        yield from _COMMENT.sub("", line).split()


class _IntReader:
    """Pull integers from a token stream, reporting the offending token on error."""

    def __init__(self, tokens: Iterator[str], source: str):
        self._tokens = tokens
        self._source = source

    def next(self, what: str) -> int:
        token = next(self._tokens, None)
        if token is None:
            raise ParseError(f"data ended while reading {what}", source=self._source)
        try:
            return int(token)
        except ValueError:
            pass
        try:
            value = float(token)
        except ValueError:
            raise ParseError(f"not a number while reading {what}",
                             token=token, source=self._source) from None
        if not value.is_integer():
            raise ParseError(f"not an integer while reading {what}",
                             token=token, source=self._source)
        return int(value)


class DigitalNetBase2FromFile(DigitalNetBase2):
    """
    Digital net in base 2 whose generator matrices are read from a file or URL.

    Parameters
    ----------
    source : str, path-like or text stream
        Where to read the parameters from (see :func:`read_source`).
    r1 : int, optional
        Number of rows to keep; r1 <= 0 keeps the number in the file.
    w : int, optional
        Number of output digits, r1 <= w <= 31 (default: 31).
    s1 : int, optional
        Number of dimensions to keep; s1 <= 0 keeps the dimension in the file.

    Raises
    ------
    ArgumentError
        If a parameter is out of bounds. All header checks happen before
        the generator matrices are read.
    ParseError
        If a token is not an integer, a column does not fit in 31 bits, or
        the data ends early.

    Examples
    --------
    >>> net = DigitalNetBase2FromFile("sobol_s5_k10.txt", r1=20, w=20, s1=3)  # doctest: +SKIP
    >>> net.num_points, net.dimension                                          # doctest: +SKIP
    (1024, 3)
    """

    def __init__(self, source: Source, r1: int = -1, w: int = MAXBITS, s1: int = -1):
        if w < r1 or w > MAXBITS:
            raise ArgumentError(f"Must have numRows <= w <= {MAXBITS}")

        text, name = read_source(source)
        reader = _IntReader(tokenize(text), name)
        num_rows, columns = self._read_data(reader, r1, w, s1)

        super().__init__(mask_rows(columns, num_rows, w), out_digits=w, num_rows=num_rows)
        self.filename = name
        logger.debug("Read digital net from %s: k=%d, r=%d, w=%d, dim=%d",
                     name, self.num_cols, num_rows, w, self.dimension)

    @staticmethod
    def _read_data(reader: _IntReader, r1: int, w: int, s1: int) -> Tuple[int, np.ndarray]:
        b = reader.next("the base")
        num_cols = reader.next("the number of columns")
        num_rows = reader.next("the number of rows")
        num_points = reader.next("the number of points")
        dim = reader.next("the dimension")

        if b != 2:
            raise ArgumentError(f"only base 2 allowed, got base {b}")
        if dim < 1:
            raise ArgumentError("dimension dim <= 0")
        if r1 > num_rows:
            raise ArgumentError(f"One must have r1 <= Max num rows ({num_rows})")
        if s1 > dim:
            raise ArgumentError(f"s1 is too large, the file has dimension {dim}")
        if not 0 <= num_cols < MAXBITS:
            raise ArgumentError(f"Must have 0 <= numCols < {MAXBITS}, got {num_cols}")
        if num_points != 1 << num_cols:
            raise ArgumentError(f"numPoints != 2^k: {num_points} != 2^{num_cols}")
        if s1 > 0:
            dim = s1
        if r1 > 0:
            num_rows = r1
        if not 0 <= num_rows <= w:
            raise ArgumentError(f"Must have 0 <= numRows <= w, got numRows={num_rows}, w={w}")

        columns = np.empty((dim, num_cols), dtype=np.int64)
        for j in range(dim):
            for c in range(num_cols):
                value = reader.next(f"column {c} of dimension {j}")
                if not 0 <= value < 1 << MAXBITS:
                    raise ParseError(f"column {c} of dimension {j} does not fit in "
                                     f"{MAXBITS} bits", token=str(value),
                                     source=reader._source)
                columns[j, c] = value
        return num_rows, columns

    def __str__(self) -> str:
        return f"File:  {self.filename}\n" + super().__str__()
