"""Fixed-size matrices of 32-bit floats.

This module implements the small linear algebra core used by the viewer:
validated construction, vector transformation, matrix multiplication,
determinants by Gaussian elimination with partial pivoting, cofactors,
transposition and inversion through the adjugate.

All arithmetic is carried out in float32, so precision loss is expected and
grows with the matrix size.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# Pivots smaller than this are treated as zero during elimination
SINGULAR_PIVOT_THRESHOLD = 1e-10

MatrixLike = Union[Sequence[Sequence[float]], np.ndarray]


class MatrixError(ValueError):
    """Base class for matrix usage errors."""


class InvalidSize(MatrixError):
    """Raised for zero rows or a vector/grid of the wrong length."""


class InvalidShape(MatrixError):
    """Raised when row lengths disagree with the declared column count."""


class MismatchedShapes(MatrixError):
    """Raised when the inner dimensions of a product disagree."""


class NonSquareMatrix(MatrixError):
    """Raised by operations that are only defined for square matrices."""


def _validate_contents(
    contents: MatrixLike,
    rows: Optional[int] = None,
    cols: Optional[int] = None
) -> np.ndarray:
    """Check a row-major grid against its declared dimensions.

    Args:
        contents: Sequence of row sequences
        rows: Declared row count, defaults to len(contents)
        cols: Declared column count, defaults to the first row's length

    Returns:
        Owned float32 copy of the grid with shape (rows, cols)
    """
    n_rows = len(contents)
    if n_rows == 0:
        raise InvalidSize("Matrix must have at least one row")
    if rows is not None and n_rows != rows:
        raise InvalidSize(f"Expected {rows} rows, got {n_rows}")

    row_lengths = []
    for i, row in enumerate(contents):
        try:
            row_lengths.append(len(row))
        except TypeError:
            raise InvalidShape(f"Row {i} is not a sequence: {row!r}") from None

    if cols is None:
        cols = row_lengths[0]
    if cols == 0:
        raise InvalidSize("Matrix must have at least one column")

    for i, length in enumerate(row_lengths):
        if length != cols:
            raise InvalidShape(f"Row {i} has {length} entries, expected {cols}")

    return np.array(contents, dtype=np.float32).reshape(n_rows, cols)


class Matrix:
    """A dense rows x cols grid of float32 values.

    The dimensions are fixed at construction. Every operation that produces a
    grid returns a new, independently owned Matrix; only set_contents mutates
    an existing instance.
    """

    def __init__(
        self,
        contents: MatrixLike,
        rows: Optional[int] = None,
        cols: Optional[int] = None
    ):
        """Validate and copy the given grid.

        Args:
            contents: Row-major grid, e.g. [[1, 2], [3, 4]]
            rows: Optional declared row count
            cols: Optional declared column count

        Raises:
            InvalidSize: If there are no rows or columns, or the row count
                differs from `rows`
            InvalidShape: If a row's length differs from the column count
        """
        self._contents = _validate_contents(contents, rows, cols)
        self._rows, self._cols = self._contents.shape

    @classmethod
    def identity(cls, n: int) -> "Matrix":
        """Create the n x n identity matrix."""
        if n < 1:
            raise InvalidSize(f"Identity size must be positive, got {n}")
        return cls(np.eye(n, dtype=np.float32))

    @property
    def rows(self) -> int:
        return self._rows

    @property
    def cols(self) -> int:
        return self._cols

    @property
    def shape(self) -> Tuple[int, int]:
        return self._rows, self._cols

    @property
    def contents(self) -> np.ndarray:
        """Copy of the grid as a (rows, cols) float32 array."""
        return self._contents.copy()

    def to_numpy(self) -> np.ndarray:
        return self.contents

    def __getitem__(self, index: Tuple[int, int]) -> float:
        i, j = index
        return float(self._contents[i, j])

    def __repr__(self) -> str:
        rows = ", ".join(
            "[" + ", ".join(f"{v:g}" for v in row) + "]" for row in self._contents
        )
        return f"Matrix({self._rows}x{self._cols}, [{rows}])"

    def set_contents(self, contents: MatrixLike) -> None:
        """Replace every entry, keeping the dimensions.

        Args:
            contents: New grid with exactly the current shape

        Raises:
            InvalidSize: If the row count differs
            InvalidShape: If any row length differs
        """
        # Validate before touching the current grid
        self._contents = _validate_contents(contents, self._rows, self._cols)

    def is_square(self) -> bool:
        return self._rows == self._cols

    def equals(self, other: "Matrix") -> bool:
        """Exact entry-wise equality, without tolerance."""
        if not isinstance(other, Matrix) or self.shape != other.shape:
            return False
        return bool(np.array_equal(self._contents, other._contents))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.equals(other)

    __hash__ = None

    def transform_vector(self, vector: Sequence[float]) -> np.ndarray:
        """Apply the matrix to a vector.

        Args:
            vector: Vector with `cols` entries

        Returns:
            New float32 vector with `rows` entries, result[i] = sum_j A[i][j] * v[j]

        Raises:
            InvalidSize: If the vector length differs from the column count
        """
        v = np.asarray(vector, dtype=np.float32)
        if v.ndim != 1:
            raise InvalidSize(f"Expected a 1D vector, got shape {v.shape}")
        if v.shape[0] != self._cols:
            raise InvalidSize(
                f"Vector of length {v.shape[0]} cannot be transformed by a "
                f"{self._rows}x{self._cols} matrix"
            )

        result = np.zeros(self._rows, dtype=np.float32)
        for i in range(self._rows):
            result[i] = np.dot(self._contents[i], v)

        return result

    def multiply(self, other: "Matrix") -> "Matrix":
        """Compute the product self @ other.

        Args:
            other: Matrix with as many rows as this matrix has columns

        Returns:
            New rows x other.cols matrix

        Raises:
            MismatchedShapes: If self.cols != other.rows
        """
        if self._cols != other._rows:
            raise MismatchedShapes(
                f"Cannot multiply {self._rows}x{self._cols} by "
                f"{other._rows}x{other._cols}"
            )

        contents = np.zeros((self._rows, other._cols), dtype=np.float32)
        for i in range(self._rows):
            for j in range(other._cols):
                total = np.float32(0)
                for k in range(self._cols):
                    total += self._contents[i, k] * other._contents[k, j]
                contents[i, j] = total

        return Matrix(contents)

    def __matmul__(self, other: "Matrix") -> "Matrix":
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.multiply(other)

    def determinant(self) -> Optional[float]:
        """Compute the determinant by Gaussian elimination in O(n^3).

        Elimination runs on a private working copy with partial pivoting.
        Each row swap flips the sign, and the determinant is the signed
        product of the reduced diagonal. If a pivot falls below
        SINGULAR_PIVOT_THRESHOLD the matrix is treated as singular.

        Returns:
            The determinant, or None for a non-square matrix
        """
        if not self.is_square():
            return None

        n = self._rows
        temp = self._contents.copy()
        sign = np.float32(1)

        for i in range(n - 1):
            # Find the pivot
            max_row = i + int(np.argmax(np.abs(temp[i:, i])))

            if abs(temp[max_row, i]) < SINGULAR_PIVOT_THRESHOLD:
                logger.debug(f"Pivot in column {i} below threshold, matrix is singular")
                return 0.0

            if max_row != i:
                temp[[i, max_row]] = temp[[max_row, i]]
                sign = -sign

            # Eliminate column i below the pivot
            for j in range(i + 1, n):
                factor = temp[j, i] / temp[i, i]
                temp[j, i:] -= factor * temp[i, i:]

        det = sign
        for i in range(n):
            det *= temp[i, i]

        return float(det)

    def cofactor(self, row: int, col: int) -> float:
        """Signed determinant of the minor that omits `row` and `col`.

        Args:
            row: Index of the deleted row
            col: Index of the deleted column

        Returns:
            (-1)^(row + col) * det(minor)

        Raises:
            NonSquareMatrix: If the matrix is not square
            IndexError: If either index is out of range
        """
        if not self.is_square():
            raise NonSquareMatrix(
                f"Cofactor requires a square matrix, got {self._rows}x{self._cols}"
            )
        if not (0 <= row < self._rows and 0 <= col < self._cols):
            raise IndexError(
                f"Cofactor index ({row}, {col}) out of range for "
                f"{self._rows}x{self._cols} matrix"
            )

        # The minor of a 1x1 matrix is empty, with determinant 1
        if self._rows == 1:
            return 1.0

        keep_rows = [i for i in range(self._rows) if i != row]
        keep_cols = [j for j in range(self._cols) if j != col]
        minor = Matrix(self._contents[np.ix_(keep_rows, keep_cols)])

        sign = -1.0 if (row + col) % 2 else 1.0
        return sign * minor.determinant()

    def transpose(self) -> "Matrix":
        """Return a new cols x rows matrix with result[i][j] = self[j][i]."""
        contents = np.empty((self._cols, self._rows), dtype=np.float32)
        for i in range(self._rows):
            contents[:, i] = self._contents[i]
        return Matrix(contents)

    def inverse(self) -> Optional["Matrix"]:
        """Invert the matrix with the adjugate method.

        Builds the cofactor matrix, transposes it into the adjugate and
        scales it by 1/det. Each cofactor costs a full determinant, so this
        is O(n^5) and meant for small matrices only.

        Returns:
            New inverse matrix, or None if the matrix is non-square or singular
        """
        if not self.is_square():
            return None

        det = self.determinant()
        if det is None or det == 0:
            logger.debug(f"Matrix {self._rows}x{self._cols} has no inverse (det={det})")
            return None

        n = self._rows
        cofactors = np.empty((n, n), dtype=np.float32)
        for i in range(n):
            for j in range(n):
                cofactors[i, j] = self.cofactor(i, j)

        adjugate = Matrix(cofactors).transpose()
        inv_det = np.float32(1) / np.float32(det)

        return Matrix(adjugate._contents * inv_det)
