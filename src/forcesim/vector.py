"""
Immutable 2D vector value type.

Vector2D is used for node positions, velocities and forces throughout the
simulation. All operations are pure and return new vectors.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator


def approx_equal(a: float, b: float, epsilon: float = 1e-9) -> bool:
    """Return True if ``a`` and ``b`` differ by less than ``epsilon``."""
    return abs(a - b) < epsilon


@dataclass(frozen=True)
class Vector2D:
    """
    A 2D vector with value semantics.

    Supports the arithmetic operators ``+``, ``-`` (binary and unary),
    ``*`` and ``/`` by a scalar. ``v1 @ v2`` is the dot product.

    Example:
        v1 = Vector2D(1.0, 2.0)
        v2 = Vector2D(3.0, 4.0)
        v3 = v1 + v2
        print(v3.x, v3.y)
    """

    x: float = 0.0
    y: float = 0.0

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def zero(cls) -> Vector2D:
        return cls(0.0, 0.0)

    @classmethod
    def from_polar(cls, radius: float, angle: float) -> Vector2D:
        """Create a vector from a radius and an angle in radians."""
        return cls(radius * math.cos(angle), radius * math.sin(angle))

    @classmethod
    def from_angle(cls, angle: float) -> Vector2D:
        """Create a unit vector pointing at ``angle`` radians."""
        return cls.from_polar(1.0, angle)

    # -------------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------------

    def __add__(self, other: Vector2D) -> Vector2D:
        return Vector2D(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Vector2D) -> Vector2D:
        return Vector2D(self.x - other.x, self.y - other.y)

    def __neg__(self) -> Vector2D:
        return Vector2D(-self.x, -self.y)

    def __mul__(self, scalar: float) -> Vector2D:
        return Vector2D(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> Vector2D:
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> Vector2D:
        return Vector2D(self.x / scalar, self.y / scalar)

    def __matmul__(self, other: Vector2D) -> float:
        return self.dot(other)

    def __iter__(self) -> Iterator[float]:
        yield self.x
        yield self.y

    def __repr__(self) -> str:
        return f"Vector2D(x={self.x:.4f}, y={self.y:.4f})"

    # -------------------------------------------------------------------------
    # Vector operations
    # -------------------------------------------------------------------------

    def scale(self, scalar: float) -> Vector2D:
        return self * scalar

    def dot(self, other: Vector2D) -> float:
        return self.x * other.x + self.y * other.y

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def angle(self) -> float:
        """
        Angle of the vector in radians, in (-pi, pi].

        The zero vector returns 0.0; callers should not rely on the angle
        of a zero-length vector.
        """
        return math.atan2(self.y, self.x)

    def normalize(self) -> Vector2D:
        """Unit vector in the same direction, or the zero vector."""
        mag = self.magnitude()
        if mag == 0.0:
            return Vector2D(0.0, 0.0)
        return Vector2D(self.x / mag, self.y / mag)

    def orthogonal(self) -> Vector2D:
        """Vector rotated by +90 degrees."""
        return Vector2D(-self.y, self.x)

    def orthonormal(self) -> Vector2D:
        return self.orthogonal().normalize()

    def project_on(self, other: Vector2D) -> Vector2D:
        """
        Projection of this vector onto ``other``.

        Projecting onto the zero vector yields the zero vector.
        """
        denom = other.dot(other)
        if denom == 0.0:
            return Vector2D(0.0, 0.0)
        return other * (self.dot(other) / denom)

    def rotate(self, angle: float) -> Vector2D:
        """Rotate counter-clockwise by ``angle`` radians about the origin."""
        c = math.cos(angle)
        s = math.sin(angle)
        return Vector2D(self.x * c - self.y * s, self.x * s + self.y * c)

    def rotate_around(self, pivot: Vector2D, angle: float) -> Vector2D:
        """Rotate counter-clockwise by ``angle`` radians about ``pivot``."""
        return (self - pivot).rotate(angle) + pivot

    def distance(self, other: Vector2D) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def relative_to(self, other: Vector2D) -> Vector2D:
        """Displacement from this vector to ``other`` (``other - self``)."""
        return other - self

    def direction_to(self, other: Vector2D) -> float:
        """Bearing in radians from this point towards ``other``."""
        return math.atan2(other.y - self.y, other.x - self.x)

    def lerp(self, other: Vector2D, t: float) -> Vector2D:
        """Linear interpolation: ``t=0`` gives self, ``t=1`` gives other."""
        return Vector2D(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t,
        )

    # -------------------------------------------------------------------------
    # Conversion
    # -------------------------------------------------------------------------

    def round(self, ndigits: int = 0) -> Vector2D:
        return Vector2D(round(self.x, ndigits), round(self.y, ndigits))

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


__all__ = ["Vector2D", "approx_equal"]
