"""
Analytic solid shapes supporting containment and ray intersection queries.

Every shape answers two questions:

- ``contains(p)``: is ``p`` inside the closed solid (boundary included)?
- ``first_intersection(p0, p1)``: the smallest ``t >= 0`` at which the line
  ``p0 + t (p1 - p0)`` meets the boundary, or ``NO_INTERSECTION``.

``t`` is not clamped to [0, 1]; callers compare it against 1 to decide whether
the boundary lies within the segment. Shapes are immutable once built;
``translated`` and ``rotated`` return moved copies.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import Iterable, List, Sequence, Tuple

import numpy as np

from .constants import (
    BOUNDARY_STATS,
    CONTAINS_TOLERANCE,
    DEBUG,
    MAX_UNION_ITERATIONS,
    NO_INTERSECTION,
    PARALLEL_EPSILON,
    PLANE_REFERENCE_SIZE,
    step_over_distance,
)
from .vector import as_point, dot, euler_rotation_matrix, rotate_point


class GeometryError(ValueError):
    """Raised when a shape is built from malformed geometry."""


def _frozen_point(values: Sequence[float], name: str) -> np.ndarray:
    try:
        point = as_point(values, name)
    except ValueError as exc:
        raise GeometryError(str(exc)) from exc
    point.setflags(write=False)
    return point


def _positive_length(value: float, name: str) -> float:
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise GeometryError(f"{name} must be a positive finite number, got {value}")
    return value


class Shape(ABC):
    """Abstract solid."""

    @abstractmethod
    def contains(self, point: np.ndarray) -> bool:
        """Return True if ``point`` lies inside or on the boundary."""

    @abstractmethod
    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        """Parametric distance from ``pos0`` towards ``pos1`` to the boundary."""

    @abstractmethod
    def translated(self, distance: Sequence[float]) -> "Shape":
        """Copy of the shape moved by ``distance``."""

    @abstractmethod
    def rotated(self, pivot: Sequence[float], phi: float, theta: float, psi: float) -> "Shape":
        """Copy of the shape rotated about ``pivot``.

        The rotation is ``phi`` about z, then ``theta`` about y, then ``psi``
        about z.
        """

    @property
    def tolerance(self) -> float:
        """Absolute distance outside the boundary still treated as contained."""
        return 0.0


class Sphere(Shape):
    """Sphere of a given center and radius."""

    def __init__(self, center: Sequence[float], radius: float):
        self._center = _frozen_point(center, "Sphere center")
        self._radius = _positive_length(radius, "Sphere radius")
        self._tolerance = CONTAINS_TOLERANCE * self._radius

    @property
    def center(self) -> np.ndarray:
        return self._center.copy()

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def contains(self, point: np.ndarray) -> bool:
        m = np.asarray(point, dtype=float) - self._center
        limit = self._radius + self._tolerance
        return dot(m, m) <= limit * limit

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        dd = dot(d, d)
        if dd == 0.0:
            return NO_INTERSECTION
        m = pos0 - self._center
        b = dot(m, d)
        c = dot(m, m) - self._radius * self._radius
        discriminant = b * b - dd * c
        if discriminant < 0.0:
            return NO_INTERSECTION
        root = math.sqrt(discriminant)
        t_near = (-b - root) / dd
        if t_near >= 0.0:
            return t_near
        t_far = (-b + root) / dd
        if t_far >= 0.0:
            return t_far
        return NO_INTERSECTION

    def translated(self, distance):
        return Sphere(self._center + as_point(distance, "distance"), self._radius)

    def rotated(self, pivot, phi, theta, psi):
        return Sphere(rotate_point(self._center, pivot, phi, theta, psi), self._radius)

    def __repr__(self) -> str:
        return f"Sphere(center={self._center.tolist()}, radius={self._radius:g})"


class CylindricalShape(Shape):
    """Right circular cylinder with flat end caps.

    Parameters
    ----------
    end0, end1 : array_like
        Centers of the two end caps.
    radius : float
        Cylinder radius.
    """

    def __init__(self, end0: Sequence[float], end1: Sequence[float], radius: float):
        self._end0 = _frozen_point(end0, "Cylinder end0")
        self._end1 = _frozen_point(end1, "Cylinder end1")
        self._radius = _positive_length(radius, "Cylinder radius")
        self._axis = self._end1 - self._end0
        self._axis.setflags(write=False)
        self._length2 = dot(self._axis, self._axis)
        if self._length2 < 1.0e-30:
            raise GeometryError(
                f"Cylinder end points coincide: {self._end0.tolist()} and {self._end1.tolist()}"
            )
        self._length = math.sqrt(self._length2)
        self._tolerance = CONTAINS_TOLERANCE * max(self._radius, self._length)

    @property
    def end0(self) -> np.ndarray:
        return self._end0.copy()

    @property
    def end1(self) -> np.ndarray:
        return self._end1.copy()

    @property
    def radius(self) -> float:
        return self._radius

    @property
    def length(self) -> float:
        return self._length

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def contains(self, point: np.ndarray) -> bool:
        m = np.asarray(point, dtype=float) - self._end0
        u = dot(m, self._axis) / self._length2
        slack = self._tolerance / self._length
        if u < -slack or u > 1.0 + slack:
            return False
        perp = m - u * self._axis
        limit = self._radius + self._tolerance
        return dot(perp, perp) <= limit * limit

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        dd = dot(d, d)
        if dd == 0.0:
            return NO_INTERSECTION
        axis = self._axis
        r2 = self._radius * self._radius
        nd = dot(axis, d)
        best = NO_INTERSECTION

        # End caps
        if nd != 0.0:
            for end in (self._end0, self._end1):
                t = dot(axis, end - pos0) / nd
                if 0.0 <= t < best:
                    offset = pos0 + t * d - end
                    if dot(offset, offset) <= r2:
                        best = t

        # Curved side, skipped for rays parallel to the axis
        a = self._length2 * dd - nd * nd
        if a > PARALLEL_EPSILON * self._length2 * dd:
            m = pos0 - self._end0
            md = dot(m, axis)
            b = self._length2 * dot(m, d) - nd * md
            c = self._length2 * (dot(m, m) - r2) - md * md
            discriminant = b * b - a * c
            if discriminant >= 0.0:
                root = math.sqrt(discriminant)
                for t in ((-b - root) / a, (-b + root) / a):
                    if 0.0 <= t < best:
                        s = md + t * nd
                        if 0.0 <= s <= self._length2:
                            best = t
        return best

    def translated(self, distance):
        offset = as_point(distance, "distance")
        return CylindricalShape(self._end0 + offset, self._end1 + offset, self._radius)

    def rotated(self, pivot, phi, theta, psi):
        return CylindricalShape(
            rotate_point(self._end0, pivot, phi, theta, psi),
            rotate_point(self._end1, pivot, phi, theta, psi),
            self._radius,
        )

    def __repr__(self) -> str:
        return (f"CylindricalShape(end0={self._end0.tolist()}, end1={self._end1.tolist()}, "
                f"radius={self._radius:g})")


class SimpleBlock(Shape):
    """Axis-aligned rectangular block spanned by two opposite corners."""

    def __init__(self, corner0: Sequence[float], corner1: Sequence[float]):
        c0 = _frozen_point(corner0, "Block corner0")
        c1 = _frozen_point(corner1, "Block corner1")
        self._lo = np.minimum(c0, c1)
        self._hi = np.maximum(c0, c1)
        extent = self._hi - self._lo
        if np.any(extent <= 0.0):
            raise GeometryError(f"Block has zero extent along an axis: {extent.tolist()}")
        self._lo.setflags(write=False)
        self._hi.setflags(write=False)
        self._tolerance = CONTAINS_TOLERANCE * float(np.max(extent))

    @property
    def corner0(self) -> np.ndarray:
        return self._lo.copy()

    @property
    def corner1(self) -> np.ndarray:
        return self._hi.copy()

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self._lo + self._hi)

    @property
    def dimensions(self) -> np.ndarray:
        return self._hi - self._lo

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def contains(self, point: np.ndarray) -> bool:
        p = np.asarray(point, dtype=float)
        tol = self._tolerance
        return bool(np.all(p >= self._lo - tol) and np.all(p <= self._hi + tol))

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        if not np.any(d):
            return NO_INTERSECTION
        t_near = -math.inf
        t_far = math.inf
        for i in range(3):
            if d[i] == 0.0:
                if pos0[i] < self._lo[i] or pos0[i] > self._hi[i]:
                    return NO_INTERSECTION
                continue
            t1 = (self._lo[i] - pos0[i]) / d[i]
            t2 = (self._hi[i] - pos0[i]) / d[i]
            if t1 > t2:
                t1, t2 = t2, t1
            t_near = max(t_near, t1)
            t_far = min(t_far, t2)
        if t_near > t_far:
            return NO_INTERSECTION
        if t_near >= 0.0:
            return float(t_near)
        if t_far >= 0.0:
            return float(t_far)
        return NO_INTERSECTION

    def translated(self, distance):
        offset = as_point(distance, "distance")
        return SimpleBlock(self._lo + offset, self._hi + offset)

    def rotated(self, pivot, phi, theta, psi):
        """Rotated copy; no longer axis-aligned, so a ``MultiPlaneShape``."""
        center = rotate_point(self.center, pivot, phi, theta, psi)
        return MultiPlaneShape.create_block(self.dimensions, center, phi, theta, psi)

    def __repr__(self) -> str:
        return f"SimpleBlock(corner0={self._lo.tolist()}, corner1={self._hi.tolist()})"


class Plane(Shape):
    """Half-space ``{p : normal . (p - point) <= 0}``.

    The normal points out of the solid side. ``scale`` is the characteristic
    size of the solid the plane bounds; the contains tolerance is
    ``CONTAINS_TOLERANCE * scale`` wherever the plane sits.
    """

    def __init__(self, normal: Sequence[float], point: Sequence[float], scale: float = PLANE_REFERENCE_SIZE):
        n = _frozen_point(normal, "Plane normal")
        length = math.sqrt(dot(n, n))
        if length == 0.0:
            raise GeometryError("Plane normal must be non-zero")
        self._normal = n / length
        self._normal.setflags(write=False)
        self._point = _frozen_point(point, "Plane point")
        self._scale = _positive_length(scale, "Plane scale")
        self._tolerance = CONTAINS_TOLERANCE * self._scale

    @property
    def normal(self) -> np.ndarray:
        return self._normal.copy()

    @property
    def point(self) -> np.ndarray:
        return self._point.copy()

    @property
    def scale(self) -> float:
        return self._scale

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def signed_distance(self, point: np.ndarray) -> float:
        """Distance above the plane (positive outside the solid side)."""
        return dot(self._normal, np.asarray(point, dtype=float) - self._point)

    def contains(self, point: np.ndarray) -> bool:
        return self.signed_distance(point) <= self._tolerance

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        den = dot(pos1 - pos0, self._normal)
        if den == 0.0:
            return NO_INTERSECTION
        t = dot(self._point - pos0, self._normal) / den
        return t if t >= 0.0 else NO_INTERSECTION

    def translated(self, distance):
        return Plane(self._normal, self._point + as_point(distance, "distance"), self._scale)

    def rotated(self, pivot, phi, theta, psi):
        normal = euler_rotation_matrix(phi, theta, psi) @ self._normal
        return Plane(normal, rotate_point(self._point, pivot, phi, theta, psi), self._scale)

    def __repr__(self) -> str:
        return f"Plane(normal={self._normal.tolist()}, point={self._point.tolist()})"


class MultiPlaneShape(Shape):
    """Convex polytope formed by intersecting half-spaces.

    A single half-space models a semi-infinite substrate; six make a
    (possibly rotated) block.
    """

    def __init__(self, planes: Iterable):
        built: List[Plane] = []
        for plane in planes:
            if isinstance(plane, Plane):
                built.append(plane)
            else:
                built.append(Plane(*plane))
        if not built:
            raise GeometryError("MultiPlaneShape requires at least one half-space")
        self._planes: Tuple[Plane, ...] = tuple(built)
        self._tolerance = max(p.tolerance for p in self._planes)

    @classmethod
    def create_substrate(cls, normal: Sequence[float], point: Sequence[float]) -> "MultiPlaneShape":
        """Semi-infinite solid below the plane through ``point`` with outward ``normal``."""
        return cls([Plane(normal, point)])

    @classmethod
    def create_film(
        cls,
        normal: Sequence[float],
        point: Sequence[float],
        thickness: float,
    ) -> "MultiPlaneShape":
        """Infinite slab of ``thickness`` whose outer surface passes through ``point``."""
        thickness = _positive_length(thickness, "Film thickness")
        top = Plane(normal, point, thickness)
        n = top.normal
        bottom_point = top.point - thickness * n
        return cls([top, Plane(-n, bottom_point, thickness)])

    @classmethod
    def create_block(
        cls,
        dims: Sequence[float],
        center: Sequence[float],
        phi: float = 0.0,
        theta: float = 0.0,
        psi: float = 0.0,
    ) -> "MultiPlaneShape":
        """Rectangular block of size ``dims`` centered on ``center``.

        The block is rotated by ``phi`` about z, then ``theta`` about y, then
        ``psi`` about z.
        """
        sizes = [_positive_length(v, "Block dimension") for v in dims]
        if len(sizes) != 3:
            raise GeometryError(f"Block needs three dimensions, got {len(sizes)}")
        c = _frozen_point(center, "Block center")
        rotation = euler_rotation_matrix(phi, theta, psi)
        scale = max(sizes)
        planes = []
        for i in range(3):
            normal = rotation[:, i]
            planes.append(Plane(normal, c + 0.5 * sizes[i] * normal, scale))
            planes.append(Plane(-normal, c - 0.5 * sizes[i] * normal, scale))
        return cls(planes)

    @property
    def planes(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [(p.normal, p.point) for p in self._planes]

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def contains(self, point: np.ndarray) -> bool:
        p = np.asarray(point, dtype=float)
        return all(plane.contains(p) for plane in self._planes)

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        if not np.any(d):
            return NO_INTERSECTION
        t_near = -math.inf
        t_far = math.inf
        for plane in self._planes:
            height = plane.signed_distance(pos0)
            rate = dot(plane._normal, d)
            if rate == 0.0:
                if height > 0.0:
                    return NO_INTERSECTION
                continue
            t = -height / rate
            if rate > 0.0:
                t_far = min(t_far, t)
            else:
                t_near = max(t_near, t)
        if t_near > t_far:
            return NO_INTERSECTION
        if t_near >= 0.0:
            return float(t_near)
        if 0.0 <= t_far < math.inf:
            return float(t_far)
        return NO_INTERSECTION

    def translated(self, distance):
        return MultiPlaneShape([plane.translated(distance) for plane in self._planes])

    def rotated(self, pivot, phi, theta, psi):
        return MultiPlaneShape([plane.rotated(pivot, phi, theta, psi) for plane in self._planes])

    def __repr__(self) -> str:
        return f"MultiPlaneShape({len(self._planes)} planes)"


class TruncatedSphere(Shape):
    """Sphere with parts cut away by half-spaces.

    Sphere and half-spaces are all convex, so the solid is their common
    interval along any line.

    Parameters
    ----------
    center : array_like
        Sphere center.
    radius : float
        Sphere radius.
    planes : iterable
        ``Plane`` objects or ``(normal, point)`` pairs. Only the side
        opposite each normal is kept.
    """

    def __init__(self, center: Sequence[float], radius: float, planes: Iterable = ()):
        self._sphere = Sphere(center, radius)
        built = [p if isinstance(p, Plane) else Plane(*p) for p in planes]
        self._planes: Tuple[Plane, ...] = tuple(built)

    @classmethod
    def create_flat_cut(
        cls,
        center: Sequence[float],
        radius: float,
        normal: Sequence[float],
        distance: float,
    ) -> "TruncatedSphere":
        """Sphere cut by the plane ``distance`` from the center along ``normal``.

        Cuts that miss the sphere (``|distance| >= radius``) are dropped.
        """
        sphere = Sphere(center, radius)
        n = as_point(normal, "normal")
        length = math.sqrt(dot(n, n))
        if length == 0.0:
            raise GeometryError("Cut normal must be non-zero")
        n = n / length
        planes = []
        if abs(distance) < sphere.radius:
            planes.append(Plane(n, sphere.center + distance * n, sphere.radius))
        return cls(center, radius, planes)

    @classmethod
    def create_flat_top(cls, center: Sequence[float], radius: float, top: float) -> "TruncatedSphere":
        """Keep ``z >= center.z + top``; the flat face looks along -z, towards the beam."""
        return cls.create_flat_cut(center, radius, (0.0, 0.0, -1.0), -top)

    @classmethod
    def create_flat_bottom(cls, center: Sequence[float], radius: float, bottom: float) -> "TruncatedSphere":
        """Keep ``z <= center.z + bottom``; the flat face looks along +z."""
        return cls.create_flat_cut(center, radius, (0.0, 0.0, 1.0), bottom)

    @property
    def center(self) -> np.ndarray:
        return self._sphere.center

    @property
    def radius(self) -> float:
        return self._sphere.radius

    @property
    def planes(self) -> List[Tuple[np.ndarray, np.ndarray]]:
        return [(p.normal, p.point) for p in self._planes]

    @property
    def tolerance(self) -> float:
        return self._sphere.tolerance

    def contains(self, point: np.ndarray) -> bool:
        p = np.asarray(point, dtype=float)
        return self._sphere.contains(p) and all(plane.contains(p) for plane in self._planes)

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        dd = dot(d, d)
        if dd == 0.0:
            return NO_INTERSECTION
        m = pos0 - self._sphere._center
        b = dot(m, d)
        c = dot(m, m) - self._sphere.radius ** 2
        discriminant = b * b - dd * c
        if discriminant < 0.0:
            return NO_INTERSECTION
        root = math.sqrt(discriminant)
        t_near = (-b - root) / dd
        t_far = (-b + root) / dd
        for plane in self._planes:
            height = plane.signed_distance(pos0)
            rate = dot(plane._normal, d)
            if rate == 0.0:
                if height > 0.0:
                    return NO_INTERSECTION
                continue
            t = -height / rate
            if rate > 0.0:
                t_far = min(t_far, t)
            else:
                t_near = max(t_near, t)
        if t_near > t_far:
            return NO_INTERSECTION
        if t_near >= 0.0:
            return float(t_near)
        if t_far >= 0.0:
            return float(t_far)
        return NO_INTERSECTION

    def translated(self, distance):
        moved = self._sphere.translated(distance)
        return TruncatedSphere(moved.center, moved.radius, [p.translated(distance) for p in self._planes])

    def rotated(self, pivot, phi, theta, psi):
        moved = self._sphere.rotated(pivot, phi, theta, psi)
        planes = [p.rotated(pivot, phi, theta, psi) for p in self._planes]
        return TruncatedSphere(moved.center, moved.radius, planes)

    def __repr__(self) -> str:
        return f"TruncatedSphere({self._sphere!r}, {len(self._planes)} cuts)"


class SumShape(Shape):
    """Union of member shapes.

    The members may overlap. Seams where one member ends inside another are
    not boundaries of the union and are never reported as crossings.
    """

    def __init__(self, shapes: Iterable[Shape]):
        self._shapes: Tuple[Shape, ...] = tuple(shapes)
        if not self._shapes:
            raise GeometryError("SumShape requires at least one member shape")
        for shape in self._shapes:
            if not isinstance(shape, Shape):
                raise GeometryError(f"SumShape members must be shapes, got {type(shape).__name__}")
        self._tolerance = max(s.tolerance for s in self._shapes)

    @property
    def shapes(self) -> Tuple[Shape, ...]:
        return self._shapes

    @property
    def tolerance(self) -> float:
        return self._tolerance

    def contains(self, point: np.ndarray) -> bool:
        p = np.asarray(point, dtype=float)
        return any(shape.contains(p) for shape in self._shapes)

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        dd = dot(d, d)
        if dd == 0.0:
            return NO_INTERSECTION
        if not self.contains(pos0):
            return min(shape.first_intersection(pos0, pos1) for shape in self._shapes)

        # Hop from seam to seam until a point just past the furthest exit of
        # the members holding it is outside every member.
        length = math.sqrt(dd)
        u = 0.0
        start = pos0
        for _ in range(MAX_UNION_ITERATIONS):
            exit_u = -1.0
            exit_tolerance = 0.0
            for shape in self._shapes:
                if shape.contains(start):
                    ui = shape.first_intersection(start, start + d)
                    if ui != NO_INTERSECTION and ui > exit_u:
                        exit_u = ui
                        exit_tolerance = shape.tolerance
            if exit_u < 0.0:
                return NO_INTERSECTION
            u += exit_u
            boundary = pos0 + u * d
            u_past = u + step_over_distance(boundary, exit_tolerance) / length
            start = pos0 + u_past * d
            if not self.contains(start):
                return u
            u = u_past
        BOUNDARY_STATS['union_walk_overflows'] += 1
        if DEBUG:
            print(f"[debug] Union walk gave up after {MAX_UNION_ITERATIONS} seams at u={u:.6g}")
        return u

    def translated(self, distance):
        return SumShape([shape.translated(distance) for shape in self._shapes])

    def rotated(self, pivot, phi, theta, psi):
        return SumShape([shape.rotated(pivot, phi, theta, psi) for shape in self._shapes])

    def __repr__(self) -> str:
        return f"SumShape({len(self._shapes)} shapes)"


class ShapeDifference(Shape):
    """The part of ``primary`` that is not inside ``subtracted``."""

    def __init__(self, primary: Shape, subtracted: Shape):
        if not isinstance(primary, Shape) or not isinstance(subtracted, Shape):
            raise GeometryError("ShapeDifference requires two shapes")
        self._primary = primary
        self._subtracted = subtracted

    @property
    def primary(self) -> Shape:
        return self._primary

    @property
    def subtracted(self) -> Shape:
        return self._subtracted

    @property
    def tolerance(self) -> float:
        return self._primary.tolerance

    def contains(self, point: np.ndarray) -> bool:
        return self._primary.contains(point) and not self._subtracted.contains(point)

    def first_intersection(self, pos0: np.ndarray, pos1: np.ndarray) -> float:
        d = pos1 - pos0
        dd = dot(d, d)
        if dd == 0.0:
            return NO_INTERSECTION
        inside = self.contains(pos0)
        length = math.sqrt(dd)
        u = 0.0
        start = pos0
        for _ in range(MAX_UNION_ITERATIONS):
            t = min(
                self._primary.first_intersection(start, start + d),
                self._subtracted.first_intersection(start, start + d),
            )
            if t == NO_INTERSECTION:
                return NO_INTERSECTION
            u += t
            boundary = pos0 + u * d
            tolerance = max(self._primary.tolerance, self._subtracted.tolerance)
            u_past = u + step_over_distance(boundary, tolerance) / length
            start = pos0 + u_past * d
            if self.contains(start) != inside:
                return u
            u = u_past
        BOUNDARY_STATS['union_walk_overflows'] += 1
        return u

    def translated(self, distance):
        return ShapeDifference(self._primary.translated(distance), self._subtracted.translated(distance))

    def rotated(self, pivot, phi, theta, psi):
        return ShapeDifference(
            self._primary.rotated(pivot, phi, theta, psi),
            self._subtracted.rotated(pivot, phi, theta, psi),
        )

    def __repr__(self) -> str:
        return f"ShapeDifference({self._primary!r} - {self._subtracted!r})"
