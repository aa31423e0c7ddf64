"""
Region tree: nested shapes, each filled with one material.

A region owns its children; children only keep a weak reference back to
their parent. Every child's shape is expected to lie inside its parent's
shape. Among siblings that share a boundary, the one added first wins.
"""

from __future__ import annotations

import weakref
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .constants import BOUNDARY_STATS, DEBUG, step_over_distance
from .shapes import Shape
from .vector import normalize


class Region:
    """A node in the containment tree pairing a shape with a scatter model.

    Parameters
    ----------
    parent : Region or None
        Enclosing region. ``None`` makes this the chamber (root).
    scatter_model : MaterialScatterModel
        Physics of the material filling the region.
    shape : Shape
        Solid occupied by the region.
    """

    def __init__(self, parent: Optional["Region"], scatter_model, shape: Shape):
        if not isinstance(shape, Shape):
            raise TypeError(f"Region shape must be a Shape, got {type(shape).__name__}")
        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self.scatter_model = scatter_model
        self.shape = shape
        self._sub_regions: List[Region] = []
        if parent is not None:
            parent._sub_regions.append(self)

    @property
    def parent(self) -> Optional["Region"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def sub_regions(self) -> Tuple["Region", ...]:
        return tuple(self._sub_regions)

    @property
    def material(self):
        return self.scatter_model.material

    @property
    def depth(self) -> int:
        """Number of ancestors (0 for the chamber)."""
        depth = 0
        region = self.parent
        while region is not None:
            depth += 1
            region = region.parent
        return depth

    def contains(self, point: np.ndarray) -> bool:
        return self.shape.contains(point)

    def containing_sub_region(self, point: np.ndarray) -> Optional["Region"]:
        """Most deeply nested region at or below this one that contains ``point``.

        Returns ``None`` if this region's own shape does not contain it.
        """
        if not self.shape.contains(point):
            return None
        for child in self._sub_regions:
            found = child.containing_sub_region(point)
            if found is not None:
                return found
        return self

    def locate(self, point: np.ndarray) -> Optional["Region"]:
        """Find the region containing ``point``, searching upward from here.

        Consecutive steps rarely move far, so the search starts at this region
        and only climbs to ancestors when needed.
        """
        region: Optional[Region] = self
        while region is not None:
            found = region.containing_sub_region(point)
            if found is not None:
                return found
            region = region.parent
        return None

    def find_end_of_step(
        self,
        pos0: np.ndarray,
        pos1: np.ndarray,
    ) -> Tuple[Optional["Region"], np.ndarray]:
        """Clip the step ``pos0 -> pos1`` at the first region boundary.

        Parameters
        ----------
        pos0 : np.ndarray
            Start of the step; must lie in this region.
        pos1 : np.ndarray
            Proposed end of the step.

        Returns
        -------
        next_region : Region or None
            Region containing the end of the step. This is ``self`` when no
            boundary lies on the segment, the region on the far side of the
            first boundary otherwise, and ``None`` when the step leaves the
            chamber.
        end_point : np.ndarray
            ``pos1`` or the boundary point, whichever comes first.
        """
        t = self.shape.first_intersection(pos0, pos1)
        crossed = self.shape
        base: Optional[Region] = self
        if t <= 1.0 and self.parent is not None:
            base = self.parent
        for child in self._sub_regions:
            candidate = child.shape.first_intersection(pos0, pos1)
            if candidate <= 1.0 and candidate < t:
                t = candidate
                base = child
                crossed = child.shape
        if t > 1.0:
            return self, pos1

        BOUNDARY_STATS['crossings'] += 1
        end = pos0 + t * (pos1 - pos0)
        over = end + step_over_distance(end, crossed.tolerance) * normalize(pos1 - pos0)
        while base is not None:
            found = base.containing_sub_region(over)
            if found is not None:
                return found, end
            base = base.parent
        BOUNDARY_STATS['chamber_exits'] += 1
        if DEBUG:
            print(f"[debug] Step left the chamber at {end}")
        return None, end

    def walk(self) -> Iterator["Region"]:
        """Iterate over this region and all its descendants, depth first."""
        yield self
        for child in self._sub_regions:
            yield from child.walk()

    def remove_sub_region(self, region: "Region"):
        self._sub_regions.remove(region)
        region._parent_ref = None

    def replace_scatter_model(self, old_model, new_model) -> int:
        """Swap ``old_model`` for ``new_model`` in this region and below.

        Returns
        -------
        int
            Number of regions updated.
        """
        count = 0
        for region in self.walk():
            if region.scatter_model is old_model:
                region.scatter_model = new_model
                count += 1
        return count

    def __repr__(self) -> str:
        name = getattr(self.material, "name", "?")
        return f"Region({name}, {self.shape!r}, {len(self._sub_regions)} sub-regions)"
