"""
几何形体模块的单元测试
"""

import math

import numpy as np
import pytest

from emc_simulation.core.constants import CONTAINS_TOLERANCE, NO_INTERSECTION, PLANE_REFERENCE_SIZE
from emc_simulation.core.shapes import (
    CylindricalShape,
    GeometryError,
    MultiPlaneShape,
    Plane,
    ShapeDifference,
    SimpleBlock,
    Sphere,
    SumShape,
    TruncatedSphere,
)


def p(*values):
    return np.array(values, dtype=float)


class TestSphere:
    """测试球体"""

    def test_contains(self):
        """测试包含关系（边界包含在内）"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.contains(p(0, 0, 0))
        assert sphere.contains(p(1, 0, 0))
        assert not sphere.contains(p(1.001, 0, 0))

    def test_exit_from_center(self):
        """测试从球心出发的交点"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.first_intersection(p(0, 0, 0), p(2, 0, 0)) == pytest.approx(0.5, abs=1e-15)

    def test_entry_from_outside(self):
        """测试从外部进入的交点"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.first_intersection(p(-2, 0, 0), p(2, 0, 0)) == pytest.approx(0.25)

    def test_intersection_beyond_segment(self):
        """测试交点超出线段时 t > 1"""
        sphere = Sphere((0, 0, 0), 1.0)
        t = sphere.first_intersection(p(0, 0, 0), p(0.25, 0, 0))
        assert t == pytest.approx(4.0)

    def test_miss_and_behind(self):
        """测试未命中与反方向"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.first_intersection(p(-2, 2, 0), p(2, 2, 0)) == NO_INTERSECTION
        assert sphere.first_intersection(p(2, 0, 0), p(3, 0, 0)) == NO_INTERSECTION

    def test_miss_reversed(self):
        """测试反向线段的未命中与远端交点"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.first_intersection(p(2, 2, 0), p(-2, 2, 0)) == NO_INTERSECTION
        assert sphere.first_intersection(p(3, 0, 0), p(2, 0, 0)) == pytest.approx(2.0)

    def test_boundary_tolerance(self):
        """测试边界外容差内的点仍被包含"""
        sphere = Sphere((0, 0, 0), 1.0)
        tol = sphere.tolerance
        assert tol == pytest.approx(CONTAINS_TOLERANCE)
        assert sphere.contains(p(1 + 0.5 * tol, 0, 0))
        assert not sphere.contains(p(1 + 4 * tol, 0, 0))

    def test_translated_and_rotated(self):
        """测试平移与旋转返回新球体"""
        sphere = Sphere((1, 0, 0), 0.5)
        moved = sphere.translated((0, 0, 2))
        np.testing.assert_allclose(moved.center, [1, 0, 2])
        np.testing.assert_array_equal(sphere.center, [1, 0, 0])
        turned = sphere.rotated((0, 0, 0), math.pi / 2, 0.0, 0.0)
        np.testing.assert_allclose(turned.center, [0, 1, 0], atol=1e-15)
        assert turned.radius == 0.5

    def test_zero_length_segment(self):
        """测试零长度线段"""
        sphere = Sphere((0, 0, 0), 1.0)
        assert sphere.first_intersection(p(0.5, 0, 0), p(0.5, 0, 0)) == NO_INTERSECTION

    def test_invalid_radius(self):
        """测试非法半径"""
        with pytest.raises(GeometryError):
            Sphere((0, 0, 0), 0.0)
        with pytest.raises(GeometryError):
            Sphere((0, 0, 0), -1.0)
        with pytest.raises(GeometryError):
            Sphere((0, 0, float('nan')), 1.0)


class TestCylinder:
    """测试圆柱体"""

    def test_contains(self):
        """测试包含关系"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        assert cylinder.contains(p(0, 0, 0))
        assert cylinder.contains(p(1, 0.5, 0))
        assert not cylinder.contains(p(1.01, 0, 0))
        assert not cylinder.contains(p(0, 0, 0.51))

    def test_cap_and_side_crossings(self):
        """测试端面与侧面交点"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        a = p(-1.5, 0, 0)
        b = p(1.5, 0, 1)
        assert cylinder.first_intersection(a, b) == pytest.approx(1.0 / 6.0)
        assert cylinder.first_intersection(b, a) == pytest.approx(0.5)

    def test_ray_parallel_to_axis(self):
        """测试平行于轴线的射线只与端面相交"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        assert cylinder.first_intersection(p(0, 0.2, 0), p(2, 0.2, 0)) == pytest.approx(0.5)
        assert cylinder.first_intersection(p(-2, 0.6, 0), p(2, 0.6, 0)) == NO_INTERSECTION

    def test_ray_parallel_to_axis_reversed(self):
        """测试反向平行射线"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        assert cylinder.first_intersection(p(0, 0.2, 0), p(-2, 0.2, 0)) == pytest.approx(0.5)
        assert cylinder.first_intersection(p(2, 0.6, 0), p(-2, 0.6, 0)) == NO_INTERSECTION

    def test_boundary_tolerance(self):
        """测试端面与侧面容差内的点仍被包含"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        tol = cylinder.tolerance
        assert tol == pytest.approx(2 * CONTAINS_TOLERANCE)
        assert cylinder.contains(p(1 + 0.5 * tol, 0, 0))
        assert cylinder.contains(p(0, 0.5 + 0.5 * tol, 0))
        assert not cylinder.contains(p(0, 0.5 + 4 * tol, 0))

    def test_translated_and_rotated(self):
        """测试平移与旋转"""
        cylinder = CylindricalShape((0, 0, 0), (2, 0, 0), 0.5)
        moved = cylinder.translated((0, 0, 1))
        np.testing.assert_allclose(moved.end1, [2, 0, 1])
        turned = cylinder.rotated((0, 0, 0), math.pi / 2, 0.0, 0.0)
        np.testing.assert_allclose(turned.end1, [0, 2, 0], atol=1e-15)
        assert turned.contains(p(0, 1.5, 0))
        assert not turned.contains(p(1.5, 0, 0))

    def test_side_hit_outside_span_ignored(self):
        """测试侧面交点超出端面范围时被忽略"""
        cylinder = CylindricalShape((-1, 0, 0), (1, 0, 0), 0.5)
        assert cylinder.first_intersection(p(2, 0, -2), p(2, 0, 2)) == NO_INTERSECTION

    def test_coincident_ends(self):
        """测试端点重合时报错"""
        with pytest.raises(GeometryError):
            CylindricalShape((0, 0, 0), (0, 0, 0), 1.0)

    def test_accessors(self):
        """测试属性"""
        cylinder = CylindricalShape((0, 0, 0), (0, 0, 3), 0.5)
        assert cylinder.length == pytest.approx(3.0)
        assert cylinder.radius == 0.5
        np.testing.assert_array_equal(cylinder.end1, [0, 0, 3])


class TestBlock:
    """测试长方体"""

    def test_contains(self):
        """测试包含关系"""
        block = SimpleBlock((-1, -1, -1), (1, 1, 1))
        assert block.contains(p(0, 0, 0))
        assert block.contains(p(1, 1, 1))
        assert not block.contains(p(1.01, 0, 0))

    def test_crossing_both_directions(self):
        """测试正反两个方向的交点"""
        block = SimpleBlock((-1, -1, -1), (1, 1, 1))
        assert block.first_intersection(p(-2, 0, 0), p(2, 0, 0)) == pytest.approx(0.25)
        assert block.first_intersection(p(2, 0, 0), p(-2, 0, 0)) == pytest.approx(0.25)
        assert block.first_intersection(p(0, 0, 0), p(2, 0, 0)) == pytest.approx(0.5)

    def test_corner_order_irrelevant(self):
        """测试角点顺序无关"""
        block = SimpleBlock((1, 1, 1), (-1, -1, -1))
        np.testing.assert_array_equal(block.corner0, [-1, -1, -1])
        np.testing.assert_array_equal(block.dimensions, [2, 2, 2])

    def test_zero_extent(self):
        """测试零厚度报错"""
        with pytest.raises(GeometryError):
            SimpleBlock((0, 0, 0), (1, 1, 0))

    def test_boundary_tolerance(self):
        """测试面外容差内的点仍被包含"""
        block = SimpleBlock((-1, -1, -1), (1, 1, 1))
        tol = block.tolerance
        assert tol == pytest.approx(2 * CONTAINS_TOLERANCE)
        assert block.contains(p(1 + 0.5 * tol, 0, 0))
        assert block.contains(p(0, -1 - 0.5 * tol, 0))
        assert not block.contains(p(1 + 4 * tol, 0, 0))

    def test_translated(self):
        """测试平移后仍为轴对齐长方体"""
        block = SimpleBlock((0, 0, 0), (1, 2, 3)).translated((1, 1, 1))
        assert isinstance(block, SimpleBlock)
        np.testing.assert_allclose(block.corner0, [1, 1, 1])
        np.testing.assert_allclose(block.corner1, [2, 3, 4])

    def test_rotated(self):
        """测试旋转后得到等价的多平面长方体"""
        block = SimpleBlock((-1, -2, -3), (1, 2, 3))
        turned = block.rotated((0, 0, 0), math.pi / 2, 0.0, 0.0)
        assert isinstance(turned, MultiPlaneShape)
        assert turned.contains(p(1.9, 0, 0))
        assert not turned.contains(p(0, 1.9, 0))
        assert turned.contains(p(0, 0, 2.9))
        assert turned.first_intersection(p(0, 0, 0), p(4, 0, 0)) == pytest.approx(0.5)


class TestMultiPlaneShape:
    """测试多平面凸体"""

    def test_substrate(self):
        """测试半无限衬底"""
        substrate = MultiPlaneShape.create_substrate((0, 0, -1), (0, 0, 0))
        assert substrate.contains(p(0, 0, 1))
        assert substrate.contains(p(0, 0, 0))
        assert not substrate.contains(p(0, 0, -1e-9))
        assert substrate.first_intersection(p(0, 0, -1), p(0, 0, 1)) == pytest.approx(0.5)
        assert substrate.first_intersection(p(0, 0, 1), p(0, 0, 2)) == NO_INTERSECTION

    def test_film(self):
        """测试薄膜"""
        film = MultiPlaneShape.create_film((0, 0, -1), (0, 0, 0), 20e-9)
        assert film.contains(p(0, 0, 10e-9))
        assert not film.contains(p(0, 0, 30e-9))
        t = film.first_intersection(p(0, 0, 10e-9), p(0, 0, 40e-9))
        assert t == pytest.approx(1.0 / 3.0)

    def test_block_matches_simple_block(self):
        """测试未旋转的多平面长方体与简单长方体一致"""
        block = MultiPlaneShape.create_block((2, 2, 2), (0, 0, 0))
        assert block.first_intersection(p(-2, 0, 0), p(2, 0, 0)) == pytest.approx(0.25)
        assert len(block.planes) == 6

    def test_rotated_block(self):
        """测试绕 z 轴旋转的长方体"""
        block = MultiPlaneShape.create_block((2, 2, 2), (0, 0, 0), phi=math.pi / 4)
        assert block.contains(p(1.2, 0, 0))
        assert not SimpleBlock((-1, -1, -1), (1, 1, 1)).contains(p(1.2, 0, 0))
        t = block.first_intersection(p(0, 0, 0), p(2, 0, 0))
        assert t == pytest.approx(math.sqrt(2) / 2)

    def test_empty(self):
        """测试空平面列表报错"""
        with pytest.raises(GeometryError):
            MultiPlaneShape([])

    def test_plane_signed_distance(self):
        """测试平面有符号距离"""
        plane = Plane((0, 0, 2), (0, 0, 1))
        assert plane.signed_distance(p(0, 0, 3)) == pytest.approx(2.0)
        with pytest.raises(GeometryError):
            Plane((0, 0, 0), (0, 0, 0))
        with pytest.raises(GeometryError):
            Plane((0, 0, 1), (0, 0, 0), scale=0.0)

    def test_plane_away_from_origin(self):
        """测试不经过原点的平面"""
        plane = Plane((0, 0, 1), (3, -2, 5))
        assert plane.contains(p(100, 50, 5))
        assert plane.contains(p(0, 0, 4))
        assert not plane.contains(p(0, 0, 5.001))
        assert plane.first_intersection(p(0, 0, 0), p(0, 0, 10)) == pytest.approx(0.5)
        assert plane.first_intersection(p(0, 0, 10), p(0, 0, 0)) == pytest.approx(0.5)
        assert plane.first_intersection(p(0, 0, 6), p(0, 0, 7)) == NO_INTERSECTION

    def test_plane_tolerance_independent_of_position(self):
        """测试平面容差只取决于尺度而与位置无关"""
        near = Plane((0, 0, 1), (0, 0, 0))
        far = Plane((0, 0, 1), (1e3, -1e3, 1e3))
        assert near.tolerance == far.tolerance == CONTAINS_TOLERANCE * PLANE_REFERENCE_SIZE
        scaled = Plane((0, 0, 1), (1e3, 0, 0), scale=1.0)
        assert scaled.scale == 1.0
        assert scaled.tolerance == CONTAINS_TOLERANCE
        assert scaled.contains(p(1e3, 0, 0.5 * CONTAINS_TOLERANCE))

    def test_film_and_block_tolerance(self):
        """测试薄膜与长方体的容差取自其尺寸"""
        film = MultiPlaneShape.create_film((0, 0, -1), (0, 0, 5), 20e-9)
        assert film.tolerance == pytest.approx(CONTAINS_TOLERANCE * 20e-9)
        block = MultiPlaneShape.create_block((1, 2, 3), (100, 0, 0))
        assert block.tolerance == pytest.approx(CONTAINS_TOLERANCE * 3)
        assert block.contains(p(100.5 + 0.5 * block.tolerance, 0, 0))

    def test_plane_rotated(self):
        """测试平面旋转同时转动法向与参考点"""
        plane = Plane((0, 0, 1), (0, 0, 1), scale=2.0)
        turned = plane.rotated((0, 0, 0), 0.0, math.pi / 2, 0.0)
        np.testing.assert_allclose(turned.normal, [1, 0, 0], atol=1e-15)
        np.testing.assert_allclose(turned.point, [1, 0, 0], atol=1e-15)
        assert turned.scale == 2.0
        moved = plane.translated((0, 0, 2))
        np.testing.assert_allclose(moved.point, [0, 0, 3])

    def test_substrate_translated(self):
        """测试平移半无限衬底"""
        substrate = MultiPlaneShape.create_substrate((0, 0, -1), (0, 0, 0)).translated((0, 0, 1))
        assert not substrate.contains(p(0, 0, 0.5))
        assert substrate.contains(p(0, 0, 1.5))


class TestTruncatedSphere:
    """测试截球"""

    def setup_method(self):
        self.cap = TruncatedSphere.create_flat_top((0, 0, 0), 1.0, 0.5)

    def test_contains(self):
        """测试只保留截面以上的部分"""
        assert self.cap.contains(p(0, 0, 0.75))
        assert not self.cap.contains(p(0, 0, 0.25))
        assert not self.cap.contains(p(0, 0, -0.75))
        assert not self.cap.contains(p(0, 0, 1.1))
        assert len(self.cap.planes) == 1

    def test_boundary_tolerance(self):
        """测试截面与球面容差内的点仍被包含"""
        tol = self.cap.tolerance
        assert self.cap.contains(p(0, 0, 0.5 - 0.5 * tol))
        assert self.cap.contains(p(0, 0, 1 + 0.5 * tol))
        assert not self.cap.contains(p(0, 0, 0.5 - 4 * tol))

    def test_entry_through_flat_face(self):
        """测试从下方穿过截面进入"""
        assert self.cap.first_intersection(p(0, 0, -2), p(0, 0, 2)) == pytest.approx(0.625)

    def test_exit_through_flat_face(self):
        """测试从内部经截面离开"""
        assert self.cap.first_intersection(p(0, 0, 0.75), p(0, 0, -0.25)) == pytest.approx(0.25)
        assert self.cap.first_intersection(p(0, 0, 0.75), p(0, 0, 1.25)) == pytest.approx(0.5)

    def test_miss_below_cut(self):
        """测试与截面平行且在截掉部分中的射线"""
        assert self.cap.first_intersection(p(-2, 0, 0), p(2, 0, 0)) == NO_INTERSECTION

    def test_flat_bottom(self):
        """测试保留截面以下的部分"""
        bowl = TruncatedSphere.create_flat_bottom((0, 0, 0), 1.0, -0.5)
        assert bowl.contains(p(0, 0, -0.75))
        assert not bowl.contains(p(0, 0, 0))
        assert bowl.first_intersection(p(0, 0, 2), p(0, 0, -2)) == pytest.approx(0.625)

    def test_cut_outside_sphere_dropped(self):
        """测试不与球相交的截面被忽略"""
        whole = TruncatedSphere.create_flat_cut((0, 0, 0), 1.0, (0, 0, 1), 1.5)
        assert whole.planes == []
        assert whole.contains(p(0, 0, 0.9))
        assert whole.first_intersection(p(0, 0, 0), p(0, 0, 2)) == pytest.approx(0.5)
        with pytest.raises(GeometryError):
            TruncatedSphere.create_flat_cut((0, 0, 0), 1.0, (0, 0, 0), 0.5)

    def test_translated_and_rotated(self):
        """测试平移与翻转截球"""
        moved = self.cap.translated((0, 0, 10))
        np.testing.assert_allclose(moved.center, [0, 0, 10])
        assert moved.contains(p(0, 0, 10.75))
        assert not moved.contains(p(0, 0, 0.75))
        flipped = self.cap.rotated((0, 0, 0), 0.0, math.pi, 0.0)
        assert flipped.contains(p(0, 0, -0.75))
        assert not flipped.contains(p(0, 0, 0.75))


class TestSumShape:
    """测试并集形体"""

    def setup_method(self):
        self.union = SumShape([Sphere((0, 0, 0), 1.0), Sphere((1.5, 0, 0), 1.0)])

    def test_contains(self):
        """测试包含关系"""
        assert self.union.contains(p(-0.9, 0, 0))
        assert self.union.contains(p(2.4, 0, 0))
        assert not self.union.contains(p(0.75, 0.9, 0))

    def test_seam_not_reported(self):
        """测试内部接缝不被当作边界"""
        t = self.union.first_intersection(p(-0.5, 0, 0), p(3, 0, 0))
        assert t == pytest.approx(3.0 / 3.5, rel=1e-9)

    def test_entry_from_outside(self):
        """测试从外部进入时取最近成员"""
        t = self.union.first_intersection(p(-3, 0, 0), p(3, 0, 0))
        assert t == pytest.approx(1.0 / 3.0)

    def test_miss(self):
        """测试未命中"""
        assert self.union.first_intersection(p(-3, 5, 0), p(3, 5, 0)) == NO_INTERSECTION

    def test_requires_members(self):
        """测试空并集报错"""
        with pytest.raises(GeometryError):
            SumShape([])

    def test_translated_and_rotated(self):
        """测试平移与旋转作用于每个成员"""
        moved = self.union.translated((0, 0, 5))
        assert moved.contains(p(-0.9, 0, 5))
        assert not moved.contains(p(-0.9, 0, 0))
        turned = self.union.rotated((0, 0, 0), math.pi / 2, 0.0, 0.0)
        assert turned.contains(p(0, 2.4, 0))
        assert not turned.contains(p(2.4, 0, 0))


class TestShapeDifference:
    """测试差集形体"""

    def setup_method(self):
        self.shell = ShapeDifference(Sphere((0, 0, 0), 1.0), Sphere((0, 0, 0), 0.5))

    def test_contains(self):
        """测试包含关系"""
        assert not self.shell.contains(p(0, 0, 0))
        assert self.shell.contains(p(0.75, 0, 0))
        assert not self.shell.contains(p(1.5, 0, 0))

    def test_inner_boundary(self):
        """测试从空腔出发遇到内表面"""
        assert self.shell.first_intersection(p(0, 0, 0), p(2, 0, 0)) == pytest.approx(0.25)

    def test_outer_boundary(self):
        """测试从壳层出发遇到外表面"""
        assert self.shell.first_intersection(p(0.75, 0, 0), p(1.75, 0, 0)) == pytest.approx(0.25)

    def test_translated_and_rotated(self):
        """测试平移与旋转保持壳层结构"""
        moved = self.shell.translated((10, 0, 0))
        assert not moved.contains(p(10, 0, 0))
        assert moved.contains(p(10.75, 0, 0))
        assert moved.first_intersection(p(10, 0, 0), p(12, 0, 0)) == pytest.approx(0.25)
        offset = ShapeDifference(Sphere((0, 0, 0), 1.0), Sphere((0.5, 0, 0), 0.25))
        turned = offset.rotated((0, 0, 0), math.pi / 2, 0.0, 0.0)
        assert not turned.contains(p(0, 0.5, 0))
        assert turned.contains(p(0.5, 0, 0))
