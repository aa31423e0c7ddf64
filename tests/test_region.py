"""
区域树模块的单元测试
"""

import numpy as np
import pytest

from emc_simulation.core.constants import BOUNDARY_STATS, reset_boundary_stats
from emc_simulation.core.region import Region
from emc_simulation.core.scatter_models import MATERIALS, ScreenedRutherfordModel, VacuumModel
from emc_simulation.core.shapes import SimpleBlock, Sphere


def p(*values):
    return np.array(values, dtype=float)


@pytest.fixture
def tree():
    """真空腔内放一个铜块，铜块内再放一个金块"""
    chamber = Region(None, VacuumModel(), Sphere((0, 0, 0), 1.0))
    copper = Region(chamber, ScreenedRutherfordModel(MATERIALS['Cu']), SimpleBlock((-0.1, -0.1, -0.1), (0.1, 0.1, 0.1)))
    gold = Region(copper, ScreenedRutherfordModel(MATERIALS['Au']), SimpleBlock((-0.02, -0.02, -0.02), (0.02, 0.02, 0.02)))
    return chamber, copper, gold


class TestRegionTree:
    """测试区域树结构"""

    def test_parent_and_children(self, tree):
        """测试父子关系"""
        chamber, copper, gold = tree
        assert chamber.parent is None
        assert copper.parent is chamber
        assert gold.parent is copper
        assert chamber.sub_regions == (copper,)
        assert gold.depth == 2

    def test_material(self, tree):
        """测试材料查询"""
        _, copper, gold = tree
        assert copper.material is MATERIALS['Cu']
        assert gold.material is MATERIALS['Au']

    def test_shape_type_checked(self):
        """测试非形体参数报错"""
        with pytest.raises(TypeError):
            Region(None, VacuumModel(), "sphere")

    def test_walk(self, tree):
        """测试深度优先遍历"""
        chamber, copper, gold = tree
        assert list(chamber.walk()) == [chamber, copper, gold]

    def test_remove_sub_region(self, tree):
        """测试移除子区域"""
        chamber, copper, _ = tree
        chamber.remove_sub_region(copper)
        assert chamber.sub_regions == ()
        assert copper.parent is None

    def test_replace_scatter_model(self, tree):
        """测试替换散射模型"""
        chamber, copper, _ = tree
        old = copper.scatter_model
        new = ScreenedRutherfordModel(MATERIALS['Ag'])
        assert chamber.replace_scatter_model(old, new) == 1
        assert copper.scatter_model is new
        assert copper.material is MATERIALS['Ag']


class TestContainment:
    """测试包含查询"""

    def test_deepest_region(self, tree):
        """测试返回最深层区域"""
        chamber, copper, gold = tree
        assert chamber.containing_sub_region(p(0, 0, 0)) is gold
        assert chamber.containing_sub_region(p(0.05, 0, 0)) is copper
        assert chamber.containing_sub_region(p(0.5, 0, 0)) is chamber
        assert chamber.containing_sub_region(p(2, 0, 0)) is None

    def test_first_added_sibling_wins(self):
        """测试共享边界时先添加的兄弟区域优先"""
        chamber = Region(None, VacuumModel(), Sphere((0, 0, 0), 1.0))
        left = Region(chamber, ScreenedRutherfordModel(MATERIALS['Al']), SimpleBlock((-0.2, -0.1, -0.1), (0, 0.1, 0.1)))
        Region(chamber, ScreenedRutherfordModel(MATERIALS['Si']), SimpleBlock((0, -0.1, -0.1), (0.2, 0.1, 0.1)))
        assert chamber.containing_sub_region(p(0, 0, 0)) is left

    def test_locate_climbs_ancestors(self, tree):
        """测试从子区域向上查找"""
        chamber, copper, gold = tree
        assert gold.locate(p(0.05, 0, 0)) is copper
        assert gold.locate(p(0.5, 0, 0)) is chamber
        assert gold.locate(p(5, 0, 0)) is None


class TestFindEndOfStep:
    """测试步长截断"""

    def setup_method(self):
        reset_boundary_stats()

    def test_no_boundary(self, tree):
        """测试步长内无边界"""
        chamber, _, _ = tree
        region, end = chamber.find_end_of_step(p(0.5, 0, 0), p(0.6, 0, 0))
        assert region is chamber
        np.testing.assert_array_equal(end, [0.6, 0, 0])
        assert BOUNDARY_STATS['crossings'] == 0

    def test_enter_child(self, tree):
        """测试进入子区域"""
        chamber, copper, _ = tree
        region, end = chamber.find_end_of_step(p(-0.5, 0.05, 0), p(0.5, 0.05, 0))
        assert region is copper
        np.testing.assert_allclose(end, [-0.1, 0.05, 0], atol=1e-12)
        assert BOUNDARY_STATS['crossings'] == 1

    def test_enter_grandchild(self, tree):
        """测试穿越到更深层区域"""
        _, copper, gold = tree
        region, end = copper.find_end_of_step(p(-0.08, 0, 0), p(0.08, 0, 0))
        assert region is gold
        np.testing.assert_allclose(end, [-0.02, 0, 0], atol=1e-12)

    def test_exit_to_parent(self, tree):
        """测试离开子区域回到父区域"""
        chamber, copper, _ = tree
        region, end = copper.find_end_of_step(p(0.05, 0.05, 0), p(0.3, 0.05, 0))
        assert region is chamber
        np.testing.assert_allclose(end, [0.1, 0.05, 0], atol=1e-12)

    def test_leave_chamber(self, tree):
        """测试离开真空腔"""
        chamber, _, _ = tree
        region, end = chamber.find_end_of_step(p(0.5, 0.5, 0), p(2, 0.5, 0))
        assert region is None
        assert np.linalg.norm(end) == pytest.approx(1.0)
        assert BOUNDARY_STATS['chamber_exits'] == 1
