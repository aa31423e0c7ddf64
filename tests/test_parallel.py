"""
并行运行模块的单元测试
"""

from functools import partial

import pytest

from emc_simulation.core.data_classes import TrajectoryRecord
from emc_simulation.core.listeners import TrajectoryRecorder
from emc_simulation.core.parallel import merge_records, run_parallel_trajectories, split_work
from emc_simulation.testing.sample_geometry import build_default_simulation

build_bulk = partial(build_default_simulation, sample='bulk', beam_energy=3.0e3)


class TestSplitWork:
    """测试任务划分"""

    def test_even_and_uneven(self):
        """测试均分与余数分配"""
        assert split_work(9, 3) == [3, 3, 3]
        assert split_work(10, 3) == [4, 3, 3]
        assert split_work(2, 4) == [1, 1, 0, 0]
        assert split_work(0, 2) == [0, 0]

    def test_invalid(self):
        """测试非法参数"""
        with pytest.raises(ValueError):
            split_work(-1, 2)
        with pytest.raises(ValueError):
            split_work(5, 0)


class TestMergeRecords:
    """测试结果合并"""

    def test_renumbering(self):
        """测试合并后重新编号"""
        a, b = TrajectoryRecorder(), TrajectoryRecorder()
        a.records = [TrajectoryRecord(0, 1, 100.0), TrajectoryRecord(1, 2, 100.0)]
        b.records = [TrajectoryRecord(0, 1, 100.0)]
        merged = merge_records([a, b])
        assert [r.trajectory_index for r in merged] == [0, 1, 2]
        assert [r.electron_id for r in merged] == [1, 2, 3]


class TestRunParallel:
    """测试并行运行"""

    def test_single_worker_reproducible(self):
        """测试单进程相同种子可复现"""
        def run():
            recorders = run_parallel_trajectories(build_bulk, 4, workers=1, seed=7)
            return [(r.final_energy, r.step_count) for r in merge_records(recorders)]

        first = run()
        assert len(first) == 4
        assert first == run()

    def test_different_seeds_differ(self):
        """测试不同种子结果不同"""
        a = merge_records(run_parallel_trajectories(build_bulk, 3, workers=1, seed=1))
        b = merge_records(run_parallel_trajectories(build_bulk, 3, workers=1, seed=2))
        assert [r.step_count for r in a] != [r.step_count for r in b]

    def test_multiple_workers(self):
        """测试多进程运行与合并"""
        recorders = run_parallel_trajectories(build_bulk, 5, workers=2, seed=3)
        assert len(recorders) == 2
        assert [len(r.records) for r in recorders] == [3, 2]
        merged = merge_records(recorders)
        assert [r.trajectory_index for r in merged] == list(range(5))
        assert len({r.electron_id for r in merged}) == 5

    def test_multiple_workers_reproducible(self):
        """测试多进程相同种子可复现"""
        def run():
            recorders = run_parallel_trajectories(build_bulk, 4, workers=2, seed=9)
            return [(r.final_energy, r.step_count) for r in merge_records(recorders)]

        assert run() == run()
