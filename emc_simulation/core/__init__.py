"""
电子蒙特卡罗模拟核心模块

该子包包含模拟的核心功能模块：
- constants: 物理常数、数值容差和边界统计
- vector: 三维向量工具
- shapes: 解析几何形体（球、截球、圆柱、长方体、多面体、并集、差集）
- region: 区域树与包含关系查询
- data_classes: 数据结构定义（Electron, TrajectoryRecord）
- kinematics: 散射方向计算
- sampling: 抽样方法
- scatter_models: 材料散射模型
- guns: 电子枪
- events: 事件类型
- simulation: 轨迹步进引擎
- listeners: 事件监听器
- parallel: 多进程并行运行
- io_utils: 输入输出工具
"""

# 常数
from .constants import (
    AVOGADRO_CONSTANT,
    NO_INTERSECTION,
    SMALL_DISP,
    DEBUG,
    BOUNDARY_STATS,
    reset_boundary_stats,
    print_boundary_stats,
)

# 向量
from .vector import (
    dot,
    cross,
    normalize,
    distance,
    point_between,
    build_orthonormal_frame,
)

# 几何形体
from .shapes import (
    GeometryError,
    Shape,
    Sphere,
    CylindricalShape,
    SimpleBlock,
    Plane,
    MultiPlaneShape,
    SumShape,
    ShapeDifference,
    TruncatedSphere,
)

# 区域
from .region import Region

# 数据类
from .data_classes import (
    Electron,
    TrajectoryRecord,
)

# 运动学
from .kinematics import deflect_direction

# 散射模型
from .scatter_models import (
    Material,
    MATERIALS,
    VACUUM,
    MaterialScatterModel,
    VacuumModel,
    BlackBodyModel,
    ScreenedRutherfordModel,
)

# 电子枪
from .guns import (
    ElectronGun,
    GaussianBeam,
    OverscanElectronGun,
)

# 事件
from .events import EventKind, StepEvent

# 模拟
from .simulation import MonteCarloSS

# 监听器
from .listeners import (
    TimeListener,
    ScatterStats,
    BackscatterStats,
    BackscatterAngleHistogram,
    EnergyLossListener,
    TrajectoryRecorder,
    ListenerGroup,
    standard_listeners,
)

# 并行
from .parallel import run_parallel_trajectories, merge_records

# IO工具
from .io_utils import (
    export_trajectory_records_to_csv,
    export_trajectories_to_csv,
)

__all__ = [
    # 常数
    'AVOGADRO_CONSTANT',
    'NO_INTERSECTION',
    'SMALL_DISP',
    'DEBUG',
    'BOUNDARY_STATS',
    'reset_boundary_stats',
    'print_boundary_stats',
    # 向量
    'dot',
    'cross',
    'normalize',
    'distance',
    'point_between',
    'build_orthonormal_frame',
    # 几何
    'GeometryError',
    'Shape',
    'Sphere',
    'CylindricalShape',
    'SimpleBlock',
    'Plane',
    'MultiPlaneShape',
    'SumShape',
    'ShapeDifference',
    'TruncatedSphere',
    # 区域
    'Region',
    # 数据类
    'Electron',
    'TrajectoryRecord',
    # 运动学
    'deflect_direction',
    # 散射模型
    'Material',
    'MATERIALS',
    'VACUUM',
    'MaterialScatterModel',
    'VacuumModel',
    'BlackBodyModel',
    'ScreenedRutherfordModel',
    # 电子枪
    'ElectronGun',
    'GaussianBeam',
    'OverscanElectronGun',
    # 事件
    'EventKind',
    'StepEvent',
    # 模拟
    'MonteCarloSS',
    # 监听器
    'TimeListener',
    'ScatterStats',
    'BackscatterStats',
    'BackscatterAngleHistogram',
    'EnergyLossListener',
    'TrajectoryRecorder',
    'ListenerGroup',
    'standard_listeners',
    # 并行
    'run_parallel_trajectories',
    'merge_records',
    # IO
    'export_trajectory_records_to_csv',
    'export_trajectories_to_csv',
]
