"""
异常定义

所有异常都表示调用方违反了调用约定 (非法动作、错误阶段等)，
不存在可恢复的运行时错误。统一继承 ValueError，与旧接口保持兼容。
"""


class QwintoError(ValueError):
    """所有规则引擎异常的基类"""


class ConfigError(QwintoError):
    """游戏参数非法"""


class PhaseError(QwintoError):
    """在错误的阶段调用了操作 (或阶段值未知、游戏已结束)"""


class IllegalActionError(QwintoError):
    """顺序决策点提交了不在合法集合中的动作"""


class JointActionError(QwintoError):
    """联合动作非法: 长度错误、Skip/Miss 误用、格子不可写"""


class ChanceError(QwintoError):
    """不在机会节点时请求机会结果，或骰子数量越界"""


class ObservationShapeError(QwintoError):
    """观测编码长度与声明的形状不一致"""
