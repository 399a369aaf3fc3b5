"""
Plonkish 회로 (Circuit)
========================

회로 = 구성(configure) + 합성(synthesize).

  - configure(meta): 회로 타입당 한 번. 열, 셀렉터, 게이트를 선언한다.
  - synthesize(config, layouter): 위트니스마다. 칩 명령을 의존 순서대로 호출해
    셀을 영역 단위로 할당한다.

**예제 회로**: x³ + x + c (c = 5, x = 3 → 35)

  | 단계 | 명령                          | 결과            |
  |------|-------------------------------|-----------------|
  | 1    | load_private(x)               | x = 3           |
  | 2    | load_constant(c)              | c = 5           |
  | 3    | mul(x, x)                     | x2 = 9          |
  | 4    | mul(x2, x)                    | x3 = 27         |
  | 5    | add(x3, x)                    | x3_x = 30       |
  | 6    | add(x3_x, c)                  | x3_x_c = 35     |
  | 7    | expose_public(x3_x_c, row=0)  | instance[0] = 35|

키 생성 시에는 without_witnesses()로 x = Unknown인 회로를 합성한다.
영역/게이트 배치는 위트니스와 무관하게 동일하고 할당된 값만 다르다.

사용 예시:
    >>> circuit = CubicCircuit(x=Value.known(Fp(3)), constant=Fp(5))
    >>> prover = MockProver.run(4, circuit, [[35]])
    >>> prover.verify()   # []
"""

import abc

from circuitlab.plonkish.chip import ArithmeticChip
from circuitlab.plonkish.field import to_field
from circuitlab.plonkish.value import Value


class Circuit(abc.ABC):
    """회로의 기반 클래스."""

    @abc.abstractmethod
    def without_witnesses(self):
        """위트니스가 모두 Unknown인 같은 회로 (키 생성용)."""

    @classmethod
    @abc.abstractmethod
    def configure(cls, meta):
        """meta(ConstraintSystem)에 열/셀렉터/게이트를 선언하고 config를 돌려준다."""

    @abc.abstractmethod
    def synthesize(self, config, layouter):
        """config와 레이아우터로 셀을 할당한다."""


class CubicCircuit(Circuit):
    """x³ + x + constant 를 계산하고 결과를 instance 행 0에 공개하는 회로.

    속성:
        x: Value (비공개 입력)
        constant: Fp (회로 상수)
    """

    def __init__(self, x=None, constant=0):
        if x is None:
            x = Value.unknown()
        elif not isinstance(x, Value):
            x = Value.known(to_field(x))
        self.x = x
        self.constant = to_field(constant)

    def without_witnesses(self):
        return CubicCircuit(Value.unknown(), self.constant)

    @classmethod
    def configure(cls, meta):
        advice = [meta.advice_column(), meta.advice_column()]
        instance = meta.instance_column()
        constant = meta.fixed_column()
        return ArithmeticChip.configure(meta, advice, instance, constant)

    def synthesize(self, config, layouter):
        chip = ArithmeticChip(config)

        x = chip.load_private(layouter.namespace("load x"), self.x)
        constant = chip.load_constant(layouter.namespace("load constant"), self.constant)

        # x2 = x * x
        x2 = chip.mul(layouter.namespace("x2"), x, x)
        # x3 = x2 * x
        x3 = chip.mul(layouter.namespace("x3"), x2, x)
        # x3_x = x3 + x
        x3_x = chip.add(layouter.namespace("x3+x"), x3, x)
        # x3_x_c = x3_x + c
        x3_x_c = chip.add(layouter.namespace("x3+x+c"), x3_x, constant)

        chip.expose_public(layouter.namespace("expose res"), x3_x_c, 0)
        return x3_x_c

    def __repr__(self):
        return f"CubicCircuit(x={self.x!r}, constant={int(self.constant)})"


def expected_output(x, constant):
    """x³ + x + constant 를 직접 계산한다 (공개 입력 준비용).

    Args:
        x: int 또는 Fp
        constant: int 또는 Fp

    Returns:
        Fp
    """
    x = to_field(x)
    return x * x * x + x + to_field(constant)

