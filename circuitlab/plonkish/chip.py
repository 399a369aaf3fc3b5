"""
칩 (Chip) — 산술 명령 인터페이스와 구현
=========================================

칩은 회로 설명 코드가 쓰는 "명령(instruction)" 집합을
영역 할당과 셀렉터 활성화로 구현한다.

**명령 집합 (ArithmeticInstructions)**:
  | 명령           | 영역 이름      | 행 | 동작                                    |
  |----------------|----------------|----|-----------------------------------------|
  | load_private   | load private   | 1  | advice[0]@0 ← 위트니스                   |
  | load_constant  | load constant  | 1  | advice[0]@0 ← 상수 (fixed 열과 복사 제약) |
  | mul            | mul            | 2  | s_mul@0, a→advice[0]@0, b→advice[1]@0,   |
  |                |                |    | a·b → advice[0]@1                       |
  | add            | add            | 2  | s_add@0, 같은 배치, a+b → advice[0]@1    |
  | expose_public  | (없음)         | -  | 셀 ↔ instance[row] 복사 제약             |

곱셈과 덧셈이 같은 두 advice 열과 같은 상대 행 배치를 쓰고,
서로 배타적인 셀렉터로 구분되므로 게이트 하나("mul/add")로 두 연산을 표현한다.

다른 열 배치를 쓰는 칩도 ArithmeticInstructions만 구현하면
같은 회로 설명 코드(CubicCircuit.synthesize)를 재사용할 수 있다.
"""

import abc
import logging

from circuitlab.plonkish.constraint_system import Rotation


logger = logging.getLogger(__name__)


class Chip(abc.ABC):
    """구성(config)과 미리 로드된 데이터(loaded)를 가진 칩의 기반 클래스."""

    @property
    @abc.abstractmethod
    def config(self):
        """칩의 구성."""

    @property
    def loaded(self):
        return None


class ArithmeticInstructions(abc.ABC):
    """x³ + x + c 같은 산술 회로에 필요한 명령 집합."""

    @abc.abstractmethod
    def load_private(self, layouter, value):
        """비공개 위트니스를 새 셀에 로드한다."""

    @abc.abstractmethod
    def load_constant(self, layouter, constant):
        """회로 상수를 새 셀에 로드한다."""

    @abc.abstractmethod
    def mul(self, layouter, a, b):
        """a · b 셀을 만든다."""

    @abc.abstractmethod
    def add(self, layouter, a, b):
        """a + b 셀을 만든다."""

    @abc.abstractmethod
    def expose_public(self, layouter, num, row):
        """셀을 instance 열의 row 행에 공개한다."""


class ArithmeticConfig:
    """2 advice / 1 instance / 2 selector 구성.

    속성:
        advice: [lhs/out 열, rhs 열]
        instance: 공개 입력 열
        s_mul, s_add: 곱셈/덧셈 셀렉터
    """

    def __init__(self, advice, instance, s_mul, s_add):
        self.advice = advice
        self.instance = instance
        self.s_mul = s_mul
        self.s_add = s_add

    def __repr__(self):
        return (
            f"ArithmeticConfig(advice={self.advice!r}, instance={self.instance!r}, "
            f"s_mul={self.s_mul!r}, s_add={self.s_add!r})"
        )


class ArithmeticChip(Chip, ArithmeticInstructions):
    """ArithmeticInstructions의 단일 구현.

    사용 예시:
        >>> chip = ArithmeticChip(config)
        >>> x = chip.load_private(layouter.namespace("load x"), Value.known(Fp(3)))
        >>> x2 = chip.mul(layouter.namespace("x2"), x, x)
    """

    def __init__(self, config):
        self._config = config

    @property
    def config(self):
        return self._config

    @staticmethod
    def configure(meta, advice, instance, constant):
        """열에 등식/상수 기능을 켜고 셀렉터와 "mul/add" 게이트를 등록한다.

        게이트:
            | advice[0] | advice[1] |
            |-----------|-----------|
            | lhs       | rhs       |  ← cur
            | out       |           |  ← next

            s_mul · (lhs · rhs - out) = 0
            s_add · (lhs + rhs - out) = 0

        Args:
            meta: ConstraintSystem
            advice: advice 열 2개
            instance: instance 열
            constant: 상수용 fixed 열

        Returns:
            ArithmeticConfig
        """
        meta.enable_equality(instance)
        meta.enable_constant(constant)
        for column in advice:
            meta.enable_equality(column)

        s_mul = meta.selector()
        s_add = meta.selector()

        def mul_add(cells):
            lhs = cells.query_advice(advice[0], Rotation.cur())
            rhs = cells.query_advice(advice[1], Rotation.cur())
            out = cells.query_advice(advice[0], Rotation.next())
            q_mul = cells.query_selector(s_mul)
            q_add = cells.query_selector(s_add)
            return [
                ("mul", q_mul * (lhs * rhs - out)),
                ("add", q_add * (lhs + rhs - out)),
            ]

        meta.create_gate("mul/add", mul_add)

        return ArithmeticConfig(list(advice), instance, s_mul, s_add)

    def load_private(self, layouter, value):
        config = self.config

        def assign(region):
            return region.assign_advice("private input", config.advice[0], 0, value)

        return layouter.assign_region("load private", assign)

    def load_constant(self, layouter, constant):
        config = self.config

        def assign(region):
            return region.assign_advice_from_constant("constant value", config.advice[0], 0, constant)

        return layouter.assign_region("load constant", assign)

    def _binary(self, layouter, name, selector, a, b, op):
        config = self.config

        def assign(region):
            region.enable_selector(name, selector, 0)
            a.copy_advice("lhs", region, config.advice[0], 0)
            b.copy_advice("rhs", region, config.advice[1], 0)
            value = a.value.and_then(lambda lhs: b.value.map(lambda rhs: op(lhs, rhs)))
            return region.assign_advice(f"{name} out", config.advice[0], 1, value)

        return layouter.assign_region(name, assign)

    def mul(self, layouter, a, b):
        return self._binary(layouter, "mul", self.config.s_mul, a, b, lambda x, y: x * y)

    def add(self, layouter, a, b):
        return self._binary(layouter, "add", self.config.s_add, a, b, lambda x, y: x + y)

    def expose_public(self, layouter, num, row):
        layouter.constrain_instance(num.cell, self.config.instance, row)
