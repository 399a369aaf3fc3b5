"""
제약 시스템 빌더 (Constraint System Builder)
==============================================

회로가 필요로 하는 열(column), 셀렉터(selector), 게이트(gate)를 선언한다.

**열 종류**:
  | 종류     | 내용                        | 공개 여부 |
  |----------|-----------------------------|-----------|
  | Advice   | 위트니스 (증명자만 앎)      | 비공개    |
  | Fixed    | 회로 전체 공통 상수         | 공개      |
  | Instance | 공개 입력                   | 공개      |

**셀렉터**:
  행마다 0/1 값을 갖는 표시자. 게이트 다항식에 곱해져서
  셀렉터가 켜진 행에서만 제약이 강제된다.

**예제 게이트** (x³ + x + 5):
    mul/add:
        s_mul · (lhs · rhs - out) = 0
        s_add · (lhs + rhs - out) = 0

      | advice[0] | advice[1] | s_mul | s_add |
      |-----------|-----------|-------|-------|
      | lhs       | rhs       |   1   |   0   |   ← 현재 행
      | out       |           |       |       |   ← 다음 행

구성(configure)은 회로 타입당 한 번 실행되고, 이후 freeze()로 동결된다.
동결된 제약 시스템은 합성 단계에서 읽기 전용으로 공유된다.

사용 예시:
    >>> meta = ConstraintSystem()
    >>> a = meta.advice_column()
    >>> s = meta.selector()
    >>> def square(m):
    ...     x = m.query_advice(a, Rotation.cur())
    ...     y = m.query_advice(a, Rotation.next())
    ...     return [m.query_selector(s) * (x * x - y)]
    >>> meta.create_gate("square", square)
"""

import enum
import logging

from circuitlab.plonkish.config import MIN_BLINDING_FACTORS
from circuitlab.plonkish.errors import ConfigurationError
from circuitlab.plonkish.expression import (
    AdviceQuery,
    FixedQuery,
    InstanceQuery,
    SelectorExpression,
)


logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 열, 셀렉터, 회전
# ─────────────────────────────────────────────────────────────────────

class ColumnType(enum.Enum):
    ADVICE = "advice"
    FIXED = "fixed"
    INSTANCE = "instance"


class Column:
    """(종류, 인덱스)로 식별되는 열. 구성 단계에서 한 번 할당된다."""

    def __init__(self, index, column_type):
        self.index = index
        self.column_type = column_type

    def _key(self):
        return (self.column_type.value, self.index)

    def __eq__(self, other):
        if not isinstance(other, Column):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        return self._key() < other._key()

    def __repr__(self):
        return f"Column({self.column_type.value}, {self.index})"


class Selector:
    """게이트를 행 단위로 켜고 끄는 불리언 표시자."""

    def __init__(self, index):
        self.index = index

    def __eq__(self, other):
        if not isinstance(other, Selector):
            return NotImplemented
        return self.index == other.index

    def __hash__(self):
        return hash(("selector", self.index))

    def __repr__(self):
        return f"Selector({self.index})"


class Rotation:
    """현재 행 기준의 상대 행 위치."""

    def __init__(self, value):
        self.value = value

    @classmethod
    def cur(cls):
        return cls(0)

    @classmethod
    def next(cls):
        return cls(1)

    @classmethod
    def prev(cls):
        return cls(-1)

    def __eq__(self, other):
        if not isinstance(other, Rotation):
            return NotImplemented
        return self.value == other.value

    def __hash__(self):
        return hash(("rotation", self.value))

    def __repr__(self):
        return f"Rotation({self.value})"


# ─────────────────────────────────────────────────────────────────────
# 게이트
# ─────────────────────────────────────────────────────────────────────

class Gate:
    """이름 있는 다항식 제약 묶음.

    속성:
        name: 게이트 이름
        constraint_names: 하위 제약 이름 리스트 (이름이 없으면 "")
        polys: Expression 리스트 (하위 제약 하나당 하나)
        queried_selectors: 게이트가 참조하는 셀렉터
        queried_cells: 게이트가 참조하는 (column, rotation) 쌍
    """

    def __init__(self, name, constraint_names, polys, queried_selectors, queried_cells):
        self.name = name
        self.constraint_names = constraint_names
        self.polys = polys
        self.queried_selectors = queried_selectors
        self.queried_cells = queried_cells

    def degree(self):
        return max(poly.degree() for poly in self.polys)

    def __repr__(self):
        return f"Gate({self.name!r}, {len(self.polys)} constraints)"


class VirtualCells:
    """create_gate 빌더에게 전달되는 쿼리 핸들 생성기.

    쿼리한 셀렉터/셀을 기록해서 Gate에 담는다.
    """

    def __init__(self, meta):
        self.meta = meta
        self.queried_selectors = []
        self.queried_cells = []

    def _record_cell(self, column, rotation):
        if (column, rotation) not in self.queried_cells:
            self.queried_cells.append((column, rotation))

    def query_selector(self, selector):
        if selector.index >= self.meta.num_selectors:
            raise ConfigurationError(f"할당되지 않은 셀렉터입니다: {selector!r}")
        if selector not in self.queried_selectors:
            self.queried_selectors.append(selector)
        return SelectorExpression(selector)

    def query_advice(self, column, rotation):
        self.meta._check_column(column, ColumnType.ADVICE)
        self._record_cell(column, rotation)
        self.meta._record_advice_query(column, rotation)
        return AdviceQuery(column, rotation)

    def query_fixed(self, column, rotation):
        self.meta._check_column(column, ColumnType.FIXED)
        self._record_cell(column, rotation)
        return FixedQuery(column, rotation)

    def query_instance(self, column, rotation):
        self.meta._check_column(column, ColumnType.INSTANCE)
        self._record_cell(column, rotation)
        return InstanceQuery(column, rotation)


# ─────────────────────────────────────────────────────────────────────
# 제약 시스템
# ─────────────────────────────────────────────────────────────────────

class ConstraintSystem:
    """회로 구성(configuration)의 전체 상태.

    속성:
        num_advice_columns, num_fixed_columns, num_instance_columns: 열 수
        num_selectors: 셀렉터 수
        gates: Gate 리스트
        permutation_columns: 복사 제약이 허용된 열 (enable_equality 순서)
        constants: 상수 바인딩이 허용된 fixed 열
        advice_queries: 게이트가 쿼리한 (advice column, rotation) 리스트
        num_advice_queries: advice 열별 고유 쿼리 수
    """

    def __init__(self):
        self.num_advice_columns = 0
        self.num_fixed_columns = 0
        self.num_instance_columns = 0
        self.num_selectors = 0
        self.gates = []
        self.permutation_columns = []
        self.constants = []
        self.advice_queries = []
        self.num_advice_queries = []
        self.frozen = False

    # ─── 할당 ───

    def _check_mutable(self):
        if self.frozen:
            raise ConfigurationError("동결된 제약 시스템은 수정할 수 없습니다")

    def advice_column(self):
        self._check_mutable()
        column = Column(self.num_advice_columns, ColumnType.ADVICE)
        self.num_advice_columns += 1
        self.num_advice_queries.append(0)
        return column

    def fixed_column(self):
        self._check_mutable()
        column = Column(self.num_fixed_columns, ColumnType.FIXED)
        self.num_fixed_columns += 1
        return column

    def instance_column(self):
        self._check_mutable()
        column = Column(self.num_instance_columns, ColumnType.INSTANCE)
        self.num_instance_columns += 1
        return column

    def selector(self):
        self._check_mutable()
        selector = Selector(self.num_selectors)
        self.num_selectors += 1
        return selector

    def _check_column(self, column, column_type):
        if column.column_type is not column_type:
            raise ConfigurationError(
                f"{column_type.value} 열이 필요합니다: {column!r}"
            )
        if column.index >= self.num_columns(column_type):
            raise ConfigurationError(f"할당되지 않은 열입니다: {column!r}")

    def num_columns(self, column_type):
        return {
            ColumnType.ADVICE: self.num_advice_columns,
            ColumnType.FIXED: self.num_fixed_columns,
            ColumnType.INSTANCE: self.num_instance_columns,
        }[column_type]

    def _record_advice_query(self, column, rotation):
        if (column, rotation) in self.advice_queries:
            return
        self.advice_queries.append((column, rotation))
        self.num_advice_queries[column.index] += 1

    # ─── 등식/상수 ───

    def enable_equality(self, column):
        """column을 복사 제약(permutation argument)에 참여시킨다."""
        self._check_mutable()
        self._check_column(column, column.column_type)
        if column not in self.permutation_columns:
            self.permutation_columns.append(column)

    def enable_constant(self, column):
        """fixed column을 상수 바인딩용으로 지정한다 (등식도 함께 허용)."""
        self._check_mutable()
        self._check_column(column, ColumnType.FIXED)
        if column not in self.constants:
            self.constants.append(column)
        self.enable_equality(column)

    # ─── 게이트 ───

    def create_gate(self, name, builder):
        """이름 있는 게이트를 등록한다.

        Args:
            name: 게이트 이름
            builder: VirtualCells를 받아 Expression 리스트 또는
                     (이름, Expression) 쌍 리스트를 돌려주는 함수

        Returns:
            Gate

        Raises:
            ConfigurationError: 제약이 하나도 없을 때
        """
        self._check_mutable()
        cells = VirtualCells(self)
        constraints = list(builder(cells))
        if not constraints:
            raise ConfigurationError(f"게이트 '{name}'에 제약이 없습니다")

        constraint_names = []
        polys = []
        for constraint in constraints:
            if isinstance(constraint, tuple):
                constraint_name, poly = constraint
            else:
                constraint_name, poly = "", constraint
            constraint_names.append(constraint_name)
            polys.append(poly)

        gate = Gate(name, constraint_names, polys,
                    cells.queried_selectors, cells.queried_cells)
        self.gates.append(gate)
        logger.debug("gate registered: %s (degree %d)", name, gate.degree())
        return gate

    # ─── 도메인 크기 ───

    def blinding_factors(self):
        """영지식성을 위해 예약되는 마지막 행 수.

        max(3, advice 열별 최대 쿼리 수) + 2
        """
        factors = max(self.num_advice_queries, default=1)
        factors = max(MIN_BLINDING_FACTORS, factors)
        return factors + 2

    def minimum_rows(self):
        """어떤 회로든 필요한 최소 행 수 (블라인딩 + 마지막 행 + 여유)."""
        return self.blinding_factors() + 1 + 1

    def usable_rows(self, k):
        """2^k 도메인에서 셀 할당에 쓸 수 있는 행 수."""
        return (1 << k) - (self.blinding_factors() + 1)

    def degree(self):
        return max([gate.degree() for gate in self.gates], default=1)

    def freeze(self):
        """구성을 동결한다. 이후 할당/게이트 등록은 ConfigurationError."""
        self.frozen = True
        logger.info(
            "constraint system configured: %d advice, %d fixed, %d instance, "
            "%d selectors, %d gates",
            self.num_advice_columns, self.num_fixed_columns,
            self.num_instance_columns, self.num_selectors, len(self.gates),
        )
