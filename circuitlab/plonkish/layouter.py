"""
영역 & 셀 모델 (Region / Cell / Layouter)
==========================================

회로 합성은 "영역(region)" 단위로 셀을 할당한다.

**영역**:
  논리적으로 관련된 셀 할당 묶음 (예: 곱셈 한 번).
  영역 안의 행 번호는 0부터 시작하는 지역 오프셋이고,
  레이아우터가 영역 시작 행을 더해 전역 행으로 바꾼다.

**셀 주소 (arena 방식)**:
  Cell = (region_index, row_offset, column)
  영역 번호는 레이아우터가 단조 증가로 부여하고,
  전역 행은 regions[region_index] + row_offset 으로만 계산된다.

**SimpleFloorPlanner 배치 규칙**:
  각 영역 클로저를 두 번 실행한다.
    1. 측정(RegionShape): 사용하는 열과 행 수만 기록
    2. 할당(SingleChipLayouterRegion): 실제 백엔드에 기록
  영역 시작 행 = 영역이 쓰는 열들의 "다음 빈 행" 중 최댓값.
  서로 다른 열만 쓰는 영역은 같은 행에 겹쳐 배치될 수 있다.

  예 (x³ + x + 5):
    | 행 | advice[0] | advice[1] | fixed[0] | s_mul | s_add | 영역           |
    |----|-----------|-----------|----------|-------|-------|----------------|
    | 0  | x         |           | 5        |       |       | load private   |
    | 1  | 5         |           |          |       |       | load constant  |
    | 2  | x         | x         |          |   1   |       | mul (x2)       |
    | 3  | x2        |           |          |       |       |                |
    | 4  | x2        | x         |          |   1   |       | mul (x3)       |
    | 5  | x3        |           |          |       |       |                |
    | 6  | x3        | x         |          |       |   1   | add (x3+x)     |
    | 7  | x3+x      |           |          |       |       |                |
    | 8  | x3+x      | 5         |          |       |   1   | add (x3+x+5)   |
    | 9  | x3+x+5    |           |          |       |       |                |

**상수**:
  assign_advice_from_constant로 들어온 상수는 합성이 끝난 뒤
  첫 번째 enable_constant 열에 순서대로 배치되고 advice 셀과 복사 제약으로 묶인다.
"""

import contextlib
import logging

from circuitlab.plonkish.errors import NotEnoughColumnsForConstants
from circuitlab.plonkish.field import to_field
from circuitlab.plonkish.value import Value


logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────
# 셀
# ─────────────────────────────────────────────────────────────────────

class Cell:
    """영역 기준 셀 주소."""

    def __init__(self, region_index, row_offset, column):
        self.region_index = region_index
        self.row_offset = row_offset
        self.column = column

    def _key(self):
        return (self.region_index, self.row_offset, self.column)

    def __eq__(self, other):
        if not isinstance(other, Cell):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        return f"Cell(region={self.region_index}, offset={self.row_offset}, {self.column!r})"


class AssignedCell:
    """값이 할당된 셀. 다른 영역으로 복사할 수 있다.

    속성:
        value: Value (Known/Unknown)
        cell: Cell 주소
    """

    def __init__(self, value, cell):
        self.value = value
        self.cell = cell

    def copy_advice(self, name, region, column, offset):
        """값을 region의 (column, offset)에 할당하고 원래 셀과 등식으로 묶는다.

        Returns:
            AssignedCell: 새로 할당된 셀
        """
        assigned = region.assign_advice(name, column, offset, self.value)
        region.constrain_equal(self.cell, assigned.cell)
        return assigned

    def __repr__(self):
        return f"AssignedCell({self.value!r}, {self.cell!r})"


# ─────────────────────────────────────────────────────────────────────
# 영역
# ─────────────────────────────────────────────────────────────────────

class Region:
    """칩이 사용하는 영역 API. 측정/할당 구현체를 감싼다."""

    def __init__(self, inner):
        self._inner = inner

    def enable_selector(self, name, selector, offset):
        self._inner.enable_selector(name, selector, offset)

    def assign_advice(self, name, column, offset, value):
        if not isinstance(value, Value):
            value = Value.known(to_field(value))
        cell = self._inner.assign_advice(name, column, offset, value)
        return AssignedCell(value, cell)

    def assign_advice_from_constant(self, name, column, offset, constant):
        """상수를 advice 셀에 할당하고 fixed 상수 열과 복사 제약으로 묶는다."""
        constant = to_field(constant)
        cell = self._inner.assign_advice_from_constant(name, column, offset, constant)
        return AssignedCell(Value.known(constant), cell)

    def assign_advice_from_instance(self, name, instance, row, column, offset):
        """instance 열의 row 행 값을 advice 셀에 할당하고 두 셀을 복사 제약으로 묶는다."""
        value, cell = self._inner.assign_advice_from_instance(name, instance, row, column, offset)
        return AssignedCell(value, cell)

    def assign_fixed(self, name, column, offset, value):
        if not isinstance(value, Value):
            value = Value.known(to_field(value))
        cell = self._inner.assign_fixed(name, column, offset, value)
        return AssignedCell(value, cell)

    def constrain_constant(self, cell, constant):
        self._inner.constrain_constant(cell, to_field(constant))

    def constrain_equal(self, left, right):
        self._inner.constrain_equal(left, right)


class RegionShape:
    """측정 패스: 영역이 쓰는 열과 행 수만 기록한다."""

    def __init__(self, region_index):
        self.region_index = region_index
        self.columns = []
        self.row_count = 0

    def _touch(self, column, offset):
        if column not in self.columns:
            self.columns.append(column)
        self.row_count = max(self.row_count, offset + 1)

    def enable_selector(self, name, selector, offset):
        self._touch(selector, offset)

    def assign_advice(self, name, column, offset, value):
        self._touch(column, offset)
        return Cell(self.region_index, offset, column)

    def assign_advice_from_constant(self, name, column, offset, constant):
        return self.assign_advice(name, column, offset, Value.known(constant))

    def assign_advice_from_instance(self, name, instance, row, column, offset):
        return Value.unknown(), self.assign_advice(name, column, offset, Value.unknown())

    def assign_fixed(self, name, column, offset, value):
        self._touch(column, offset)
        return Cell(self.region_index, offset, column)

    def constrain_constant(self, cell, constant):
        pass

    def constrain_equal(self, left, right):
        pass


class SingleChipLayouterRegion:
    """할당 패스: 지역 오프셋을 전역 행으로 바꿔 백엔드에 기록한다."""

    def __init__(self, layouter, region_index):
        self.layouter = layouter
        self.region_index = region_index
        self.constants = []

    @property
    def start(self):
        return self.layouter.regions[self.region_index]

    def enable_selector(self, name, selector, offset):
        self.layouter.assignment.enable_selector(name, selector, self.start + offset)

    def assign_advice(self, name, column, offset, value):
        self.layouter.assignment.assign_advice(name, column, self.start + offset, value)
        return Cell(self.region_index, offset, column)

    def assign_advice_from_constant(self, name, column, offset, constant):
        cell = self.assign_advice(name, column, offset, Value.known(constant))
        self.constrain_constant(cell, constant)
        return cell

    def assign_advice_from_instance(self, name, instance, row, column, offset):
        assignment = self.layouter.assignment
        value = assignment.query_instance(instance, row)
        cell = self.assign_advice(name, column, offset, value)
        assignment.copy(instance, row, column, self.start + offset)
        return value, cell

    def assign_fixed(self, name, column, offset, value):
        self.layouter.assignment.assign_fixed(name, column, self.start + offset, value)
        return Cell(self.region_index, offset, column)

    def constrain_constant(self, cell, constant):
        if not self.layouter.cs.constants:
            raise NotEnoughColumnsForConstants()
        self.constants.append((constant, cell))

    def constrain_equal(self, left, right):
        self.layouter.assignment.copy(
            left.column, self.layouter.global_row(left),
            right.column, self.layouter.global_row(right),
        )


# ─────────────────────────────────────────────────────────────────────
# 레이아우터
# ─────────────────────────────────────────────────────────────────────

class SingleChipLayouter:
    """영역을 순서대로 배치하는 레이아우터.

    속성:
        regions: 영역 번호 → 시작 행 (arena 테이블)
        columns: 열/셀렉터 → 다음 빈 행
        constants_to_assign: (상수, Cell) 리스트
    """

    def __init__(self, cs, assignment):
        self.cs = cs
        self.assignment = assignment
        self.regions = []
        self.columns = {}
        self.constants_to_assign = []

    def global_row(self, cell):
        return self.regions[cell.region_index] + cell.row_offset

    def assign_region(self, name, assignment_fn):
        """영역을 열고 assignment_fn(region)을 실행한다.

        Args:
            name: 영역 이름
            assignment_fn: Region을 받아 결과(보통 AssignedCell)를 돌려주는 함수

        Returns:
            assignment_fn의 반환값 (할당 패스)
        """
        region_index = len(self.regions)

        shape = RegionShape(region_index)
        assignment_fn(Region(shape))

        region_start = max((self.columns.get(c, 0) for c in shape.columns), default=0)
        self.regions.append(region_start)
        for column in shape.columns:
            self.columns[column] = max(self.columns.get(column, 0), region_start + shape.row_count)

        self.assignment.enter_region(name)
        try:
            region = SingleChipLayouterRegion(self, region_index)
            result = assignment_fn(Region(region))
            self.constants_to_assign.extend(region.constants)
        finally:
            self.assignment.exit_region()

        logger.debug(
            "region %d '%s' placed at row %d (%d rows)",
            region_index, name, region_start, shape.row_count,
        )
        return result

    def constrain_instance(self, cell, instance, row):
        """cell을 instance 열의 row 행과 복사 제약으로 묶는다."""
        self.assignment.copy(cell.column, self.global_row(cell), instance, row)

    def namespace(self, name):
        return NamespacedLayouter(self, (name,))

    def assign_constants(self):
        """모아 둔 상수를 첫 번째 상수 열에 배치한다."""
        if not self.constants_to_assign:
            return
        if not self.cs.constants:
            raise NotEnoughColumnsForConstants()

        constants_column = self.cs.constants[0]
        next_row = self.columns.get(constants_column, 0)
        for constant, cell in self.constants_to_assign:
            self.assignment.assign_fixed(
                f"Constant({int(constant)})", constants_column, next_row, Value.known(constant)
            )
            self.assignment.copy(constants_column, next_row, cell.column, self.global_row(cell))
            logger.debug("constant %d placed at %r@%d", int(constant), constants_column, next_row)
            next_row += 1
        self.columns[constants_column] = next_row


class NamespacedLayouter:
    """이름 경로를 붙여 영역을 여는 레이아우터 뷰.

    호출하는 동안만 백엔드에 네임스페이스를 push/pop 한다.
    """

    def __init__(self, root, path):
        self.root = root
        self.path = path

    @contextlib.contextmanager
    def _scope(self):
        for name in self.path:
            self.root.assignment.push_namespace(name)
        try:
            yield
        finally:
            for _ in self.path:
                self.root.assignment.pop_namespace()

    def assign_region(self, name, assignment_fn):
        with self._scope():
            return self.root.assign_region(name, assignment_fn)

    def constrain_instance(self, cell, instance, row):
        with self._scope():
            self.root.constrain_instance(cell, instance, row)

    def namespace(self, name):
        return NamespacedLayouter(self.root, self.path + (name,))


class SimpleFloorPlanner:
    """회로의 synthesize를 SingleChipLayouter 위에서 실행한다."""

    @staticmethod
    def synthesize(cs, assignment, circuit, config):
        layouter = SingleChipLayouter(cs, assignment)
        circuit.synthesize(config, layouter)
        layouter.assign_constants()
        return layouter
