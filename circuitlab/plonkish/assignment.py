"""
할당 백엔드 인터페이스 (Assignment)
=====================================

레이아우터(layouter)가 셀 할당을 기록하는 대상.

**구현체**:
  - MockProver (dev.py): 위트니스 값을 모두 기록하고 제약을 직접 평가
  - KeygenAssembly (keygen.py): 구조만 기록하고 advice 값은 버림

두 구현체는 같은 구조 기록(영역, 셀렉터, fixed 값, 순열, instance 바인딩)을
공유한다. 그래서 같은 회로를 위트니스 없이/있이 합성한 결과를
structure()로 비교할 수 있다.

**행 주소**:
  이 계층은 전역 행 번호만 받는다. 영역 내부 오프셋 → 전역 행 변환은
  레이아우터가 영역 시작 행 테이블로 처리한다.

  사용 가능한 행: 0 ≤ row < 2^k - (blinding_factors + 1)
"""

import logging

from circuitlab.plonkish.constraint_system import ColumnType
from circuitlab.plonkish.errors import ConfigurationError, NotEnoughRowsAvailable
from circuitlab.plonkish.permutation import Assembly
from circuitlab.plonkish.public_inputs import InstanceBinder


logger = logging.getLogger(__name__)


class RegionRecord:
    """합성 중 열린 영역 하나의 기록.

    속성:
        index: 영역 번호 (레이아우터가 단조 증가로 부여)
        name: 영역 이름
        namespace: 영역이 열릴 때의 네임스페이스 경로
        columns: 이 영역이 할당한 열 (할당 순서)
        rows: 이 영역이 사용한 전역 행 집합
        enabled_selectors: selector → 켜진 전역 행 리스트
        cells: 할당된 (column, row) 리스트
    """

    def __init__(self, index, name, namespace):
        self.index = index
        self.name = name
        self.namespace = namespace
        self.columns = []
        self.rows = set()
        self.enabled_selectors = {}
        self.cells = []

    @property
    def path(self):
        return "/".join(self.namespace + (self.name,))

    def track_cell(self, column, row):
        if column not in self.columns:
            self.columns.append(column)
        self.rows.add(row)
        self.cells.append((column, row))

    def track_selector(self, selector, row):
        self.enabled_selectors.setdefault(selector, []).append(row)
        self.rows.add(row)

    def summary(self):
        return (
            self.index,
            self.path,
            tuple(sorted(repr(c) for c in self.columns)),
            tuple(sorted(self.rows)),
            tuple(sorted((s.index, tuple(rows)) for s, rows in self.enabled_selectors.items())),
        )

    def __repr__(self):
        return f"RegionRecord({self.index}, {self.path!r})"


class Assignment:
    """레이아우터가 호출하는 백엔드 기반 클래스.

    하위 클래스는 _store_advice()와 query_instance()를 구현한다.
    """

    def __init__(self, k, cs):
        if not cs.frozen:
            raise ConfigurationError("구성이 끝나지 않은 제약 시스템입니다")
        if k < 1:
            raise NotEnoughRowsAvailable(k)
        self.k = k
        self.n = 1 << k
        self.cs = cs
        self.usable_rows = cs.usable_rows(k)
        if self.usable_rows < 1:
            raise NotEnoughRowsAvailable(k)

        self.regions = []
        self.current_region = None
        self.namespace = []
        self.selectors = [[False] * self.n for _ in range(cs.num_selectors)]
        self.fixed = [[None] * self.n for _ in range(cs.num_fixed_columns)]
        self.permutation = Assembly(self.n, cs.permutation_columns)
        self.instance_binder = InstanceBinder()

    # ─── 영역/네임스페이스 ───

    def enter_region(self, name):
        if self.current_region is not None:
            raise ConfigurationError(
                f"영역 {self.current_region.name!r} 안에서 새 영역을 열 수 없습니다"
            )
        self.current_region = RegionRecord(len(self.regions), name, tuple(self.namespace))
        logger.debug("enter region %d: %s", self.current_region.index, self.current_region.path)

    def exit_region(self):
        region = self.current_region
        self.regions.append(region)
        self.current_region = None
        logger.debug("exit region %d: rows %s", region.index, sorted(region.rows))

    def push_namespace(self, name):
        self.namespace.append(name)

    def pop_namespace(self):
        self.namespace.pop()

    def region_at(self, column, row):
        """(column, row) 또는 행을 사용한 영역 이름. 없으면 None."""
        for region in self.regions:
            if (column, row) in region.cells:
                return region.path
        for region in self.regions:
            if row in region.rows:
                return region.path
        return None

    # ─── 할당 ───

    def _check_row(self, row):
        if not 0 <= row < self.usable_rows:
            raise NotEnoughRowsAvailable(self.k)

    def _track(self, column, row):
        if self.current_region is not None:
            self.current_region.track_cell(column, row)

    def enable_selector(self, name, selector, row):
        self._check_row(row)
        self.selectors[selector.index][row] = True
        if self.current_region is not None:
            self.current_region.track_selector(selector, row)
        logger.debug("enable selector %s (%r) at row %d", name, selector, row)

    def assign_advice(self, name, column, row, value):
        if column.column_type is not ColumnType.ADVICE:
            raise ConfigurationError(f"advice 열이 아닙니다: {column!r}")
        self._check_row(row)
        self._track(column, row)
        self._store_advice(column, row, value)
        logger.debug("assign advice %s: %r@%d = %r", name, column, row, value)

    def _store_advice(self, column, row, value):
        raise NotImplementedError

    def assign_fixed(self, name, column, row, value):
        if column.column_type is not ColumnType.FIXED:
            raise ConfigurationError(f"fixed 열이 아닙니다: {column!r}")
        self._check_row(row)
        self._track(column, row)
        # fixed 값은 회로 정의의 일부라 키 생성 시에도 알려져 있어야 한다
        self.fixed[column.index][row] = value.unwrap()
        logger.debug("assign fixed %s: %r@%d = %r", name, column, row, value)

    def query_instance(self, column, row):
        raise NotImplementedError

    def copy(self, left_column, left_row, right_column, right_row):
        """두 셀 사이에 복사 제약을 추가한다.

        한쪽이 instance 열이면 공개 입력 바인딩으로도 기록한다.

        Raises:
            ColumnNotInPermutation: 등식이 허용되지 않은 열
            NotEnoughRowsAvailable: 사용 가능한 행 밖
        """
        self._check_row(left_row)
        self._check_row(right_row)
        self.permutation.copy(left_column, left_row, right_column, right_row)
        if right_column.column_type is ColumnType.INSTANCE:
            self.instance_binder.bind(right_column, right_row, left_column, left_row)
        elif left_column.column_type is ColumnType.INSTANCE:
            self.instance_binder.bind(left_column, left_row, right_column, right_row)

    # ─── 구조 스냅샷 ───

    def structure(self):
        """위트니스 값과 무관한 회로 배치 구조.

        Returns:
            dict: regions, selectors, fixed, copies, instance_bindings
        """
        return {
            "regions": [region.summary() for region in self.regions],
            "selectors": [
                tuple(row for row, on in enumerate(column) if on)
                for column in self.selectors
            ],
            "fixed": [
                tuple((row, int(v)) for row, v in enumerate(column) if v is not None)
                for column in self.fixed
            ],
            "copies": sorted(
                tuple(sorted((repr(c), row) for c, row in cycle))
                for cycle in self.permutation.cycles()
            ),
            "instance_bindings": [repr(b) for b in self.instance_binder.bindings],
        }
