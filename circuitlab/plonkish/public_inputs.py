"""
공개 입력 바인더 (Public Input Binder)
=======================================

할당된 셀을 instance 열의 행에 묶는다.

**공개 입력 계약**:
  공개 입력은 instance 열별로 "행 번호 순서의 체 원소 리스트"이다.

    instance = [[35]]     # instance 열 0, 행 0 = 35

  한 번의 합성 동안 expose_public이 바인딩한 행 집합은
  검증자가 제공하는 행 인덱스와 정확히 일치해야 한다.

  | 불일치 유형          | 예시                                    |
  |----------------------|-----------------------------------------|
  | 행 재사용            | 행 0에 셀 두 개를 바인딩                |
  | 바인딩 없는 입력     | [35, 7] 제공, 행 1은 바인딩되지 않음    |
  | 누락된 입력          | 행 0을 바인딩했지만 [] 제공             |

  이 불일치는 합성 중이 아니라 백엔드 검증(check_bindings)에서 보고된다.
"""

import logging

from circuitlab.plonkish.errors import InstanceTooLarge
from circuitlab.plonkish.failure import (
    InstanceRowMissing,
    InstanceRowReused,
    InstanceRowUnbound,
)
from circuitlab.plonkish.field import Fp, to_field


logger = logging.getLogger(__name__)


class InstanceBinding:
    """instance (column, row) ↔ 셀 (cell_column, cell_row) 바인딩 하나."""

    def __init__(self, column, row, cell_column, cell_row):
        self.column = column
        self.row = row
        self.cell_column = cell_column
        self.cell_row = cell_row

    @property
    def cell(self):
        return (self.cell_column, self.cell_row)

    def __repr__(self):
        return (
            f"InstanceBinding({self.column!r}@{self.row} <- "
            f"{self.cell_column!r}@{self.cell_row})"
        )


class InstanceBinder:
    """합성 동안 constrain_instance 호출을 순서대로 기록한다."""

    def __init__(self):
        self.bindings = []

    def bind(self, column, row, cell_column, cell_row):
        binding = InstanceBinding(column, row, cell_column, cell_row)
        self.bindings.append(binding)
        logger.debug("instance bound: %r", binding)
        return binding

    def rows(self, column):
        """column에 바인딩된 행 번호 (정렬, 중복 제거)."""
        return sorted({b.row for b in self.bindings if b.column == column})


def normalize_instance(num_instance_columns, instance, n, usable_rows):
    """공개 입력을 Fp 리스트로 변환하고 n 길이로 패딩한다.

    Args:
        num_instance_columns: 제약 시스템의 instance 열 수
        instance: 열별 값 리스트 (int 또는 Fp)
        n: 도메인 크기 2^k
        usable_rows: 사용 가능한 행 수

    Returns:
        tuple: (padded, supplied_lengths)
            padded: 열별 길이 n의 Fp 리스트
            supplied_lengths: 열별 실제 제공된 값 수

    Raises:
        ValueError: instance 열 수가 맞지 않을 때
        InstanceTooLarge: 값이 사용 가능한 행보다 많을 때
    """
    if len(instance) != num_instance_columns:
        raise ValueError(
            f"instance 열 {num_instance_columns}개가 필요하지만 {len(instance)}개가 제공됨"
        )
    padded = []
    supplied_lengths = []
    for values in instance:
        if len(values) > usable_rows:
            raise InstanceTooLarge(len(values), usable_rows)
        column = [to_field(v) for v in values]
        supplied_lengths.append(len(column))
        padded.append(column + [Fp(0)] * (n - len(column)))
    return padded, supplied_lengths


def check_bindings(bindings, instance_columns, supplied_lengths):
    """바인딩된 행 집합과 제공된 공개 입력의 일치 여부를 확인한다.

    Args:
        bindings: InstanceBinding 리스트
        instance_columns: instance Column 리스트 (인덱스 순)
        supplied_lengths: 열별 제공된 공개 입력 수

    Returns:
        list[VerifyFailure]
    """
    failures = []
    for column, supplied in zip(instance_columns, supplied_lengths):
        by_row = {}
        for binding in bindings:
            if binding.column != column:
                continue
            cells = by_row.setdefault(binding.row, [])
            if binding.cell not in cells:
                cells.append(binding.cell)

        for row in sorted(by_row):
            cells = by_row[row]
            if len(cells) > 1:
                failures.append(InstanceRowReused(column, row, cells))
            if row >= supplied:
                failures.append(InstanceRowMissing(column, row))

        for row in range(supplied):
            if row not in by_row:
                failures.append(InstanceRowUnbound(column, row))
    return failures
