"""
복사 제약 순열 (Permutation Assembly)
======================================

복사 제약(copy constraint)을 순환(cycle)으로 모은다.

**배경**:
  게이트는 각 행에서 독립적으로 검사되므로, 서로 다른 영역(region)의 셀이
  "같은 값"이라는 사실은 게이트만으로 표현할 수 없다.
  등식이 허용된 열의 모든 셀 위치에 순열 σ를 정의하고,
  같은 값을 가져야 하는 셀들을 하나의 순환으로 묶는다.

  백엔드는 "모든 셀 c에 대해 value(c) == value(σ(c))"를 확인하면 된다.

**순환 병합**:
  초기: σ(c) = c (모든 셀이 자기 자신만의 순환)
  copy(l, r):
    1. l, r이 이미 같은 순환이면 무시
    2. 작은 순환을 큰 순환에 병합 (aux: 셀 → 순환 대표)
    3. σ(l)과 σ(r)을 교환하면 두 순환이 하나로 이어진다

  예 (x³+x+5, advice[0]):
    x(load) → x2 영역 lhs → x2 영역 rhs → x3 영역 rhs → x3+x 영역 rhs → x(load)

사용 예시:
    >>> assembly = Assembly(n=16, columns=cs.permutation_columns)
    >>> assembly.copy(advice0, 0, advice0, 2)
"""

import logging

from circuitlab.plonkish.errors import ColumnNotInPermutation, NotEnoughRowsAvailable


logger = logging.getLogger(__name__)


class Assembly:
    """등식이 허용된 열 위의 순열 σ.

    속성:
        columns: 순열에 참여하는 열 리스트 (enable_equality 순서)
        mapping: mapping[i][row] = σ((i, row))
        aux: aux[i][row] = (i, row)가 속한 순환의 대표 셀
        sizes: sizes[i][row] = 대표 셀 (i, row) 순환의 크기
    """

    def __init__(self, n, columns):
        self.n = n
        self.columns = list(columns)
        self.mapping = [[(i, row) for row in range(n)] for i in range(len(self.columns))]
        self.aux = [[(i, row) for row in range(n)] for i in range(len(self.columns))]
        self.sizes = [[1] * n for _ in self.columns]
        self.copies = []

    def _column_index(self, column):
        try:
            return self.columns.index(column)
        except ValueError:
            raise ColumnNotInPermutation(column) from None

    def copy(self, left_column, left_row, right_column, right_row):
        """(left_column, left_row)와 (right_column, right_row)를 같은 순환으로 묶는다.

        Raises:
            ColumnNotInPermutation: 등식이 허용되지 않은 열일 때
            NotEnoughRowsAvailable: 행이 도메인 밖일 때
        """
        left = (self._column_index(left_column), left_row)
        right = (self._column_index(right_column), right_row)
        for _, row in (left, right):
            if not 0 <= row < self.n:
                raise NotEnoughRowsAvailable(self.n.bit_length() - 1)

        self.copies.append(((left_column, left_row), (right_column, right_row)))

        left_cycle = self.aux[left[0]][left[1]]
        right_cycle = self.aux[right[0]][right[1]]
        if left_cycle == right_cycle:
            return

        if self.sizes[left_cycle[0]][left_cycle[1]] < self.sizes[right_cycle[0]][right_cycle[1]]:
            left, right = right, left
            left_cycle, right_cycle = right_cycle, left_cycle

        # 오른쪽 순환을 왼쪽 순환으로 병합
        self.sizes[left_cycle[0]][left_cycle[1]] += self.sizes[right_cycle[0]][right_cycle[1]]
        cell = right_cycle
        while True:
            self.aux[cell[0]][cell[1]] = left_cycle
            cell = self.mapping[cell[0]][cell[1]]
            if cell == right_cycle:
                break

        self.mapping[left[0]][left[1]], self.mapping[right[0]][right[1]] = (
            self.mapping[right[0]][right[1]],
            self.mapping[left[0]][left[1]],
        )
        logger.debug("copy: %r@%d == %r@%d", left_column, left_row, right_column, right_row)

    def cycles(self):
        """크기 2 이상의 순환을 (column, row) 리스트로 돌려준다."""
        result = []
        seen = set()
        for i in range(len(self.columns)):
            for row in range(self.n):
                start = (i, row)
                if start in seen or self.mapping[i][row] == start:
                    continue
                cycle = []
                cell = start
                while cell not in seen:
                    seen.add(cell)
                    cycle.append((self.columns[cell[0]], cell[1]))
                    cell = self.mapping[cell[0]][cell[1]]
                result.append(cycle)
        return result

    def mapped_cells(self):
        """σ(c) ≠ c 인 모든 (셀, σ(셀)) 쌍을 돌려준다."""
        for i, column in enumerate(self.columns):
            for row in range(self.n):
                target = self.mapping[i][row]
                if target != (i, row):
                    yield (column, row), (self.columns[target[0]], target[1])
