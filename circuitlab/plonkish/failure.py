"""
검증 실패 보고 (VerifyFailure)
===============================

MockProver.verify()가 돌려주는 제약 위반 종류.
제약 위반은 예외가 아니라 값으로 보고된다.

  | 종류                      | 의미                                          |
  |---------------------------|-----------------------------------------------|
  | ConstraintNotSatisfied    | 셀렉터가 켜진 행에서 게이트 다항식 ≠ 0          |
  | CellNotAssigned           | 켜진 게이트가 할당되지 않은 셀을 참조          |
  | PermutationNotSatisfied   | 복사 제약으로 묶인 셀의 값이 다름              |
  | InstanceRowReused         | 같은 instance 행에 서로 다른 셀이 바인딩됨     |
  | InstanceRowUnbound        | 제공된 공개 입력 행에 바인딩된 셀이 없음        |
  | InstanceRowMissing        | 바인딩된 행에 대응하는 공개 입력이 제공되지 않음 |
"""


class VerifyFailure:
    """모든 검증 실패의 기반 클래스. 속성이 같으면 같은 실패로 본다."""

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return self.__dict__ == other.__dict__

    __hash__ = None

    def __repr__(self):
        fields = ", ".join(f"{key}={value!r}" for key, value in self.__dict__.items())
        return f"{type(self).__name__}({fields})"


class ConstraintNotSatisfied(VerifyFailure):

    def __init__(self, gate, constraint_index, constraint_name, row, region, cell_values):
        self.gate = gate
        self.constraint_index = constraint_index
        self.constraint_name = constraint_name
        self.row = row
        self.region = region
        self.cell_values = cell_values

    def __str__(self):
        values = ", ".join(f"{query} = {value}" for query, value in self.cell_values)
        return (
            f"게이트 '{self.gate}'의 제약 {self.constraint_index}"
            f"{' (' + self.constraint_name + ')' if self.constraint_name else ''}"
            f"가 행 {self.row} (영역 {self.region!r})에서 만족되지 않음: {values}"
        )


class CellNotAssigned(VerifyFailure):

    def __init__(self, gate, region, column, row):
        self.gate = gate
        self.region = region
        self.column = column
        self.row = row

    def __str__(self):
        return (
            f"게이트 '{self.gate}'가 참조하는 {self.column!r}@{self.row} 셀이 "
            f"영역 {self.region!r}에서 할당되지 않음"
        )


class PermutationNotSatisfied(VerifyFailure):

    def __init__(self, column, row):
        self.column = column
        self.row = row

    def __str__(self):
        return f"{self.column!r}@{self.row} 셀의 복사 제약이 만족되지 않음"


class InstanceRowReused(VerifyFailure):

    def __init__(self, column, row, cells):
        self.column = column
        self.row = row
        self.cells = cells

    def __str__(self):
        return f"instance {self.column!r}의 행 {self.row}에 {len(self.cells)}개의 셀이 바인딩됨"


class InstanceRowUnbound(VerifyFailure):

    def __init__(self, column, row):
        self.column = column
        self.row = row

    def __str__(self):
        return f"instance {self.column!r}의 행 {self.row}에 바인딩된 셀이 없음"


class InstanceRowMissing(VerifyFailure):

    def __init__(self, column, row):
        self.column = column
        self.row = row

    def __str__(self):
        return f"instance {self.column!r}의 행 {self.row}에 대한 공개 입력이 없음"
