"""
Plonkish 오류 정의
==================

회로 구성/합성 단계에서 발생하는 구조적 오류.

**오류 분류**:
  - 구성 오류 (ConfigurationError, ColumnNotInPermutation,
    NotEnoughColumnsForConstants): 필요한 기능을 실제로 사용하는 시점에 감지.
  - 행 범위 오류 (NotEnoughRowsAvailable, InstanceTooLarge):
    2^k 도메인의 사용 가능한 행을 넘을 때.

제약 위반(게이트 다항식 ≠ 0, 복사 제약 불일치)은 예외가 아니다.
백엔드(MockProver.verify)가 VerifyFailure 리스트로 보고한다.
"""


class PlonkError(Exception):
    """Plonkish 계층의 모든 오류의 기반 클래스."""


class ConfigurationError(PlonkError):
    """제약 시스템을 잘못 사용했을 때 (동결 후 수정, 잘못된 열 종류 등)."""


class NotEnoughRowsAvailable(PlonkError):
    """사용 가능한 행 범위를 넘어 할당하려 할 때."""

    def __init__(self, k):
        self.k = k
        super().__init__(f"k = {k} 도메인에 사용 가능한 행이 부족합니다")


class ColumnNotInPermutation(PlonkError):
    """enable_equality가 호출되지 않은 열에 복사 제약을 걸 때."""

    def __init__(self, column):
        self.column = column
        super().__init__(f"복사 제약이 허용되지 않은 열입니다: {column!r}")


class NotEnoughColumnsForConstants(PlonkError):
    """enable_constant로 지정된 fixed 열 없이 상수를 할당할 때."""

    def __init__(self):
        super().__init__("상수를 배치할 fixed 열이 없습니다 (enable_constant 필요)")


class InstanceTooLarge(PlonkError):
    """공개 입력 값이 instance 열의 사용 가능한 행보다 많을 때."""

    def __init__(self, supplied, usable_rows):
        self.supplied = supplied
        self.usable_rows = usable_rows
        super().__init__(
            f"공개 입력 {supplied}개가 사용 가능한 행 수 {usable_rows}를 초과합니다"
        )
