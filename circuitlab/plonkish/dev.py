"""
MockProver — 로컬 시험 평가 백엔드
====================================

실제 증명(다항식 커밋먼트, FFT, 트랜스크립트) 없이
합성된 회로가 모든 제약을 만족하는지 직접 확인한다.

**검사 항목**:
  1. 게이트: 사용 가능한 모든 행에서 게이트 다항식을 평가
     - 셀렉터가 꺼진 행은 자동으로 0
     - 켜진 행에서 ≠ 0 이면 ConstraintNotSatisfied
     - 켜진 행이 할당되지 않은 셀을 참조하면 CellNotAssigned
  2. 복사 제약: 모든 셀 c에 대해 value(c) == value(σ(c))
     - 다르면 PermutationNotSatisfied
  3. 공개 입력: 바인딩된 행 집합 == 제공된 행 집합
     - InstanceRowReused / InstanceRowUnbound / InstanceRowMissing

  할당되지 않은 셀과 Unknown 셀은 평가 시 0으로 취급한다.

사용 예시:
    >>> circuit = CubicCircuit(x=Value.known(Fp(3)), constant=Fp(5))
    >>> MockProver.run(4, circuit, [[35]]).verify()   # []
    >>> MockProver.run(4, circuit, [[34]]).verify()   # [PermutationNotSatisfied(...), ...]
"""

import logging

from circuitlab.plonkish.assignment import Assignment
from circuitlab.plonkish.constraint_system import Column, ColumnType
from circuitlab.plonkish.failure import (
    CellNotAssigned,
    ConstraintNotSatisfied,
    PermutationNotSatisfied,
)
from circuitlab.plonkish.field import Fp
from circuitlab.plonkish.public_inputs import check_bindings, normalize_instance
from circuitlab.plonkish.synthesis import SynthesisEngine
from circuitlab.plonkish.value import Value


logger = logging.getLogger(__name__)


class _RowResolver:
    """한 행을 기준으로 Expression의 쿼리를 셀 값으로 바꾼다."""

    def __init__(self, prover, row):
        self.prover = prover
        self.row = row

    def _rotated(self, rotation):
        return (self.row + rotation.value) % self.prover.n

    def selector(self, selector):
        return Fp(1) if self.prover.selectors[selector.index][self.row] else Fp(0)

    def fixed(self, column, rotation):
        return self.prover.cell_value(column, self._rotated(rotation))

    def advice(self, column, rotation):
        return self.prover.cell_value(column, self._rotated(rotation))

    def instance(self, column, rotation):
        return self.prover.cell_value(column, self._rotated(rotation))


class MockProver(Assignment):
    """위트니스 값을 모두 기록하는 백엔드.

    속성:
        advice: advice[i][row] = Value 또는 None (미할당)
        instance: instance[i][row] = Fp (n 길이로 패딩)
        supplied_lengths: 열별 실제 제공된 공개 입력 수
    """

    def __init__(self, k, cs, instance):
        super().__init__(k, cs)
        self.advice = [[None] * self.n for _ in range(cs.num_advice_columns)]
        self.instance, self.supplied_lengths = normalize_instance(
            cs.num_instance_columns, instance, self.n, self.usable_rows
        )

    @classmethod
    def run(cls, k, circuit, instance):
        """circuit을 구성/합성한 MockProver를 돌려준다.

        Args:
            k: 도메인 크기 지수 (n = 2^k)
            circuit: Circuit 인스턴스
            instance: instance 열별 공개 입력 리스트

        Raises:
            PlonkError: 구조적 오류 (행 부족, 등식 미허용 열 등)
        """
        engine = SynthesisEngine(type(circuit))
        cs, _ = engine.configure()
        prover = cls(k, cs, instance)
        engine.synthesize(circuit, prover)
        return prover

    # ─── 백엔드 구현 ───

    def _store_advice(self, column, row, value):
        self.advice[column.index][row] = value

    def query_instance(self, column, row):
        self._check_row(row)
        return Value.known(self.instance[column.index][row])

    # ─── 셀 값 ───

    def is_assigned(self, column, row):
        if column.column_type is ColumnType.ADVICE:
            return self.advice[column.index][row] is not None
        if column.column_type is ColumnType.FIXED:
            return self.fixed[column.index][row] is not None
        return True

    def cell_value(self, column, row):
        """(column, row)의 체 값. 미할당/Unknown은 0."""
        if column.column_type is ColumnType.ADVICE:
            value = self.advice[column.index][row]
            if value is None or value.is_unknown():
                return Fp(0)
            return value.unwrap()
        if column.column_type is ColumnType.FIXED:
            value = self.fixed[column.index][row]
            return Fp(0) if value is None else value
        return self.instance[column.index][row]

    def advice_values(self, column):
        """advice 열의 Value 리스트 (사용 가능한 행까지, 미할당은 None)."""
        return self.advice[column.index][:self.usable_rows]

    # ─── 검증 ───

    def _verify_gates(self):
        failures = []
        for gate in self.cs.gates:
            for row in range(self.usable_rows):
                resolver = _RowResolver(self, row)
                enabled = any(self.selectors[s.index][row] for s in gate.queried_selectors)
                if enabled:
                    for column, rotation in gate.queried_cells:
                        if column.column_type is ColumnType.INSTANCE:
                            continue
                        target = (row + rotation.value) % self.n
                        if not self.is_assigned(column, target):
                            failures.append(CellNotAssigned(
                                gate.name, self.region_at(column, row), column, target
                            ))
                for index, poly in enumerate(gate.polys):
                    if poly.evaluate(resolver) == Fp(0):
                        continue
                    cell_values = [
                        (f"{column!r}@{rotation.value}",
                         int(self.cell_value(column, (row + rotation.value) % self.n)))
                        for column, rotation in gate.queried_cells
                    ]
                    failures.append(ConstraintNotSatisfied(
                        gate.name, index, gate.constraint_names[index], row,
                        self.region_at(None, row), cell_values,
                    ))
        return failures

    def _verify_permutation(self):
        failures = []
        for (column, row), (target_column, target_row) in self.permutation.mapped_cells():
            if self.cell_value(column, row) != self.cell_value(target_column, target_row):
                failures.append(PermutationNotSatisfied(column, row))
        return failures

    def _verify_instance(self):
        columns = [
            Column(i, ColumnType.INSTANCE) for i in range(self.cs.num_instance_columns)
        ]
        return check_bindings(self.instance_binder.bindings, columns, self.supplied_lengths)

    def verify(self):
        """모든 제약을 검사한다.

        Returns:
            list[VerifyFailure]: 비어 있으면 만족
        """
        failures = self._verify_gates() + self._verify_permutation() + self._verify_instance()
        if failures:
            logger.warning("mock prover found %d failures", len(failures))
            for failure in failures:
                logger.warning("  %s", failure)
        else:
            logger.info("mock prover: all constraints satisfied")
        return failures

    def assert_satisfied(self):
        """제약 위반이 있으면 AssertionError를 발생시킨다."""
        failures = self.verify()
        if failures:
            raise AssertionError(
                "회로가 만족되지 않습니다:\n" + "\n".join(f"  - {f}" for f in failures)
            )
