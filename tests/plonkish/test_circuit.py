"""
Circuit / MockProver / Keygen tests
====================================

x³ + x + c 회로를 합성하고 MockProver로 제약 만족 여부를 확인한다.

테스트 범위:
  - 정상 합성: x = 3, c = 5 → 35 (여러 x 값, 경계값 P-1 포함)
  - 잘못된 공개 입력: 복사 제약 위반
  - Unknown 위트니스 (키 생성 모드)
  - 공개 입력 행 재사용 / 바인딩 누락 / 미제공
  - 셀 조작: ConstraintNotSatisfied, CellNotAssigned
  - 구조적 오류: 행 부족, 상수 열 없음, 등식 미허용 열
  - SynthesisEngine 상태 기계
  - keygen 구조 == MockProver 구조
"""

import pytest

from circuitlab.plonkish.chip import ArithmeticChip
from circuitlab.plonkish.circuit import Circuit, CubicCircuit, expected_output
from circuitlab.plonkish.constraint_system import ConstraintSystem
from circuitlab.plonkish.dev import MockProver
from circuitlab.plonkish.errors import (
    ColumnNotInPermutation,
    ConfigurationError,
    NotEnoughColumnsForConstants,
    NotEnoughRowsAvailable,
)
from circuitlab.plonkish.failure import (
    CellNotAssigned,
    ConstraintNotSatisfied,
    InstanceRowMissing,
    InstanceRowReused,
    InstanceRowUnbound,
    PermutationNotSatisfied,
)
from circuitlab.plonkish.field import Fp, P
from circuitlab.plonkish.keygen import KeygenAssembly, keygen_assembly
from circuitlab.plonkish.layouter import SingleChipLayouter
from circuitlab.plonkish.synthesis import (
    CONFIGURED,
    SYNTHESIZED,
    UNCONFIGURED,
    SynthesisEngine,
)
from circuitlab.plonkish.value import Value


TEST_K = 4
TEST_X = 3
TEST_CONSTANT = 5
EXPECTED_RESULT = 35


# ─────────────────────────────────────────────────────────────────────
# 테스트용 회로
# ─────────────────────────────────────────────────────────────────────

class _DoubleExposeCircuit(CubicCircuit):
    """x와 상수를 같은 instance 행에 공개한다."""

    def synthesize(self, config, layouter):
        chip = ArithmeticChip(config)
        x = chip.load_private(layouter.namespace("load x"), self.x)
        constant = chip.load_constant(layouter.namespace("load constant"), self.constant)
        chip.expose_public(layouter.namespace("expose x"), x, 0)
        chip.expose_public(layouter.namespace("expose c"), constant, 0)


class _ExposeAtRowCircuit(CubicCircuit):
    """x를 지정한 instance 행에 공개한다."""

    def __init__(self, x, constant, row):
        super().__init__(x, constant)
        self.row = row

    def without_witnesses(self):
        return _ExposeAtRowCircuit(Value.unknown(), self.constant, self.row)

    def synthesize(self, config, layouter):
        chip = ArithmeticChip(config)
        x = chip.load_private(layouter.namespace("load x"), self.x)
        chip.expose_public(layouter.namespace("expose x"), x, self.row)


class _NoConstantColumnCircuit(Circuit):
    """enable_constant 없이 상수를 로드한다."""

    def without_witnesses(self):
        return self

    @classmethod
    def configure(cls, meta):
        advice = meta.advice_column()
        meta.enable_equality(advice)
        return advice

    def synthesize(self, config, layouter):
        layouter.assign_region(
            "constant",
            lambda region: region.assign_advice_from_constant("c", config, 0, 5),
        )


class _NoInstanceEqualityCircuit(Circuit):
    """instance 열에 enable_equality를 호출하지 않고 공개한다."""

    def without_witnesses(self):
        return self

    @classmethod
    def configure(cls, meta):
        advice = meta.advice_column()
        instance = meta.instance_column()
        meta.enable_equality(advice)
        return advice, instance

    def synthesize(self, config, layouter):
        advice, instance = config
        cell = layouter.assign_region(
            "value", lambda region: region.assign_advice("v", advice, 0, 7)
        )
        layouter.constrain_instance(cell.cell, instance, 0)


class _InstanceInputCircuit(CubicCircuit):
    """instance 행 0의 값을 advice 셀로 가져와 제곱한다."""

    def synthesize(self, config, layouter):
        chip = ArithmeticChip(config)
        x = layouter.namespace("load public").assign_region(
            "load instance",
            lambda region: region.assign_advice_from_instance(
                "public x", config.instance, 0, config.advice[0], 0
            ),
        )
        return chip.mul(layouter.namespace("x2"), x, x)


def _run(x, constant=TEST_CONSTANT, instance=None, k=TEST_K):
    circuit = CubicCircuit(x, constant)
    if instance is None:
        instance = [[int(expected_output(x, constant))]]
    return MockProver.run(k, circuit, instance)


# ─────────────────────────────────────────────────────────────────────
# 정상 합성
# ─────────────────────────────────────────────────────────────────────

class TestCubicSatisfied:
    def test_example(self, cubic_prover):
        """x = 3, c = 5, 공개 입력 [35] → 위반 없음."""
        assert cubic_prover.verify() == []
        cubic_prover.assert_satisfied()

    def test_expected_output(self):
        assert expected_output(TEST_X, TEST_CONSTANT) == Fp(EXPECTED_RESULT)
        assert expected_output(0, 0) == Fp(0)

    @pytest.mark.parametrize("x", [0, 1, 2, 7, 100, 12345678901234567890])
    def test_various_x(self, x):
        assert _run(x).verify() == []

    def test_field_wraparound(self):
        """x = P - 1: (-1)³ + (-1) + 5 = 3."""
        assert expected_output(P - 1, 5) == Fp(3)
        assert _run(P - 1, instance=[[3]]).verify() == []

    def test_constant_zero(self):
        assert _run(3, constant=0, instance=[[30]]).verify() == []

    def test_larger_domain(self):
        prover = _run(TEST_X, k=5)
        assert prover.usable_rows == 26
        assert prover.verify() == []

    def test_query_instance(self, cubic_prover, columns):
        instance0 = columns[2]
        assert cubic_prover.query_instance(instance0, 0) == Value.known(Fp(35))
        assert cubic_prover.query_instance(instance0, 1) == Value.known(Fp(0))
        with pytest.raises(NotEnoughRowsAvailable):
            cubic_prover.query_instance(instance0, 10)

    def test_result_cell(self):
        """synthesize는 x³ + x + c 셀을 돌려준다 (advice[0] 행 9)."""
        cs = ConstraintSystem()
        config = CubicCircuit.configure(cs)
        cs.freeze()
        prover = MockProver(TEST_K, cs, [[EXPECTED_RESULT]])
        layouter = SingleChipLayouter(cs, prover)
        result = CubicCircuit(TEST_X, TEST_CONSTANT).synthesize(config, layouter)
        layouter.assign_constants()
        assert result.value == Value.known(Fp(EXPECTED_RESULT))
        assert result.cell.column == config.advice[0]
        assert layouter.global_row(result.cell) == 9


# ─────────────────────────────────────────────────────────────────────
# 위반 보고
# ─────────────────────────────────────────────────────────────────────

class TestWrongPublicInput:
    def test_wrong_output(self, columns):
        """공개 입력 [34] → instance@0과 결과 셀의 복사 제약 위반."""
        advice0, _, instance0, _ = columns
        failures = _run(TEST_X, instance=[[34]]).verify()
        assert failures == [
            PermutationNotSatisfied(instance0, 0),
            PermutationNotSatisfied(advice0, 9),
        ]

    def test_assert_satisfied_raises(self):
        with pytest.raises(AssertionError):
            _run(TEST_X, instance=[[34]]).assert_satisfied()

    def test_wrong_witness(self):
        """x = 4 로 합성하고 x = 3 의 결과를 공개."""
        failures = _run(4, instance=[[EXPECTED_RESULT]]).verify()
        assert failures
        assert all(isinstance(f, PermutationNotSatisfied) for f in failures)

    def test_failure_messages(self):
        for failure in _run(TEST_X, instance=[[34]]).verify():
            assert "복사 제약" in str(failure)


class TestInstanceBindings:
    def test_row_reused(self, columns):
        advice0, _, instance0, _ = columns
        prover = MockProver.run(TEST_K, _DoubleExposeCircuit(3, 5), [[3]])
        failures = prover.verify()
        assert InstanceRowReused(instance0, 0, [(advice0, 0), (advice0, 1)]) in failures

    def test_unbound_row(self, columns):
        instance0 = columns[2]
        failures = _run(TEST_X, instance=[[EXPECTED_RESULT, 7]]).verify()
        assert failures == [InstanceRowUnbound(instance0, 1)]

    def test_missing_row(self, columns):
        instance0 = columns[2]
        failures = _run(TEST_X, instance=[[]]).verify()
        assert InstanceRowMissing(instance0, 0) in failures

    def test_expose_at_other_row(self, columns):
        """행 2만 바인딩하고 행 0..2를 제공하면 행 0, 1은 바인딩 없음."""
        instance0 = columns[2]
        prover = MockProver.run(TEST_K, _ExposeAtRowCircuit(3, 5, 2), [[0, 0, 3]])
        assert prover.verify() == [
            InstanceRowUnbound(instance0, 0),
            InstanceRowUnbound(instance0, 1),
        ]


class TestTampering:
    def test_constraint_not_satisfied(self, columns):
        advice0, advice1, _, _ = columns
        prover = _run(TEST_X)
        prover.advice[0][3] = Value.known(Fp(10))
        failures = prover.verify()
        gate_failures = [f for f in failures if isinstance(f, ConstraintNotSatisfied)]
        assert gate_failures == [
            ConstraintNotSatisfied(
                "mul/add", 0, "mul", 2, "x2/mul",
                [
                    (f"{advice0!r}@0", 3),
                    (f"{advice1!r}@0", 3),
                    (f"{advice0!r}@1", 10),
                ],
            )
        ]
        assert "mul" in str(gate_failures[0])

    def test_cell_not_assigned(self, columns):
        advice1 = columns[1]
        prover = _run(TEST_X)
        prover.advice[1][2] = None
        failures = prover.verify()
        assert CellNotAssigned("mul/add", "x2/mul", advice1, 2) in failures

    def test_selector_off_row_ignored(self):
        """셀렉터가 꺼진 행의 값은 게이트 검사에 영향이 없다."""
        prover = _run(TEST_X)
        prover.advice[1][3] = Value.known(Fp(99))
        assert prover.verify() == []


class TestUnknownWitness:
    def test_values_unknown(self, columns):
        advice0, advice1, _, _ = columns
        prover = MockProver.run(TEST_K, CubicCircuit(None, 5), [[]])
        values = prover.advice_values(advice0)
        assert values[1] == Value.known(Fp(5))
        assert all(v.is_unknown() for i, v in enumerate(values) if i != 1)
        assert prover.advice_values(advice1)[8] == Value.known(Fp(5))
        assert prover.advice_values(advice1)[2].is_unknown()

    def test_without_witnesses(self):
        circuit = CubicCircuit(3, 5).without_witnesses()
        assert circuit.x.is_unknown()
        assert circuit.constant == Fp(5)


# ─────────────────────────────────────────────────────────────────────
# 구조적 오류
# ─────────────────────────────────────────────────────────────────────

class TestStructuralErrors:
    def test_domain_too_small(self):
        """k = 3 → 사용 가능한 행 2개, 세 번째 영역에서 중단."""
        with pytest.raises(NotEnoughRowsAvailable) as exc:
            _run(TEST_X, k=3)
        assert exc.value.k == 3

    def test_no_usable_rows(self):
        with pytest.raises(NotEnoughRowsAvailable):
            _run(TEST_X, k=2)

    @pytest.mark.parametrize("k", [0, -1])
    def test_non_positive_k(self, k):
        with pytest.raises(NotEnoughRowsAvailable) as exc:
            _run(TEST_X, k=k)
        assert exc.value.k == k

    def test_expose_past_usable_rows(self):
        with pytest.raises(NotEnoughRowsAvailable):
            MockProver.run(TEST_K, _ExposeAtRowCircuit(3, 5, 10), [[]])

    def test_no_constant_column(self):
        with pytest.raises(NotEnoughColumnsForConstants):
            MockProver.run(TEST_K, _NoConstantColumnCircuit(), [])

    def test_region_closed_after_error(self):
        """할당 패스에서 오류가 나도 영역은 닫힌다."""
        engine = SynthesisEngine(_NoConstantColumnCircuit)
        cs, _ = engine.configure()
        prover = MockProver(TEST_K, cs, [])
        with pytest.raises(NotEnoughColumnsForConstants):
            engine.synthesize(_NoConstantColumnCircuit(), prover)
        assert prover.current_region is None
        assert [r.path for r in prover.regions] == ["constant"]

    def test_instance_without_equality(self):
        with pytest.raises(ColumnNotInPermutation):
            MockProver.run(TEST_K, _NoInstanceEqualityCircuit(), [[7]])

    def test_unfrozen_constraint_system(self):
        meta = ConstraintSystem()
        CubicCircuit.configure(meta)
        with pytest.raises(ConfigurationError):
            MockProver(TEST_K, meta, [[35]])


# ─────────────────────────────────────────────────────────────────────
# SynthesisEngine
# ─────────────────────────────────────────────────────────────────────

class TestSynthesisEngine:
    def test_state_machine(self):
        engine = SynthesisEngine(CubicCircuit)
        assert engine.state == UNCONFIGURED
        cs, _ = engine.configure()
        assert engine.state == CONFIGURED
        engine.synthesize(CubicCircuit(3, 5), MockProver(TEST_K, cs, [[35]]))
        assert engine.state == SYNTHESIZED
        engine.synthesize(CubicCircuit(4, 5), MockProver(TEST_K, cs, [[73]]))
        assert engine.state == SYNTHESIZED
        assert engine.synthesis_count == 2

    def test_configure_once(self):
        engine = SynthesisEngine(CubicCircuit)
        cs1, config1 = engine.configure()
        cs2, config2 = engine.configure()
        assert cs1 is cs2
        assert config1 is config2
        assert cs1.frozen

    def test_synthesize_before_configure(self):
        with pytest.raises(ConfigurationError):
            SynthesisEngine(CubicCircuit).synthesize(CubicCircuit(3, 5), None)

    def test_wrong_circuit_type(self):
        engine = SynthesisEngine(CubicCircuit)
        cs, _ = engine.configure()
        with pytest.raises(ConfigurationError):
            engine.synthesize(_NoConstantColumnCircuit(), MockProver(TEST_K, cs, [[35]]))

    def test_foreign_constraint_system(self):
        engine = SynthesisEngine(CubicCircuit)
        engine.configure()
        other_cs, _ = SynthesisEngine(CubicCircuit).configure()
        with pytest.raises(ConfigurationError):
            engine.synthesize(CubicCircuit(3, 5), MockProver(TEST_K, other_cs, [[35]]))

    def test_layouter_returned(self):
        engine = SynthesisEngine(CubicCircuit)
        cs, _ = engine.configure()
        layouter = engine.synthesize(CubicCircuit(3, 5), MockProver(TEST_K, cs, [[35]]))
        assert len(layouter.regions) == 6


# ─────────────────────────────────────────────────────────────────────
# Keygen
# ─────────────────────────────────────────────────────────────────────

class TestKeygen:
    def test_structure_matches_prover(self, cubic_prover):
        assembly = keygen_assembly(TEST_K, CubicCircuit(TEST_X, TEST_CONSTANT))
        assert assembly.structure() == cubic_prover.structure()

    def test_structure_independent_of_witness(self):
        a = _run(2).structure()
        b = _run(11).structure()
        assert a == b

    def test_structure_contents(self):
        structure = keygen_assembly(TEST_K, CubicCircuit(None, 5)).structure()
        assert structure["selectors"] == [(2, 4), (6, 8)]
        assert structure["fixed"] == [((0, 5),)]
        assert len(structure["regions"]) == 6
        assert len(structure["copies"]) == 6
        assert len(structure["instance_bindings"]) == 1

    def test_constant_changes_structure(self):
        a = keygen_assembly(TEST_K, CubicCircuit(None, 5)).structure()
        b = keygen_assembly(TEST_K, CubicCircuit(None, 6)).structure()
        assert a["fixed"] != b["fixed"]
        assert a["copies"] == b["copies"]

    def test_query_instance_unknown(self, columns):
        assembly = keygen_assembly(TEST_K, CubicCircuit(None, 5))
        assert isinstance(assembly, KeygenAssembly)
        assert assembly.query_instance(columns[2], 0).is_unknown()

    def test_engine_reuse(self):
        engine = SynthesisEngine(CubicCircuit)
        keygen_assembly(TEST_K, CubicCircuit(3, 5), engine)
        cs, _ = engine.configure()
        prover = MockProver(TEST_K, cs, [[35]])
        engine.synthesize(CubicCircuit(3, 5), prover)
        assert engine.synthesis_count == 2
        assert prover.verify() == []


# ─────────────────────────────────────────────────────────────────────
# instance → advice 로드
# ─────────────────────────────────────────────────────────────────────

class TestAdviceFromInstance:
    def test_value_from_instance(self):
        prover = MockProver.run(TEST_K, _InstanceInputCircuit(None, 5), [[3]])
        assert prover.advice[0][0] == Value.known(Fp(3))
        assert prover.advice[0][2] == Value.known(Fp(9))
        assert prover.verify() == []

    def test_other_instance_value(self):
        """위트니스가 아니라 공개 입력에서 값이 온다."""
        prover = MockProver.run(TEST_K, _InstanceInputCircuit(None, 5), [[4]])
        assert prover.advice[0][2] == Value.known(Fp(16))
        assert prover.verify() == []

    def test_binding_and_copy(self, columns):
        advice0, _, instance0, _ = columns
        prover = MockProver.run(TEST_K, _InstanceInputCircuit(None, 5), [[3]])
        bindings = prover.instance_binder.bindings
        assert [(b.column, b.row, b.cell) for b in bindings] == [(instance0, 0, (advice0, 0))]
        assert any(
            set(cycle) >= {(instance0, 0), (advice0, 0)}
            for cycle in prover.permutation.cycles()
        )

    def test_missing_instance_value(self, columns):
        instance0 = columns[2]
        prover = MockProver.run(TEST_K, _InstanceInputCircuit(None, 5), [[]])
        assert prover.advice[0][0] == Value.known(Fp(0))
        assert InstanceRowMissing(instance0, 0) in prover.verify()

    def test_keygen_unknown(self):
        assembly = keygen_assembly(TEST_K, _InstanceInputCircuit(None, 5))
        prover = MockProver.run(TEST_K, _InstanceInputCircuit(None, 5), [[3]])
        assert assembly.structure() == prover.structure()
