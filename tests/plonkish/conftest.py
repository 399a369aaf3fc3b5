import sys
import os
import pytest

# 프로젝트 루트를 sys.path에 추가 (plonkish_routes 등 루트 모듈용)
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from circuitlab.plonkish.circuit import CubicCircuit
from circuitlab.plonkish.constraint_system import Column, ColumnType
from circuitlab.plonkish.dev import MockProver
from circuitlab.plonkish.field import Fp
from circuitlab.plonkish.value import Value


# ── 테스트 상수 ──
TEST_K = 4
TEST_X = 3
TEST_CONSTANT = 5
EXPECTED_RESULT = 35


@pytest.fixture(scope="module")
def cubic_prover():
    """x = 3, c = 5, 공개 입력 [35]로 합성한 MockProver."""
    circuit = CubicCircuit(x=Value.known(Fp(TEST_X)), constant=Fp(TEST_CONSTANT))
    return MockProver.run(TEST_K, circuit, [[EXPECTED_RESULT]])


@pytest.fixture
def columns():
    """예제 회로의 (advice0, advice1, instance, fixed) 열."""
    return (
        Column(0, ColumnType.ADVICE),
        Column(1, ColumnType.ADVICE),
        Column(0, ColumnType.INSTANCE),
        Column(0, ColumnType.FIXED),
    )
