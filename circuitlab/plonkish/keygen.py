"""
키 생성용 구조 기록 (Keygen Assembly)
======================================

위트니스 없이 회로를 합성해서 "회로 구조"만 기록한다.

  기록하는 것:  영역 배치, 셀렉터 행렬, fixed 열 값, 복사 제약 순열,
                instance 바인딩
  버리는 것:    advice 값 (키 생성 시에는 모두 Unknown)

이 구조는 증명 백엔드가 증명 키/검증 키를 만드는 입력이다.
같은 회로를 위트니스와 함께 합성한 MockProver의 structure()와 같아야 한다.

사용 예시:
    >>> assembly = keygen_assembly(4, CubicCircuit(x=3, constant=5))
    >>> assembly.structure()["selectors"]   # [(2, 4), (6, 8)]
"""

import logging

from circuitlab.plonkish.assignment import Assignment
from circuitlab.plonkish.synthesis import SynthesisEngine
from circuitlab.plonkish.value import Value


logger = logging.getLogger(__name__)


class KeygenAssembly(Assignment):
    """advice 값을 버리고 구조만 기록하는 백엔드."""

    def _store_advice(self, column, row, value):
        pass

    def query_instance(self, column, row):
        self._check_row(row)
        return Value.unknown()


def keygen_assembly(k, circuit, engine=None):
    """circuit.without_witnesses()를 합성한 KeygenAssembly를 돌려준다.

    Args:
        k: 도메인 크기 지수
        circuit: Circuit 인스턴스 (위트니스는 무시된다)
        engine: 재사용할 SynthesisEngine (없으면 새로 만든다)
    """
    if engine is None:
        engine = SynthesisEngine(type(circuit))
    cs, _ = engine.configure()
    assembly = KeygenAssembly(k, cs)
    engine.synthesize(circuit.without_witnesses(), assembly)
    logger.info("keygen assembly built for k = %d", k)
    return assembly
