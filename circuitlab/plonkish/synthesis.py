"""
회로 합성 엔진 (Synthesis Engine)
===================================

상태 기계:  UNCONFIGURED ──configure()──▶ CONFIGURED ──synthesize()──▶ SYNTHESIZED
                                               ▲                            │
                                               └──────── synthesize() ──────┘

  - configure(): 회로 타입의 configure를 정확히 한 번 실행하고 결과를 캐시한다.
    제약 시스템은 동결되어 이후 읽기 전용이다.
  - synthesize(circuit, assignment): 캐시된 구성으로 영역을 순서대로 할당한다.
    같은 엔진으로 여러 번 (키 생성용 Unknown 위트니스, 증명용 Known 위트니스)
    합성할 수 있고, 배치 구조는 항상 같다.

엔진 자체의 실패는 구조적 오류(구성 전 합성, 다른 타입의 회로,
할당 안 된 열 참조 등)뿐이며 합성을 중단시킨다.
제약 만족 여부는 백엔드가 검사한다.
"""

import logging

from circuitlab.plonkish.constraint_system import ConstraintSystem
from circuitlab.plonkish.errors import ConfigurationError
from circuitlab.plonkish.layouter import SimpleFloorPlanner


logger = logging.getLogger(__name__)


UNCONFIGURED = "unconfigured"
CONFIGURED = "configured"
SYNTHESIZED = "synthesized"


class SynthesisEngine:
    """회로 타입 하나의 구성을 캐시하고 합성을 진행한다.

    사용 예시:
        >>> engine = SynthesisEngine(CubicCircuit)
        >>> cs, config = engine.configure()
        >>> engine.synthesize(circuit, MockProver(4, cs, [[35]]))
    """

    def __init__(self, circuit_type):
        self.circuit_type = circuit_type
        self.state = UNCONFIGURED
        self._cs = None
        self._config = None
        self.synthesis_count = 0

    def configure(self):
        """구성을 만들고 (처음 한 번) (ConstraintSystem, config)를 돌려준다."""
        if self.state == UNCONFIGURED:
            cs = ConstraintSystem()
            config = self.circuit_type.configure(cs)
            cs.freeze()
            self._cs = cs
            self._config = config
            self.state = CONFIGURED
            logger.info("%s configured", self.circuit_type.__name__)
        return self._cs, self._config

    @property
    def constraint_system(self):
        return self._cs

    @property
    def config(self):
        return self._config

    def synthesize(self, circuit, assignment):
        """circuit을 assignment 백엔드 위에서 합성한다.

        Returns:
            SingleChipLayouter: 영역 시작 행 테이블을 가진 레이아우터

        Raises:
            ConfigurationError: 구성 전이거나, 회로 타입/제약 시스템이 다를 때
        """
        if self.state == UNCONFIGURED:
            raise ConfigurationError("configure() 전에는 합성할 수 없습니다")
        if not isinstance(circuit, self.circuit_type):
            raise ConfigurationError(
                f"{self.circuit_type.__name__} 엔진으로 {type(circuit).__name__}를 합성할 수 없습니다"
            )
        if assignment.cs is not self._cs:
            raise ConfigurationError("다른 제약 시스템으로 만든 백엔드입니다")

        layouter = SimpleFloorPlanner.synthesize(self._cs, assignment, circuit, self._config)
        self.state = SYNTHESIZED
        self.synthesis_count += 1
        logger.info(
            "%r synthesized: %d regions, %d copy constraints",
            circuit, len(layouter.regions), len(assignment.permutation.copies),
        )
        return layouter
