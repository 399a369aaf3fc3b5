"""
Plonkish 기반 모듈: 유한체(Finite Field)
==========================================

회로 전체에서 사용되는 기본 산술 단위를 정의한다.

**유한체 Fp**:
  Pasta 곡선(Pallas)의 기저체 (base field). halo2 계열 회로가 사용하는
  소수체로, 모든 셀 값과 게이트 다항식 평가가 이 체 위에서 이루어진다.
  - 위수(order) p = 2^254 + 45560315531419706090280762371685220353
  - p - 1 = 2^32 × m (m은 홀수)

  산술 연산(+, -, ×, /, **)은 py_ecc의 FQ 클래스가 제공한다.
  이 계층은 체 연산을 직접 구현하지 않는다.

사용 예시:
    >>> from circuitlab.plonkish.field import Fp
    >>> x = Fp(3)
    >>> x * x * x + x + Fp(5)   # Fp(35)
"""

from py_ecc.fields import bn128_FQ as FQ


# Pallas 기저체 위수
PALLAS_MODULUS = 0x40000000000000000000000000000000224698fc094cf91b992d30ed00000001


class Fp(FQ):
    """Pallas 기저체 위의 유한체 원소.

    py_ecc의 FQ를 상속하여 모듈러 산술을 그대로 사용한다.
    생성 이후 값은 변하지 않는다 (모든 연산은 새 원소를 반환).

    예시:
        >>> Fp(3) * Fp(9)       # Fp(27)
        >>> Fp(0) - Fp(1)       # Fp(p - 1)
        >>> Fp(1) / Fp(3)       # 3의 모듈러 역원
    """
    field_modulus = PALLAS_MODULUS


# 필드 크기
P = PALLAS_MODULUS


def to_field(value):
    """정수 또는 Fp를 Fp로 변환한다.

    Args:
        value: int 또는 FQ 원소

    Returns:
        Fp

    Raises:
        TypeError: 변환할 수 없는 타입일 때
    """
    if isinstance(value, Fp):
        return value
    if isinstance(value, FQ):
        return Fp(int(value))
    if isinstance(value, int) and not isinstance(value, bool):
        return Fp(value)
    raise TypeError(f"Fp로 변환할 수 없는 타입입니다: {type(value).__name__}")
