"""
Plonkish 기본 설정값
====================

예제 회로(x³ + x + 5 = 35)와 도메인 크기의 기본값.
"""

# 도메인 크기 2^k. 예제 회로는 10행을 쓰므로 k = 4 (사용 가능 행 10)로 충분하다.
DEFAULT_K = 4

# 예제 회로 상수
DEFAULT_CONSTANT = 5

# 블라인딩 행 수의 하한
MIN_BLINDING_FACTORS = 3

# 웹 화면에서 허용하는 도메인 크기 상한 (2^16 행)
MAX_K = 16
