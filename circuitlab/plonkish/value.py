"""
지연 위트니스 값 (Value)
=========================

셀에 들어갈 값을 "알려짐(Known)" 또는 "모름(Unknown)"으로 감싼다.

**왜 필요한가?**
  같은 회로 합성 코드가 두 상황에서 실행된다:
  - 키 생성(keygen): 위트니스가 없다 → 모든 값이 Unknown
  - 증명(proving): 위트니스가 있다 → 모든 값이 Known

  Unknown 위의 연산은 체 연산을 전혀 평가하지 않고 Unknown을 전파한다.
  따라서 회로 코드는 위트니스 유무를 분기하지 않아도 된다.

  | 연산               | Known(a), Known(b) | Unknown 포함 |
  |--------------------|--------------------|--------------|
  | a.map(f)           | Known(f(a))        | Unknown      |
  | a.and_then(g)      | g(a)               | Unknown      |
  | a.zip(b)           | Known((a, b))      | Unknown      |
  | a + b, a * b       | Known(a + b) ...   | Unknown      |

사용 예시:
    >>> x = Value.known(Fp(3))
    >>> x.and_then(lambda a: x.map(lambda b: a * b))   # Known(Fp(9))
    >>> Value.unknown().map(lambda a: a * a)           # Unknown (람다 미호출)
"""

from circuitlab.plonkish.field import Fp


_MISSING = object()


class Value:
    """Known/Unknown 두 가지 상태를 갖는 불변 값 컨테이너.

    직접 생성하지 말고 Value.known() / Value.unknown()을 사용한다.
    """

    __slots__ = ("_inner",)

    def __init__(self, inner=_MISSING):
        object.__setattr__(self, "_inner", inner)

    def __setattr__(self, name, value):
        raise AttributeError("Value는 불변 객체입니다")

    @classmethod
    def known(cls, inner):
        """알려진 값을 감싼다."""
        return cls(inner)

    @classmethod
    def unknown(cls):
        """알 수 없는 값 (키 생성 시의 위트니스)."""
        return cls()

    def is_known(self):
        return self._inner is not _MISSING

    def is_unknown(self):
        return self._inner is _MISSING

    def map(self, f):
        """단항 변환. Unknown이면 f를 호출하지 않는다."""
        if self.is_unknown():
            return self
        return Value.known(f(self._inner))

    def and_then(self, f):
        """f가 Value를 반환하는 결합 연산. Unknown이면 f를 호출하지 않는다."""
        if self.is_unknown():
            return self
        result = f(self._inner)
        if not isinstance(result, Value):
            raise TypeError("and_then의 함수는 Value를 반환해야 합니다")
        return result

    def zip(self, other):
        """두 값을 (a, b) 쌍으로 묶는다. 하나라도 Unknown이면 Unknown."""
        if self.is_unknown() or other.is_unknown():
            return Value.unknown()
        return Value.known((self._inner, other._inner))

    def assert_if_known(self, predicate):
        """Known일 때만 predicate를 검사한다 (Unknown이면 통과)."""
        if self.is_known():
            assert predicate(self._inner)

    def error_if_known_and(self, predicate, error=None):
        """Known이고 predicate가 참이면 오류를 발생시킨다.

        Args:
            predicate: 내부 값에 대한 조건 함수
            error: 발생시킬 예외 (기본값: ValueError)
        """
        if self.is_known() and predicate(self._inner):
            raise error if error is not None else ValueError("값이 조건을 위반합니다")

    def unwrap(self):
        """내부 값을 꺼낸다.

        Raises:
            ValueError: Unknown일 때
        """
        if self.is_unknown():
            raise ValueError("Unknown 값은 꺼낼 수 없습니다")
        return self._inner

    # ─── 산술 연산 (Unknown 전파) ───

    def _combine(self, other, op):
        if not isinstance(other, Value):
            other = Value.known(other)
        return self.zip(other).map(lambda pair: op(pair[0], pair[1]))

    def __add__(self, other):
        return self._combine(other, lambda a, b: a + b)

    def __sub__(self, other):
        return self._combine(other, lambda a, b: a - b)

    def __mul__(self, other):
        return self._combine(other, lambda a, b: a * b)

    def __radd__(self, other):
        return Value.known(other)._combine(self, lambda a, b: a + b)

    def __rmul__(self, other):
        return Value.known(other)._combine(self, lambda a, b: a * b)

    def __neg__(self):
        return self.map(lambda a: -a)

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        if self.is_unknown() or other.is_unknown():
            return self.is_unknown() and other.is_unknown()
        return self._inner == other._inner

    __hash__ = None

    def __repr__(self):
        if self.is_unknown():
            return "Value(Unknown)"
        inner = self._inner
        if isinstance(inner, Fp):
            return f"Value(Known({int(inner)}))"
        return f"Value(Known({inner!r}))"
