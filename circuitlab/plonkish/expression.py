"""
게이트 다항식 표현식 (Expression)
==================================

게이트 제약은 "현재 행" 기준 상대 위치(rotation)의 셀 값에 대한 다항식이다.

  s_mul · (lhs · rhs - out)
    - s_mul: 셀렉터 (행마다 0 또는 1)
    - lhs:  advice[0] @ Rotation.cur()
    - rhs:  advice[1] @ Rotation.cur()
    - out:  advice[0] @ Rotation.next()

표현식은 트리(AST)로 저장되고, 백엔드가 각 행에서 resolver를 통해 평가한다.

**노드 종류**:
  | 노드              | 의미                        | 차수        |
  |-------------------|-----------------------------|-------------|
  | Constant          | 체 상수                     | 0           |
  | SelectorExpression| 셀렉터 값                   | 1           |
  | FixedQuery        | fixed 열 쿼리               | 1           |
  | AdviceQuery       | advice 열 쿼리              | 1           |
  | InstanceQuery     | instance 열 쿼리            | 1           |
  | Negated           | -e                          | deg(e)      |
  | Sum               | a + b                       | max         |
  | Product           | a · b                       | 합          |
  | Scaled            | e · c (c는 상수)            | deg(e)      |

resolver 인터페이스:
    resolver.selector(selector) -> Fp
    resolver.fixed(column, rotation) -> Fp
    resolver.advice(column, rotation) -> Fp
    resolver.instance(column, rotation) -> Fp
"""

from circuitlab.plonkish.field import to_field


class Expression:
    """게이트 다항식 노드의 기반 클래스.

    +, -, *, 단항 - 연산자로 트리를 만든다.
    int / Fp 피연산자는 Constant로 승격된다.
    """

    def evaluate(self, resolver):
        raise NotImplementedError

    def degree(self):
        raise NotImplementedError

    def children(self):
        return ()

    def walk(self):
        """전위 순회로 모든 노드를 돌려준다."""
        yield self
        for child in self.children():
            yield from child.walk()

    def queried_cells(self):
        """참조하는 (column, rotation) 쌍 (중복 제거, 순서 유지)."""
        cells = []
        for node in self.walk():
            if isinstance(node, _Query):
                key = (node.column, node.rotation)
                if key not in cells:
                    cells.append(key)
        return cells

    def queried_selectors(self):
        selectors = []
        for node in self.walk():
            if isinstance(node, SelectorExpression) and node.selector not in selectors:
                selectors.append(node.selector)
        return selectors

    # ─── 연산자 ───

    def __add__(self, other):
        return Sum(self, _lift(other))

    def __radd__(self, other):
        return Sum(_lift(other), self)

    def __sub__(self, other):
        return Sum(self, Negated(_lift(other)))

    def __rsub__(self, other):
        return Sum(_lift(other), Negated(self))

    def __mul__(self, other):
        if isinstance(other, Expression):
            return Product(self, other)
        return Scaled(self, to_field(other))

    def __rmul__(self, other):
        return Scaled(self, to_field(other))

    def __neg__(self):
        return Negated(self)


def _lift(value):
    if isinstance(value, Expression):
        return value
    return Constant(value)


class Constant(Expression):

    def __init__(self, value):
        self.value = to_field(value)

    def evaluate(self, resolver):
        return self.value

    def degree(self):
        return 0

    def __repr__(self):
        return f"Constant({int(self.value)})"


class SelectorExpression(Expression):

    def __init__(self, selector):
        self.selector = selector

    def evaluate(self, resolver):
        return resolver.selector(self.selector)

    def degree(self):
        return 1

    def __repr__(self):
        return f"Selector({self.selector.index})"


class _Query(Expression):
    """열 쿼리 공통 부분: (column, rotation)."""

    kind = None

    def __init__(self, column, rotation):
        self.column = column
        self.rotation = rotation

    def degree(self):
        return 1

    def __repr__(self):
        return f"{self.kind}[{self.column.index}]@{self.rotation.value}"


class FixedQuery(_Query):
    kind = "fixed"

    def evaluate(self, resolver):
        return resolver.fixed(self.column, self.rotation)


class AdviceQuery(_Query):
    kind = "advice"

    def evaluate(self, resolver):
        return resolver.advice(self.column, self.rotation)


class InstanceQuery(_Query):
    kind = "instance"

    def evaluate(self, resolver):
        return resolver.instance(self.column, self.rotation)


class Negated(Expression):

    def __init__(self, inner):
        self.inner = inner

    def evaluate(self, resolver):
        return -self.inner.evaluate(resolver)

    def degree(self):
        return self.inner.degree()

    def children(self):
        return (self.inner,)

    def __repr__(self):
        return f"-{self.inner!r}"


class Sum(Expression):

    def __init__(self, left, right):
        self.left = left
        self.right = right

    def evaluate(self, resolver):
        return self.left.evaluate(resolver) + self.right.evaluate(resolver)

    def degree(self):
        return max(self.left.degree(), self.right.degree())

    def children(self):
        return (self.left, self.right)

    def __repr__(self):
        if isinstance(self.right, Negated):
            return f"({self.left!r} - {self.right.inner!r})"
        return f"({self.left!r} + {self.right!r})"


class Product(Expression):

    def __init__(self, left, right):
        self.left = left
        self.right = right

    def evaluate(self, resolver):
        return self.left.evaluate(resolver) * self.right.evaluate(resolver)

    def degree(self):
        return self.left.degree() + self.right.degree()

    def children(self):
        return (self.left, self.right)

    def __repr__(self):
        return f"{self.left!r} * {self.right!r}"


class Scaled(Expression):

    def __init__(self, inner, factor):
        self.inner = inner
        self.factor = factor

    def evaluate(self, resolver):
        return self.inner.evaluate(resolver) * self.factor

    def degree(self):
        return self.inner.degree()

    def children(self):
        return (self.inner,)

    def __repr__(self):
        return f"{self.inner!r} * {int(self.factor)}"

