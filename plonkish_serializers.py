"""
Plonkish 데이터 직렬화 헬퍼
============================

TinyDB에 저장 가능한 형태(문자열/리스트/딕셔너리)로 회로 구성과
합성 결과(MockProver)를 변환한다.
"""

from circuitlab.plonkish.constraint_system import Column, ColumnType
from circuitlab.plonkish.field import Fp


# ─── Fp ───

def serialize_fp(val):
    """Fp → str(int)"""
    return str(int(val))


def deserialize_fp(s):
    """str(int) → Fp"""
    return Fp(int(s))


def serialize_fp_list(vals):
    return [serialize_fp(v) for v in vals]


def deserialize_fp_list(data):
    return [deserialize_fp(s) for s in data]


def fp_short(val):
    """Fp → 축약 문자열 (UI 표시용)"""
    if val is None:
        return "None"
    s = str(int(val))
    if len(s) <= 10:
        return s
    return s[:4] + "..." + s[-4:]


# ─── Value ───

def serialize_value(value):
    """Value → str(int) / "unknown" / None (미할당)"""
    if value is None:
        return None
    if value.is_unknown():
        return "unknown"
    return serialize_fp(value.unwrap())


# ─── Column ───

def serialize_column(column):
    """Column → "advice[0]" """
    return f"{column.column_type.value}[{column.index}]"


def deserialize_column(s):
    """"advice[0]" → Column"""
    kind, index = s.rstrip("]").split("[")
    return Column(int(index), ColumnType(kind))


# ─── VerifyFailure ───

def serialize_failure(failure):
    """VerifyFailure → {"kind": ..., "message": ...}"""
    return {"kind": type(failure).__name__, "message": str(failure)}


# ─── 표시용 테이블 ───

def gates_table(cs):
    """게이트 목록 → [{"name", "constraints": [{"name", "poly", "degree"}]}]"""
    table = []
    for gate in cs.gates:
        table.append({
            "name": gate.name,
            "constraints": [
                {"name": name, "poly": repr(poly), "degree": poly.degree()}
                for name, poly in zip(gate.constraint_names, gate.polys)
            ],
        })
    return table


def layout_table(prover):
    """행 × 열 할당 테이블 (사용 가능한 행까지)."""
    cs = prover.cs
    table = []
    for row in range(prover.usable_rows):
        entry = {"row": row}
        for i in range(cs.num_advice_columns):
            entry[f"advice[{i}]"] = serialize_value(prover.advice[i][row])
        for i in range(cs.num_fixed_columns):
            v = prover.fixed[i][row]
            entry[f"fixed[{i}]"] = None if v is None else serialize_fp(v)
        for i in range(cs.num_instance_columns):
            entry[f"instance[{i}]"] = serialize_fp(prover.instance[i][row])
        for i in range(cs.num_selectors):
            entry[f"selector[{i}]"] = int(prover.selectors[i][row])
        entry["region"] = prover.region_at(None, row)
        table.append(entry)
    return table


def regions_table(prover):
    """영역 목록 → [{"index", "name", "rows", "columns", "selectors"}]"""
    table = []
    for region in prover.regions:
        table.append({
            "index": region.index,
            "name": region.path,
            "rows": sorted(region.rows),
            "columns": [
                serialize_column(c) for c in region.columns
            ],
            "selectors": {
                str(s.index): rows for s, rows in region.enabled_selectors.items()
            },
        })
    return table


def copy_table(prover):
    """복사 제약 순환 → [["advice[0]@0", "advice[0]@2", ...], ...]"""
    return [
        [f"{serialize_column(column)}@{row}" for column, row in cycle]
        for cycle in prover.permutation.cycles()
    ]


def serialize_synthesis(prover, x, constant):
    """MockProver → DB 저장용 딕셔너리."""
    return {
        "k": prover.k,
        "n": prover.n,
        "usable_rows": prover.usable_rows,
        "x": None if x is None else serialize_fp(x),
        "constant": serialize_fp(constant),
        "public_inputs": [
            serialize_fp_list(column[:length])
            for column, length in zip(prover.instance, prover.supplied_lengths)
        ],
    }
