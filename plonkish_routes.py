"""
Plonkish Flask Blueprint — 회로 합성/검증 엔드포인트
=====================================================

x³ + x + c 회로를 합성하고 배치 테이블과 검증 결과를 TinyDB에 저장한다.
GET은 저장된 데이터를 JSON으로 돌려주고, POST는 처리 후 GET으로 리다이렉트한다.

  GET  /plonkish/circuit              저장된 테이블 조회
  POST /plonkish/circuit/synthesize   합성 (form: x, constant, k, public-input)
  POST /plonkish/circuit/verify       공개 입력을 바꿔 재검증 (form: public-input)
  POST /plonkish/circuit/keygen       키 생성 구조와 합성 구조 비교
  POST /plonkish/circuit/clear        모든 plonkish 데이터 삭제
"""

import logging

from flask import Blueprint, jsonify, redirect, request, url_for
from tinydb import Query

from circuitlab.plonkish.circuit import CubicCircuit, expected_output
from circuitlab.plonkish.config import DEFAULT_CONSTANT, DEFAULT_K, MAX_K
from circuitlab.plonkish.dev import MockProver
from circuitlab.plonkish.errors import PlonkError
from circuitlab.plonkish.keygen import keygen_assembly
from circuitlab.plonkish.value import Value

from plonkish_serializers import (
    deserialize_fp,
    deserialize_fp_list,
    serialize_failure,
    serialize_fp_list,
    serialize_synthesis,
    gates_table,
    layout_table,
    regions_table,
    copy_table,
)


logger = logging.getLogger(__name__)

plonkish_bp = Blueprint('plonkish', __name__, url_prefix='/plonkish')

DATA = Query()

# DB는 app.py에서 주입
DB = None


def init_plonkish_bp(db):
    """app.py에서 DB를 주입받는다."""
    global DB
    DB = db


# ─── DB 헬퍼 ───

def db_get(key):
    """DB에서 키로 데이터를 조회한다."""
    result = DB.search(DATA.type == key)
    if not result:
        return None
    return result[0].get("data")


def db_set(key, data):
    """DB에 키로 데이터를 저장한다."""
    DB.upsert({"type": key, "data": data}, DATA.type == key)


def db_remove_prefix(prefix):
    """prefix로 시작하는 모든 키를 삭제한다."""
    DB.remove(DATA.type.test(lambda t: t.startswith(prefix)))


# ─── 폼 파싱 ───

def _form_int(name, default):
    raw = request.form.get(name, "").strip()
    if not raw:
        return default
    return int(raw)


def _form_public_inputs(default):
    raw = request.form.get("public-input")
    if raw is None:
        return default
    return [int(v) for v in raw.split(",") if v.strip()]


def _circuit_from_data(data):
    x = Value.unknown() if data["x"] is None else Value.known(deserialize_fp(data["x"]))
    return CubicCircuit(x, deserialize_fp(data["constant"]))


# ──────────────────────────────────────────────────────────────
# Circuit 페이지
# ──────────────────────────────────────────────────────────────

@plonkish_bp.route("/circuit")
def circuit_page():
    """저장된 회로 데이터를 JSON으로 돌려준다."""
    return jsonify({
        "synthesis": db_get("plonkish.circuit.data"),
        "gates": db_get("plonkish.circuit.gates_table"),
        "layout": db_get("plonkish.circuit.layout_table"),
        "regions": db_get("plonkish.circuit.regions_table"),
        "copies": db_get("plonkish.circuit.copy_table"),
        "verify": db_get("plonkish.verify.result"),
        "keygen": db_get("plonkish.keygen.result"),
        "error": db_get("plonkish.error"),
    })


@plonkish_bp.route("/circuit/synthesize", methods=["POST"])
def circuit_synthesize():
    """폼 입력으로 x³ + x + c 회로를 합성하고 테이블을 저장한다."""
    db_remove_prefix("plonkish.")
    try:
        k = _form_int("k", DEFAULT_K)
        if not 1 <= k <= MAX_K:
            raise ValueError(f"k는 1 이상 {MAX_K} 이하여야 합니다: {k}")
        constant = _form_int("constant", DEFAULT_CONSTANT)
        raw_x = request.form.get("x", "").strip()
        x = int(raw_x) if raw_x else None
        default_public = [] if x is None else [int(expected_output(x, constant))]
        public_inputs = _form_public_inputs(default_public)
    except ValueError as e:
        db_set("plonkish.error", f"잘못된 입력: {e}")
        return redirect(url_for("plonkish.circuit_page"))

    circuit = CubicCircuit(Value.unknown() if x is None else x, constant)
    try:
        prover = MockProver.run(k, circuit, [public_inputs])
    except PlonkError as e:
        logger.warning("synthesis failed: %s", e)
        db_set("plonkish.error", str(e))
        return redirect(url_for("plonkish.circuit_page"))

    x_value = None if circuit.x.is_unknown() else circuit.x.unwrap()
    db_set("plonkish.circuit.data", serialize_synthesis(prover, x_value, circuit.constant))
    db_set("plonkish.circuit.gates_table", gates_table(prover.cs))
    db_set("plonkish.circuit.layout_table", layout_table(prover))
    db_set("plonkish.circuit.regions_table", regions_table(prover))
    db_set("plonkish.circuit.copy_table", copy_table(prover))

    failures = prover.verify()
    db_set("plonkish.verify.result", {
        "public_inputs": serialize_fp_list(prover.instance[0][:prover.supplied_lengths[0]]),
        "ok": not failures,
        "failures": [serialize_failure(f) for f in failures],
    })
    return redirect(url_for("plonkish.circuit_page"))


@plonkish_bp.route("/circuit/verify", methods=["POST"])
def circuit_verify():
    """저장된 회로를 새 공개 입력으로 다시 검증한다."""
    data = db_get("plonkish.circuit.data")
    if not data:
        return redirect(url_for("plonkish.circuit_page"))

    try:
        public_inputs = _form_public_inputs(deserialize_fp_list(data["public_inputs"][0]))
        prover = MockProver.run(data["k"], _circuit_from_data(data), [public_inputs])
    except (ValueError, PlonkError) as e:
        db_set("plonkish.error", str(e))
        return redirect(url_for("plonkish.circuit_page"))

    failures = prover.verify()
    db_set("plonkish.verify.result", {
        "public_inputs": serialize_fp_list(prover.instance[0][:prover.supplied_lengths[0]]),
        "ok": not failures,
        "failures": [serialize_failure(f) for f in failures],
    })
    return redirect(url_for("plonkish.circuit_page"))


@plonkish_bp.route("/circuit/keygen", methods=["POST"])
def circuit_keygen():
    """위트니스 없는 합성 구조가 저장된 합성 구조와 같은지 확인한다."""
    data = db_get("plonkish.circuit.data")
    if not data:
        return redirect(url_for("plonkish.circuit_page"))

    circuit = _circuit_from_data(data)
    public_inputs = deserialize_fp_list(data["public_inputs"][0])
    prover = MockProver.run(data["k"], circuit, [public_inputs])
    assembly = keygen_assembly(data["k"], circuit)

    db_set("plonkish.keygen.result", {
        "regions": len(assembly.regions),
        "selectors": [list(rows) for rows in assembly.structure()["selectors"]],
        "structure_matches": assembly.structure() == prover.structure(),
    })
    return redirect(url_for("plonkish.circuit_page"))


@plonkish_bp.route("/circuit/clear", methods=["POST"])
def circuit_clear():
    """모든 Plonkish 데이터를 클리어한다."""
    db_remove_prefix("plonkish.")
    return redirect(url_for("plonkish.circuit_page"))
