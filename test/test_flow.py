"""
test/test_flow.py
FlowController 전체 분기 테스트

omega 전이 테이블:
  slide-1            -> slide-2
  slide-2            Sí -> slide-3-input / No -> slide-6-apology / 그 외 머무름
  slide-3-input      omega3 == 1 and omega6 == 3 -> slide-5-balanced / 그 외 slide-4-unbalanced
  slide-4/5/6        -> slide-7-video1
  slide-7-video1     -> slide-8-question -> slide-9-video2 -> slide-10-final
  slide-10-final     머무름 (omega-plus 는 slide-11-conveyor 로)
"""
import pytest

from deckshare.errors import UnknownBranch
from deckshare.flow import (
    OMEGA_SLIDES,
    FlowFamily,
    Goto,
    RatioBranch,
    Stay,
    normalize_choice,
    parse_number,
)
from deckshare.schemas.customization import Answer


# ============================================================
# omega: 답변 분기
# ============================================================
class TestOmegaYesNo:
    @pytest.mark.parametrize("answer", ["Sí", "sí", "  SÍ ", "Si", "yes", True, {"answer": "Sí"}])
    def test_yes(self, flow, answer):
        assert flow.next_slide("omega", "slide-2", answer) == "slide-3-input"

    @pytest.mark.parametrize("answer", ["No", "no", " NO", False])
    def test_no(self, flow, answer):
        assert flow.next_slide("omega", "slide-2", answer) == "slide-6-apology"

    @pytest.mark.parametrize("answer", [None, "", "maybe", 42, ["Sí"]])
    def test_unrecognized_stays(self, flow, answer):
        assert flow.next_slide("omega", "slide-2", answer) == "slide-2"

    def test_answer_model(self, flow):
        answer = Answer(question_id="slide-2", answer_text="Sí")
        assert flow.next_slide("omega", "slide-2", answer) == "slide-3-input"


class TestOmegaRatio:
    def test_balanced(self, flow):
        answer = {"omega3": "1", "omega6": "3"}
        assert flow.next_slide("omega", "slide-3-input", answer) == "slide-5-balanced"

    def test_unbalanced(self, flow):
        answer = {"omega3": "2", "omega6": "3"}
        assert flow.next_slide("omega", "slide-3-input", answer) == "slide-4-unbalanced"

    @pytest.mark.parametrize(
        "answer",
        [
            {"omega3": 1, "omega6": 3.0},
            {"omega3": "1.0", "omega6": " 3 "},
        ],
    )
    def test_numeric_forms_balanced(self, flow, answer):
        assert flow.next_slide("omega", "slide-3-input", answer) == "slide-5-balanced"

    @pytest.mark.parametrize(
        "answer",
        [
            {"omega3": "1.0000001", "omega6": "3"},  # 허용 오차 없음
            {"omega3": "abc", "omega6": "3"},
            {"omega3": "1"},
            {"omega3": "nan", "omega6": "nan"},
            None,
            "1:3",
        ],
    )
    def test_not_matching_goes_unbalanced(self, flow, answer):
        assert flow.next_slide("omega", "slide-3-input", answer) == "slide-4-unbalanced"


# ============================================================
# omega: 고정 전이 / 종료
# ============================================================
class TestOmegaFixed:
    @pytest.mark.parametrize(
        "current,expected",
        [
            ("slide-1", "slide-2"),
            ("slide-4-unbalanced", "slide-7-video1"),
            ("slide-5-balanced", "slide-7-video1"),
            ("slide-6-apology", "slide-7-video1"),
            ("slide-7-video1", "slide-8-question"),
            ("slide-8-question", "slide-9-video2"),
            ("slide-9-video2", "slide-10-final"),
        ],
    )
    def test_fixed_targets(self, flow, current, expected):
        assert flow.next_slide("omega", current) == expected

    def test_question_ignores_answer(self, flow):
        assert flow.next_slide("omega", "slide-8-question", "No") == "slide-9-video2"

    def test_final_is_idempotent(self, flow):
        assert flow.next_slide("omega", "slide-10-final") == "slide-10-final"
        assert flow.next_slide("omega", "slide-10-final", "anything") == "slide-10-final"
        assert flow.is_terminal("omega", "slide-10-final") is True

    def test_aliases_share_table(self, flow):
        for alias in ("omega-balance", "omega-balance-space", "omega-balance-new"):
            assert flow.next_slide(alias, "slide-2", "No") == "slide-6-apology"

    def test_total_over_known_slides(self, flow):
        for slide_id in OMEGA_SLIDES:
            for answer in (None, "Sí", "No", "?", {"omega3": "1", "omega6": "3"}, 0):
                assert flow.next_slide("omega", slide_id, answer) in OMEGA_SLIDES

    def test_first_slide_and_forward_only(self, flow):
        assert flow.first_slide("omega") == "slide-1"
        assert flow.is_forward_only("omega") is True
        assert flow.is_forward_only("demo") is False


class TestOmegaPlus:
    def test_final_goes_to_conveyor(self, flow):
        assert flow.next_slide("omega-balance-plus", "slide-10-final") == "slide-11-conveyor"
        assert flow.is_terminal("omega-plus", "slide-10-final") is False

    def test_conveyor_is_terminal(self, flow):
        assert flow.next_slide("omega-plus", "slide-11-conveyor") == "slide-11-conveyor"
        assert flow.is_terminal("omega-plus", "slide-11-conveyor") is True

    def test_branches_inherited(self, flow):
        assert flow.next_slide("omega-plus", "slide-2", "Sí") == "slide-3-input"


# ============================================================
# omega: 삽입된 질문 슬라이드 우회
# ============================================================
def _insert(order, position, *slide_ids):
    order = list(order)
    order[position:position] = slide_ids
    return order


class TestInsertedQuestions:
    def test_question_before_yes_no_is_visited(self, flow):
        order = _insert(OMEGA_SLIDES, 1, "question-like")
        assert flow.next_slide("omega", "slide-1", slide_order=order) == "question-like"
        assert flow.next_slide("omega", "question-like", "Sí", slide_order=order) == "slide-2"

    def test_consecutive_questions_visited_in_order(self, flow):
        order = _insert(OMEGA_SLIDES, 1, "question-a", "question-b")
        assert flow.next_slide("omega", "slide-1", slide_order=order) == "question-a"
        assert flow.next_slide("omega", "question-a", slide_order=order) == "question-b"
        assert flow.next_slide("omega", "question-b", slide_order=order) == "slide-2"

    def test_branch_target_detours(self, flow):
        # slide-4-unbalanced 와 slide-5-balanced 사이 -> balanced 경로에서만 거친다
        order = _insert(OMEGA_SLIDES, 4, "question-mid")
        balanced = {"omega3": "1", "omega6": "3"}
        assert flow.next_slide("omega", "slide-3-input", balanced, slide_order=order) == "question-mid"
        assert flow.next_slide("omega", "question-mid", slide_order=order) == "slide-5-balanced"
        assert flow.next_slide("omega", "slide-4-unbalanced", slide_order=order) == "slide-7-video1"

    def test_staying_on_question_slide_does_not_detour(self, flow):
        order = _insert(OMEGA_SLIDES, 1, "question-like")
        assert flow.next_slide("omega", "slide-2", "maybe", slide_order=order) == "slide-2"

    def test_question_after_final(self, flow):
        order = _insert(OMEGA_SLIDES, len(OMEGA_SLIDES), "question-last")
        assert flow.is_terminal("omega", "slide-10-final", order) is False
        assert flow.next_slide("omega", "slide-10-final", slide_order=order) == "question-last"
        assert flow.next_slide("omega", "question-last", slide_order=order) == "question-last"
        assert flow.is_terminal("omega", "question-last", order) is True

    def test_question_after_conveyor(self, flow):
        base = OMEGA_SLIDES + ("slide-11-conveyor",)
        order = _insert(base, len(base), "question-last")
        assert flow.next_slide("omega-plus", "slide-10-final", slide_order=order) == "slide-11-conveyor"
        assert flow.next_slide("omega-plus", "slide-11-conveyor", slide_order=order) == "question-last"
        assert flow.is_terminal("omega-plus", "slide-11-conveyor", order) is False

    def test_plain_deck_unchanged(self, flow):
        assert flow.next_slide("omega", "slide-1", slide_order=OMEGA_SLIDES) == "slide-2"
        assert flow.is_terminal("omega", "slide-10-final", OMEGA_SLIDES) is True


# ============================================================
# linear (문서 순서)
# ============================================================
class TestLinear:
    ORDER = ["s1", "question-like", "s2"]

    def test_advances_by_one(self, flow):
        assert flow.next_slide("demo", "s1", slide_order=self.ORDER) == "question-like"
        assert flow.next_slide("demo", "question-like", "yes", slide_order=self.ORDER) == "s2"

    def test_tail_does_not_wrap(self, flow):
        assert flow.next_slide("demo", "s2", slide_order=self.ORDER) == "s2"
        assert flow.is_terminal("demo", "s2", self.ORDER) is True
        assert flow.is_terminal("demo", "s1", self.ORDER) is False

    def test_unknown_slide_fails_closed(self, flow):
        with pytest.raises(UnknownBranch):
            flow.next_slide("demo", "s9", slide_order=self.ORDER)

    def test_empty_deck(self, flow):
        with pytest.raises(UnknownBranch):
            flow.first_slide("zinzino-mex", [])


# ============================================================
# 실패 처리
# ============================================================
class TestFailClosed:
    def test_unknown_family(self, flow):
        with pytest.raises(UnknownBranch) as exc_info:
            flow.next_slide("mystery", "slide-1")
        assert exc_info.value.family_id == "mystery"

    def test_unknown_family_in_helpers(self, flow):
        with pytest.raises(UnknownBranch):
            flow.first_slide("mystery", ["a"])
        with pytest.raises(UnknownBranch):
            flow.is_forward_only("mystery")

    def test_target_missing_from_deck(self, flow):
        # slide-6-apology 를 뺀 덱에서 No 분기
        order = [s for s in OMEGA_SLIDES if s != "slide-6-apology"]
        with pytest.raises(UnknownBranch):
            flow.next_slide("omega", "slide-2", "No", slide_order=order)

    def test_duplicate_registration(self, flow):
        with pytest.raises(UnknownBranch):
            flow.register(FlowFamily(family_id="omega"))

    def test_family_validation(self):
        family = FlowFamily(
            family_id="broken",
            slide_order=("a", "b"),
            transitions={"a": Goto("c")},
        )
        with pytest.raises(UnknownBranch):
            family.validate()

    def test_transitions_without_order(self):
        with pytest.raises(UnknownBranch):
            FlowFamily(family_id="x", transitions={"a": Stay()}).validate()

    def test_ratio_targets_validated(self):
        family = FlowFamily(
            family_id="ratio",
            slide_order=("a", "b"),
            transitions={"a": RatioBranch(references={"x": 1.0}, match="b", otherwise="zz")},
        )
        with pytest.raises(UnknownBranch):
            family.validate()


# ============================================================
# 입력 필요 여부
# ============================================================
class TestRequiresInput:
    def test_answer_driven_slides(self, flow):
        assert flow.requires_input("omega", "slide-2") is True
        assert flow.requires_input("omega", "slide-3-input") is True
        assert flow.requires_input("omega", "slide-1") is False

    def test_slide_variants(self, flow, bundled_catalog):
        demo = bundled_catalog.require("demo")
        assert flow.requires_input("demo", demo.get_slide("s2")) is True
        assert flow.requires_input("demo", demo.get_slide("s1")) is False


# ============================================================
# 답변 정규화 헬퍼
# ============================================================
class TestHelpers:
    def test_normalize_choice(self):
        assert normalize_choice("  Sí ") == "sí"
        assert normalize_choice(True) == "true"
        assert normalize_choice({"value": "No"}) == "no"
        assert normalize_choice(3) is None

    def test_decomposed_accent(self):
        # "Si" + 결합 악센트 (NFD) 도 같은 답으로 취급
        assert normalize_choice("Si\u0301") == "s\u00ed"

    @pytest.mark.parametrize("value,expected", [("1", 1.0), (" 3.5 ", 3.5), (2, 2.0), ("x", None), (None, None), (True, None)])
    def test_parse_number(self, value, expected):
        assert parse_number(value) == expected
