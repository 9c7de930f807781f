"""
deckshare/flow.py
FlowController - 템플릿 family 별 슬라이드 전이 상태 머신

상태는 슬라이드 ID, 시작 상태는 덱의 첫 슬라이드다.
전이 테이블은 family 별 데이터로 정의한다.
    - Goto(target)                 : 답변과 무관한 고정 전이
    - Stay()                       : 명시적 종료 상태 (자기 자신으로 전이)
    - ChoiceBranch(routes, ...)    : 답변 값으로 분기, 인식 못 한 값은 fallback
    - RatioBranch(references, ...) : 숫자 입력이 기준값과 정확히 같은지로 분기

테이블에 없는 슬라이드는 문서 순서상 다음 슬라이드로 넘어가고,
마지막 슬라이드에서는 자기 자신을 반환한다 (wrap 없음).
삽입된 질문 슬라이드(family 고유 덱에 없는 ID)는 테이블 전이의 대상 바로 앞에 있으면
그 전이가 질문을 먼저 거쳐 가도록 우회시킨다. 종료 슬라이드 뒤의 질문도 이어서 보여준다.

컨트롤러는 세션 상태를 갖지 않는다. 현재 슬라이드는 호출자가 보관한다.
"""
from __future__ import annotations

import logging
import math
import unicodedata
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from deckshare.errors import UnknownBranch
from deckshare.schemas.customization import Answer
from deckshare.schemas.enums import SlideVariant
from deckshare.schemas.template import Slide

logger = logging.getLogger(__name__)


# ============================================================
# 전이 정의
# ============================================================
@dataclass(frozen=True)
class Goto:
    target: str


@dataclass(frozen=True)
class Stay:
    pass


@dataclass(frozen=True)
class ChoiceBranch:
    """
    답변 값 분기

    routes 의 키와 synonyms 의 키는 정규화(strip + casefold)된 문자열이다.
    fallback 이 None 이면 인식 못 한 답변에서 현재 슬라이드에 머문다 (다시 묻기).
    """
    routes: Mapping[str, str]
    fallback: Optional[str] = None
    synonyms: Mapping[str, str] = field(default_factory=dict)

    def targets(self) -> List[str]:
        result = list(self.routes.values())
        if self.fallback is not None:
            result.append(self.fallback)
        return result


@dataclass(frozen=True)
class RatioBranch:
    """
    숫자 입력 분기

    references 의 모든 필드가 float 변환 후 기준값과 정확히 같으면 match,
    하나라도 다르거나 숫자로 읽을 수 없으면 otherwise.
    """
    references: Mapping[str, float]
    match: str
    otherwise: str

    def targets(self) -> List[str]:
        return [self.match, self.otherwise]


Transition = Union[Goto, Stay, ChoiceBranch, RatioBranch]

ANSWER_DRIVEN = (ChoiceBranch, RatioBranch)
INPUT_VARIANTS = {SlideVariant.QUIZ, SlideVariant.QUESTIONNAIRE, SlideVariant.INPUT}

YES = "sí"
NO = "no"
YES_NO_SYNONYMS = {
    "si": YES,
    "yes": YES,
    "y": YES,
    "true": YES,
    "n": NO,
    "false": NO,
}


def yes_no_branch(yes: str, no: str, fallback: Optional[str] = None) -> ChoiceBranch:
    """Sí/No 질문 분기 헬퍼"""
    return ChoiceBranch(routes={YES: yes, NO: no}, fallback=fallback, synonyms=YES_NO_SYNONYMS)


@dataclass(frozen=True)
class FlowFamily:
    """
    family 하나의 전이 규칙

    slide_order 는 family 고유 덱의 문서 순서다.
    문서 순서가 덱마다 다른 family(linear)는 빈 튜플로 두고 호출자가 순서를 넘긴다.
    """
    family_id: str
    slide_order: Tuple[str, ...] = ()
    transitions: Mapping[str, Transition] = field(default_factory=dict)
    forward_only: bool = False
    aliases: Tuple[str, ...] = ()

    def validate(self) -> None:
        """모든 전이 대상이 family 덱 안에 있는지 검사"""
        if not self.slide_order:
            if self.transitions:
                raise UnknownBranch(self.family_id, reason="transitions require a slide order")
            return

        known = set(self.slide_order)
        for slide_id, transition in self.transitions.items():
            if slide_id not in known:
                raise UnknownBranch(self.family_id, slide_id, "transition source is not in the deck")
            for target in _targets_of(transition):
                if target not in known:
                    raise UnknownBranch(
                        self.family_id, slide_id, f"transition target {target!r} is not in the deck"
                    )


def _targets_of(transition: Transition) -> List[str]:
    if isinstance(transition, Goto):
        return [transition.target]
    if isinstance(transition, (ChoiceBranch, RatioBranch)):
        return transition.targets()
    return []


def _inserted_after(family: FlowFamily, order: Sequence[str], slide_id: str) -> Optional[str]:
    """slide_id 바로 뒤의 삽입 슬라이드 (family 고유 덱에 없는 슬라이드), 없으면 None"""
    if not family.slide_order or slide_id not in order:
        return None
    index = list(order).index(slide_id)
    if index + 1 < len(order) and order[index + 1] not in family.slide_order:
        return order[index + 1]
    return None


# ============================================================
# 답변 해석
# ============================================================
def _unwrap_answer(answer: Any) -> Any:
    """Answer 모델 / {"answer": ...} 형태를 실제 값으로 푼다"""
    if isinstance(answer, Answer):
        return answer.answer_value if answer.answer_value is not None else answer.answer_text
    return answer


def normalize_choice(answer: Any) -> Optional[str]:
    answer = _unwrap_answer(answer)
    if isinstance(answer, Mapping):
        for key in ("answer", "value", "text"):
            if key in answer:
                return normalize_choice(answer[key])
        return None
    if isinstance(answer, bool):
        return "true" if answer else "false"
    if isinstance(answer, str):
        return unicodedata.normalize("NFC", answer).strip().casefold()
    return None


def parse_number(value: Any) -> Optional[float]:
    """숫자로 읽을 수 없으면 None (에러를 던지지 않음)"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def _decide_choice(branch: ChoiceBranch, current: str, answer: Any) -> str:
    key = normalize_choice(answer)
    if key is not None:
        key = branch.synonyms.get(key, key)
        if key in branch.routes:
            return branch.routes[key]
    return branch.fallback if branch.fallback is not None else current


def _decide_ratio(branch: RatioBranch, answer: Any) -> str:
    values = _unwrap_answer(answer)
    if not isinstance(values, Mapping):
        return branch.otherwise
    for name, reference in branch.references.items():
        # 허용 오차 없이 정확히 같아야 한다
        if parse_number(values.get(name)) != reference:
            return branch.otherwise
    return branch.match


# ============================================================
# FlowController
# ============================================================
class FlowController:
    """
    family ID 로 전이 테이블을 골라 다음 슬라이드를 계산한다.

    알 수 없는 family 는 기본 테이블로 대체하지 않고 UnknownBranch 를 던진다.
    """

    def __init__(self, families: Sequence[FlowFamily] = ()):
        self._families: Dict[str, FlowFamily] = {}
        for family in families:
            self.register(family)

    def register(self, family: FlowFamily) -> None:
        family.validate()
        for key in (family.family_id, *family.aliases):
            if key in self._families:
                raise UnknownBranch(key, reason="family id registered twice")
            self._families[key] = family

    def has_family(self, family_id: str) -> bool:
        return family_id in self._families

    def get_family(self, family_id: str) -> FlowFamily:
        family = self._families.get(family_id)
        if family is None:
            logger.error(f"[FlowController] Unknown flow family: {family_id}")
            raise UnknownBranch(family_id, reason="unknown flow family")
        return family

    def family_ids(self) -> List[str]:
        return sorted(self._families)

    # --------------------------------------------------------
    def _order(self, family: FlowFamily, slide_order: Optional[Sequence[str]]) -> List[str]:
        return list(slide_order) if slide_order is not None else list(family.slide_order)

    def first_slide(self, family_id: str, slide_order: Optional[Sequence[str]] = None) -> str:
        family = self.get_family(family_id)
        order = self._order(family, slide_order)
        if not order:
            raise UnknownBranch(family_id, reason="deck has no slides")
        return order[0]

    def next_slide(
        self,
        family_id: str,
        current_slide_id: str,
        answer: Any = None,
        slide_order: Optional[Sequence[str]] = None,
    ) -> str:
        """
        다음 슬라이드 ID 를 계산합니다.

        Args:
            family_id: family ID 또는 템플릿 ID (alias)
            current_slide_id: 현재 슬라이드 ID
            answer: 현재 슬라이드에서 받은 답변 (선택)
            slide_order: 실제 표시 중인 덱의 슬라이드 ID 순서.
                질문 슬라이드가 삽입된 덱이면 반드시 넘긴다. 생략 시 family 기본 순서.

        Returns:
            다음 슬라이드 ID (종료 상태면 current_slide_id 그대로)

        Raises:
            UnknownBranch: family 없음, 덱에 없는 슬라이드, 덱에 없는 전이 대상
        """
        family = self.get_family(family_id)
        order = self._order(family, slide_order)

        transition = family.transitions.get(current_slide_id)
        if transition is not None:
            target = self._apply(transition, current_slide_id, answer)
            if target not in order:
                logger.error(
                    f"[FlowController] Transition target '{target}' from '{current_slide_id}' "
                    f"is not in the deck (family={family.family_id})"
                )
                raise UnknownBranch(family_id, current_slide_id, f"target {target!r} is not in the deck")
            if isinstance(transition, Stay):
                # 종료 슬라이드 뒤에 붙은 질문은 이어서 보여준다
                target = _inserted_after(family, order, current_slide_id) or target
            else:
                target = self._detour(family, order, current_slide_id, target)
            logger.debug(f"[FlowController] {family.family_id}: {current_slide_id} -> {target}")
            return target

        if current_slide_id not in order:
            logger.error(
                f"[FlowController] Slide '{current_slide_id}' is not in the deck (family={family.family_id})"
            )
            raise UnknownBranch(family_id, current_slide_id, "slide is not in the deck")

        index = order.index(current_slide_id)
        return order[min(index + 1, len(order) - 1)]

    @staticmethod
    def _detour(family: FlowFamily, order: List[str], current: str, target: str) -> str:
        """
        target 바로 앞에 삽입된(family 고유 덱에 없는) 슬라이드들이 있으면 그 첫 장으로 보낸다.
        삽입 슬라이드는 테이블 항목이 없으므로 문서 순서대로 흘러 target 에 도착한다.
        """
        if target == current or not family.slide_order:
            return target
        known = set(family.slide_order)
        start = order.index(target)
        while start > 0 and order[start - 1] not in known and order[start - 1] != current:
            start -= 1
        return order[start]

    @staticmethod
    def _apply(transition: Transition, current: str, answer: Any) -> str:
        if isinstance(transition, Goto):
            return transition.target
        if isinstance(transition, Stay):
            return current
        if isinstance(transition, ChoiceBranch):
            return _decide_choice(transition, current, answer)
        if isinstance(transition, RatioBranch):
            return _decide_ratio(transition, answer)
        raise UnknownBranch("?", current, f"unsupported transition type {type(transition).__name__}")

    def is_terminal(
        self,
        family_id: str,
        slide_id: str,
        slide_order: Optional[Sequence[str]] = None,
    ) -> bool:
        """답변과 무관하게 자기 자신으로만 전이하는 슬라이드인지"""
        family = self.get_family(family_id)
        transition = family.transitions.get(slide_id)
        order = self._order(family, slide_order)
        if isinstance(transition, Stay):
            return _inserted_after(family, order, slide_id) is None
        if transition is not None:
            return False
        return bool(order) and order[-1] == slide_id

    def requires_input(self, family_id: str, slide: Union[Slide, str]) -> bool:
        """사용자 입력이 있어야 넘어가는 슬라이드인지 (탭/자동 넘김 금지)"""
        family = self.get_family(family_id)
        slide_id = slide if isinstance(slide, str) else slide.id
        if isinstance(family.transitions.get(slide_id), ANSWER_DRIVEN):
            return True
        if isinstance(slide, Slide):
            if slide.type in INPUT_VARIANTS:
                return True
            if slide.questions:
                return True
        return False

    def is_forward_only(self, family_id: str) -> bool:
        return self.get_family(family_id).forward_only


# ============================================================
# 내장 family 정의
# ============================================================
OMEGA_REFERENCE_RATIO = {"omega3": 1.0, "omega6": 3.0}

OMEGA_SLIDES: Tuple[str, ...] = (
    "slide-1",
    "slide-2",
    "slide-3-input",
    "slide-4-unbalanced",
    "slide-5-balanced",
    "slide-6-apology",
    "slide-7-video1",
    "slide-8-question",
    "slide-9-video2",
    "slide-10-final",
)

OMEGA_TRANSITIONS: Dict[str, Transition] = {
    "slide-1": Goto("slide-2"),
    # ¿Conoces tu balance de omega 3 / 6?
    "slide-2": yes_no_branch(yes="slide-3-input", no="slide-6-apology"),
    "slide-3-input": RatioBranch(
        references=OMEGA_REFERENCE_RATIO,
        match="slide-5-balanced",
        otherwise="slide-4-unbalanced",
    ),
    "slide-4-unbalanced": Goto("slide-7-video1"),
    "slide-5-balanced": Goto("slide-7-video1"),
    "slide-6-apology": Goto("slide-7-video1"),
    "slide-7-video1": Goto("slide-8-question"),
    # 답변과 무관하게 video2 로
    "slide-8-question": Goto("slide-9-video2"),
    "slide-9-video2": Goto("slide-10-final"),
    "slide-10-final": Stay(),
}

OMEGA = FlowFamily(
    family_id="omega",
    slide_order=OMEGA_SLIDES,
    transitions=OMEGA_TRANSITIONS,
    forward_only=True,
    aliases=("omega-balance", "omega-balance-space", "omega-balance-new"),
)

OMEGA_PLUS = FlowFamily(
    family_id="omega-plus",
    slide_order=OMEGA_SLIDES + ("slide-11-conveyor",),
    transitions={
        **OMEGA_TRANSITIONS,
        "slide-10-final": Goto("slide-11-conveyor"),
        "slide-11-conveyor": Stay(),
    },
    forward_only=True,
    aliases=("omega-balance-plus",),
)

LINEAR = FlowFamily(
    family_id="linear",
    aliases=("zinzino-mex", "demo"),
)

BUILTIN_FAMILIES: Tuple[FlowFamily, ...] = (OMEGA, OMEGA_PLUS, LINEAR)


# ============================================================
# 싱글턴
# ============================================================
_controller_instance: Optional[FlowController] = None


def get_flow_controller() -> FlowController:
    """내장 family 가 등록된 FlowController 싱글턴 반환"""
    global _controller_instance
    if _controller_instance is None:
        _controller_instance = FlowController(BUILTIN_FAMILIES)
    return _controller_instance
