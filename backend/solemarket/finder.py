"""
Shoe finder: a short questionnaire whose answers become catalog filters.

Each option carries a partial filter. Answers are merged into the cleared
filter set: list values are unioned, the price range is merged key by key,
and scalar values overwrite.
"""
import random
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .models import FilterSpecification


class FinderOption(BaseModel):
    value: str
    label: str
    filters: Dict[str, Any] = Field(default_factory=dict)


class FinderQuestion(BaseModel):
    id: str
    question: str
    type: Literal["single", "multiple"] = "single"
    options: List[FinderOption]

    def option(self, value: str) -> Optional[FinderOption]:
        return next((o for o in self.options if o.value == value), None)


def _q(qid: str, question: str, kind: str, options: List[tuple]) -> FinderQuestion:
    return FinderQuestion(
        id=qid,
        question=question,
        type=kind,
        options=[FinderOption(value=v, label=label, filters=f) for v, label, f in options],
    )


QUESTION_BANK: List[FinderQuestion] = [
    _q("activity", "What activity are these shoes for?", "single", [
        ("running", "Running & Jogging", {"categories": ["running", "athletic"], "styles": ["athletic"]}),
        ("casual", "Casual Daily Wear", {"styles": ["casual"], "categories": ["sneakers", "casual"]}),
        ("work", "Work & Business", {"styles": ["formal"], "categories": ["dress", "loafers", "oxfords"]}),
        ("sports", "Sports & Training", {"categories": ["athletic", "training"], "styles": ["athletic"]}),
        ("party", "Party & Events", {"styles": ["formal", "luxury"], "categories": ["heels", "dress"]}),
    ]),
    _q("budget", "What's your budget range?", "single", [
        ("budget", "Under $50", {"priceRange": {"min": 0, "max": 50}}),
        ("mid", "$50 - $100", {"priceRange": {"min": 50, "max": 100}}),
        ("premium", "$100 - $200", {"priceRange": {"min": 100, "max": 200}}),
        ("luxury", "$200+", {"priceRange": {"min": 200, "max": None}}),
    ]),
    _q("style", "Which style appeals to you most?", "multiple", [
        ("casual", "Casual & Comfortable", {"styles": ["casual"]}),
        ("athletic", "Athletic & Sporty", {"styles": ["athletic"]}),
        ("formal", "Formal & Professional", {"styles": ["formal"]}),
        ("vintage", "Vintage & Retro", {"styles": ["vintage"]}),
        ("luxury", "Luxury & Premium", {"styles": ["luxury"]}),
    ]),
    _q("season", "What season will you mainly wear these?", "single", [
        ("summer", "Summer (Breathable)", {"seasons": ["summer"], "materials": ["mesh", "canvas"]}),
        ("winter", "Winter (Warm & Dry)", {"seasons": ["winter"], "materials": ["leather", "waterproof"]}),
        ("spring", "Spring (Light & Fresh)", {"seasons": ["spring"]}),
        ("fall", "Fall (Versatile)", {"seasons": ["fall"]}),
        ("all", "All Seasons", {"seasons": ["all-season"]}),
    ]),
    _q("gender", "Who are you shopping for?", "single", [
        ("men", "Men", {"genders": ["men"]}),
        ("women", "Women", {"genders": ["women"]}),
        ("unisex", "Unisex", {"genders": ["unisex"]}),
        ("kids", "Kids", {"genders": ["kids"], "ageGroups": ["child", "youth"]}),
    ]),
    _q("material", "What material do you prefer?", "multiple", [
        ("leather", "Genuine Leather", {"materials": ["leather"]}),
        ("canvas", "Canvas & Fabric", {"materials": ["canvas", "fabric"]}),
        ("mesh", "Breathable Mesh", {"materials": ["mesh"]}),
        ("synthetic", "Synthetic Materials", {"materials": ["synthetic"]}),
    ]),
    _q("condition", "What condition are you looking for?", "single", [
        ("new_only", "Brand New Only", {"conditions": ["new"]}),
        ("like_new", "Like New", {"conditions": ["new", "like-new"]}),
        ("good", "Good Condition", {"conditions": ["new", "like-new", "good"]}),
        ("any", "Any Condition", {}),
    ]),
    _q("priority", "What's most important to you?", "single", [
        ("trending", "What's Popular", {"featured": True}),
        ("quality", "High Ratings", {"rating": 4}),
        ("availability", "Available Now", {"inStock": True}),
        ("value", "Best Value", {"priceRange": {"min": 0, "max": 100}}),
    ]),
]

QUESTIONS_PER_SESSION = 5

Answer = Union[str, List[str]]


def pick_questions(count: int = QUESTIONS_PER_SESSION, rng: Optional[random.Random] = None) -> List[FinderQuestion]:
    rng = rng or random.Random()
    return rng.sample(QUESTION_BANK, min(count, len(QUESTION_BANK)))


def merge_filters(target: Dict[str, Any], source: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(target)
    for key, value in source.items():
        if isinstance(value, list):
            merged[key] = list(dict.fromkeys([*merged.get(key, []), *value]))
        elif isinstance(value, dict):
            merged[key] = {**merged.get(key, {}), **value}
        else:
            merged[key] = value
    return merged


def answers_to_filters(answers: Dict[str, Answer], questions: Optional[List[FinderQuestion]] = None) -> FilterSpecification:
    """Fold the chosen options' filters into a fresh filter set. Unknown questions and options are skipped."""
    by_id = {q.id: q for q in (questions or QUESTION_BANK)}
    filters: Dict[str, Any] = FilterSpecification(in_stock=False).model_dump(by_alias=True)
    for question_id, answer in answers.items():
        question = by_id.get(question_id)
        if question is None:
            continue
        values = answer if isinstance(answer, list) else [answer]
        if question.type == "single":
            values = values[-1:]
        for value in values:
            option = question.option(value)
            if option is not None:
                filters = merge_filters(filters, option.filters)
    return FilterSpecification.model_validate(filters)
