import dataclasses
from datetime import datetime

import pytest

from newlife.prompts import SYSTEM_PROMPT, build_system_prompt, days_until, format_date
from newlife.services.adapter import (
    AnthropicAdapter,
    CustomAdapter,
    GeminiAdapter,
    OpenAIAdapter,
    PregnancyContext,
)
from tests.fixtures.records import DUE_DATE, NOW, UTC

EXPECTED_PROMPT = SYSTEM_PROMPT + """

USER'S PREGNANCY INFORMATION:
- Mother's name: Maya
- Current week: 28 of 40 weeks
- Due date: 3/15/2026
- Days until due: 73 days
- Baby's name: Lily
- Hospital: St. Mary's
- Doctor: Dr. Chen

RECENT SYMPTOMS (last 5):
- back pain (severity 3/5) on 1/10/2026 - after long walk
- nausea (severity 2/5) on 1/5/2026

RECENT HOSPITAL VISITS:
- ultrasound on 1/8/2026 (week 27) - Growth on track
- checkup on 12/20/2025 (week 25)

RECENT MILESTONES:
- First kicks on 11/30/2025"""


def test_full_context_renders_every_section_in_order(pregnancy_context):
    """Given a full snapshot, the prompt should contain all sections in fixed order."""
    assert build_system_prompt(pregnancy_context, now=NOW) == EXPECTED_PROMPT


def test_prompt_is_deterministic_for_same_input(pregnancy_context):
    assert build_system_prompt(pregnancy_context, now=NOW) == build_system_prompt(pregnancy_context, now=NOW)


@pytest.mark.parametrize("empty_field, header", [
    ("recent_symptoms", "RECENT SYMPTOMS"),
    ("recent_visits", "RECENT HOSPITAL VISITS"),
    ("recent_milestones", "RECENT MILESTONES"),
])
def test_empty_sections_are_omitted(pregnancy_context, empty_field, header):
    """Given an empty record list, its section header should not appear at all."""
    context = dataclasses.replace(pregnancy_context, **{empty_field: ()})

    prompt = build_system_prompt(context, now=NOW)

    assert header not in prompt
    assert prompt.startswith(SYSTEM_PROMPT)


def test_optional_profile_fields_are_omitted_when_missing(pregnancy):
    bare = pregnancy.model_copy(update={"baby_name": None, "hospital": "", "doctor_name": None})

    prompt = build_system_prompt(PregnancyContext(pregnancy=bare), now=NOW)

    assert "Baby's name" not in prompt
    assert "Hospital:" not in prompt
    assert "Doctor:" not in prompt
    assert prompt.endswith("- Days until due: 73 days")


def test_symptoms_are_capped_at_five_and_visits_at_three(pregnancy, symptoms, visits):
    many_symptoms = tuple(symptoms[:1] * 7)
    many_visits = tuple(visits[:1] * 5)
    context = PregnancyContext(pregnancy=pregnancy, recent_symptoms=many_symptoms, recent_visits=many_visits)

    prompt = build_system_prompt(context, now=NOW)

    assert prompt.count("back pain (severity 3/5)") == 5
    assert prompt.count("ultrasound on 1/8/2026") == 3


def test_context_build_keeps_most_recent_records(pregnancy, symptoms, visits, milestones):
    context = PregnancyContext.build(pregnancy, visits * 4, symptoms * 4, milestones * 5)

    assert len(context.recent_visits) == 5
    assert len(context.recent_symptoms) == 5
    assert len(context.recent_milestones) == 3


@pytest.mark.parametrize("now, expected", [
    (datetime(2026, 3, 14, 0, 0, tzinfo=UTC), 1),
    (datetime(2026, 3, 14, 23, 0, tzinfo=UTC), 1),
    (datetime(2026, 3, 15, 0, 0, tzinfo=UTC), 0),
    (datetime(2026, 3, 17, 0, 0, tzinfo=UTC), -2),
])
def test_days_until_rounds_up(now, expected):
    assert days_until(DUE_DATE, now) == expected


def test_format_date_has_no_zero_padding():
    assert format_date(datetime(2026, 2, 3)) == "2/3/2026"


def test_all_adapters_produce_identical_prompts(pregnancy_context):
    """Given the same snapshot, every vendor adapter should build the same prompt."""
    adapters = [
        AnthropicAdapter("key"),
        OpenAIAdapter("key"),
        GeminiAdapter("key"),
        CustomAdapter("http://localhost:9000"),
    ]

    prompts = {adapter.build_system_prompt(pregnancy_context) for adapter in adapters}

    assert len(prompts) == 1
    assert prompts.pop().startswith(SYSTEM_PROMPT)
