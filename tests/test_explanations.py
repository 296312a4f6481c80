from cortana_rules.schemas.evaluation import EvaluationContext
from cortana_rules.services.explanations import render_explanation


def test_render_context_placeholders():
    ctx = EvaluationContext(idle_minutes=45, current_room="office", current_activity="coding", time_of_day="evening")
    text = render_explanation("Idle {idle_minutes}m in {room} while {activity} this {time_of_day}", ctx)
    assert text == "Idle 45m in office while coding this evening"


def test_missing_room_and_activity_render_unknown():
    text = render_explanation("{room}/{activity}", EvaluationContext())
    assert text == "unknown/unknown"


def test_trigger_data_placeholders():
    ctx = EvaluationContext()
    text = render_explanation(
        "{entity} is {state} (armed={armed}, by={by})",
        ctx,
        {"entity": "front door", "state": "open", "armed": True, "by": None},
    )
    assert text == "front door is open (armed=true, by=null)"


def test_unknown_placeholders_are_left_alone():
    assert render_explanation("{nothing} here", EvaluationContext()) == "{nothing} here"


def test_no_template_renders_empty():
    assert render_explanation(None, EvaluationContext()) == ""
    assert render_explanation("", EvaluationContext()) == ""
