from mediagent.nodes.planner_node import CARDIAC_PLAN, ROUTINE_PLAN, generate_treatment_suggestions


def test_chest_pain_uses_cardiac_plan():
    plan = generate_treatment_suggestions(["Chest pain"], ["Assessment pending"])
    assert "Nitroglycerin 0.4mg sublingual PRN" in plan.medications
    assert "12-lead ECG immediately" in plan.lab_tests
    assert plan.follow_up_duration == CARDIAC_PLAN["follow_up"]


def test_routine_plan_when_nothing_matches():
    plan = generate_treatment_suggestions(["General consultation"], ["Assessment pending"])
    assert plan.medications == ROUTINE_PLAN["medications"]
    assert plan.lab_tests == ROUTINE_PLAN["lab_tests"]
    assert plan.lifestyle_advice == ROUTINE_PLAN["lifestyle"]
    assert plan.follow_up_duration == "1-2 weeks for routine follow-up"


def test_add_ons_append_in_order():
    plan = generate_treatment_suggestions(["Headache", "Fever"], ["Diabetes"])
    meds = plan.medications
    assert meds[0] == "Symptomatic treatment as appropriate"
    assert meds.index("Acetaminophen 500mg PRN headache") < meds.index("Acetaminophen/Ibuprofen for fever")
    assert "HbA1c" in plan.lab_tests


def test_duplicates_removed():
    # cardiac plan and hypertension/diabetes both bring in overlapping tests
    plan = generate_treatment_suggestions(["Chest pain", "Cough"], ["Hypertension", "Diabetes"])
    assert len(plan.lab_tests) == len(set(plan.lab_tests))
    assert plan.lab_tests.count("Chest X-ray") == 1
    assert plan.lab_tests.count("Lipid profile") == 1
