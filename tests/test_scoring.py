"""
Tests for the score aggregator and dashboard statistics
"""
from datetime import date, datetime, timezone

import pytest

from alerts import assessment_severity, compliance_alerts
from models import Answer, AnswerType, Control
from scoring import (control_status, coverage_matrix, dashboard_statistics,
                     filter_controls, open_controls, priority_compliance,
                     score_assessment, status_for_score, summarize_framework,
                     weighted_score)
from tests.conftest import answer_sheet, custom_control, make_framework


class TestScoreAssessment:
    """Weighted scoring: compliant + 0.5 * partially compliant over all controls"""

    def test_eight_yes_two_partial_is_compliant(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 8 + ["partial"] * 2)
        result = score_assessment(framework10, framework10.controls, answers)

        assert result.score == pytest.approx(0.9)
        assert result.status == "compliant"
        assert result.completed_controls == 8
        assert result.total_controls == 10

    def test_four_yes_four_partial_two_no_is_partial(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 4 + ["partial"] * 4 + ["no"] * 2)
        result = score_assessment(framework10, framework10.controls, answers)

        assert result.score == pytest.approx(0.6)
        assert result.status == "partially-compliant"

    def test_two_yes_eight_no_is_non_compliant(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 2 + ["no"] * 8)
        result = score_assessment(framework10, framework10.controls, answers)

        assert result.score == pytest.approx(0.2)
        assert result.status == "non-compliant"

    def test_per_control_results(self, framework10):
        answers = answer_sheet(framework10, ["yes", "partial", "no"] + ["yes"] * 7)
        result = score_assessment(framework10, framework10.controls, answers)

        assert result.control_results["fw-c0"] == "compliant"
        assert result.control_results["fw-c1"] == "partially-compliant"
        assert result.control_results["fw-c2"] == "non-compliant"

    def test_unanswered_required_question_forces_non_compliant(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 10)
        # implementation says yes, but evidence is missing
        evidence = next(a for a in answers if a.question_id == "fw-c0-evidence")
        evidence.value = None

        result = score_assessment(framework10, framework10.controls, answers)

        assert result.control_results["fw-c0"] == "non-compliant"
        assert result.score == pytest.approx(0.9)

    def test_blank_text_counts_as_unanswered(self):
        control = custom_control()
        answers = {
            "enc-implementation": Answer("enc-implementation", "enc", "yes"),
            "enc-scope": Answer("enc-scope", "enc", "   "),
        }

        assert control_status(control, answers) == "non-compliant"

        answers["enc-scope"].value = "All laptops and backups"
        assert control_status(control, answers) == "compliant"

    def test_missing_answers_entirely(self, framework10):
        result = score_assessment(framework10, framework10.controls, [])

        assert result.score == 0.0
        assert set(result.control_results.values()) == {"non-compliant"}

    def test_zero_controls_scores_zero_not_nan(self):
        fw = make_framework(0)
        result = score_assessment(fw, [], [])

        assert result.score == 0.0
        assert result.status == "non-compliant"
        assert result.total_controls == 0

    def test_is_pure(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 5 + ["partial"] * 3 + ["no"] * 2)
        when = datetime(2026, 10, 1, tzinfo=timezone.utc)

        first = score_assessment(framework10, framework10.controls, answers, assessed_on=when)
        second = score_assessment(framework10, framework10.controls, answers, assessed_on=when)

        assert first == second

    def test_result_answers_are_copies(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 10)
        result = score_assessment(framework10, framework10.controls, answers)
        answers[0].value = "no"

        assert result.answers[0].value == "yes"

    def test_round_trips_through_dict(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 10)
        when = datetime(2026, 10, 1, 12, 30, tzinfo=timezone.utc)
        result = score_assessment(framework10, framework10.controls, answers, assessed_on=when)

        from models import AssessmentResult
        assert AssessmentResult.from_dict(result.to_dict()) == result


class TestThresholds:

    @pytest.mark.parametrize(
        "score,status",
        [
            (1.0, "compliant"),
            (0.8, "compliant"),
            (0.79, "partially-compliant"),
            (0.5, "partially-compliant"),
            (0.49, "non-compliant"),
            (0.0, "non-compliant"),
        ],
    )
    def test_status_for_score(self, score, status):
        assert status_for_score(score) == status

    def test_weighted_score(self):
        assert weighted_score(["compliant", "partially-compliant", "pending", "non-compliant"]) == 0.375
        assert weighted_score([]) == 0.0


class TestDashboardStatistics:

    def test_sample_framework_scores(self, backend):
        scores = {fw.id: (fw.score, fw.status) for fw in backend.fetch_frameworks()}

        assert scores["gdpr"] == (57.1, "partially-compliant")
        assert scores["hipaa"] == (75.0, "partially-compliant")
        assert scores["iso27001"] == (75.0, "partially-compliant")

    def test_sample_statistics(self, backend):
        stats = dashboard_statistics(backend.fetch_frameworks())

        assert stats["overall_score"] == 69
        assert stats["framework_count"] == 3
        assert stats["controls_count"] == {
            "total": 21,
            "compliant": 12,
            "partially_compliant": 5,
            "non_compliant": 2,
            "pending": 2,
        }
        assert stats["critical_issues"] == 1
        assert stats["status_distribution"]["partially-compliant"] == 3

    def test_empty_statistics(self):
        stats = dashboard_statistics([])

        assert stats["overall_score"] == 0
        assert stats["controls_count"]["total"] == 0
        assert stats["critical_issues"] == 0

    def test_summarize_empty_framework_is_pending(self):
        fw = summarize_framework(make_framework(0))

        assert fw.score == 0.0
        assert fw.status == "pending"

    def test_priority_compliance(self):
        fw = make_framework(3, statuses=["compliant", "compliant", "non-compliant"])

        pc = priority_compliance([fw])

        assert pc["critical"] == {"total": 1, "compliant": 1}
        assert pc["medium"] == {"total": 2, "compliant": 1}
        assert pc["low"] == {"total": 0, "compliant": 0}

    def test_open_controls_sorted_by_priority(self, backend):
        rows = open_controls(backend.fetch_frameworks())

        assert len(rows) == 5
        assert all(r["status"] != "compliant" for r in rows)
        assert [r["priority"] for r in rows[:3]] == ["critical"] * 3

    def test_coverage_matrix(self):
        fw = make_framework(4, statuses=["compliant", "partially-compliant", "compliant", "pending"])

        mat = coverage_matrix([fw]).set_index("Category")["Coverage"]

        assert mat["Technical"] == 100.0
        assert mat["General"] == 25.0

    def test_filter_controls(self, backend):
        gdpr = backend.fetch_framework("gdpr")

        critical_open = filter_controls(gdpr.controls, status="non-compliant", priority="critical")

        assert [c.id for c in critical_open] == ["gdpr-6"]
        assert len(filter_controls(gdpr.controls, category="Security")) == 2


class TestAlerts:

    def test_sample_alerts(self, backend):
        alerts = compliance_alerts(backend.fetch_frameworks(), today=date(2026, 10, 19))
        ids = {a.id for a in alerts}

        assert ids == {
            "compliance-alert-gdpr-score",
            "compliance-alert-gdpr-6",
            "compliance-alert-gdpr-2-due",
            "compliance-alert-gdpr-6-due",
        }
        score_alert = next(a for a in alerts if a.id == "compliance-alert-gdpr-score")
        assert score_alert.severity == "high"

    def test_assessment_alert(self, framework10):
        answers = answer_sheet(framework10, ["yes"] * 4 + ["no"] * 6)
        result = score_assessment(
            framework10, framework10.controls, answers,
            assessed_on=datetime(2026, 10, 19, tzinfo=timezone.utc),
        )

        alerts = compliance_alerts([], result)

        assert len(alerts) == 1
        assert alerts[0].type == "assessment"
        assert alerts[0].severity == "critical"
        assert "4 of 10" in alerts[0].description

    @pytest.mark.parametrize(
        "pct,severity", [(49, "critical"), (50, "high"), (70, "medium"), (90, "low")]
    )
    def test_assessment_severity(self, pct, severity):
        assert assessment_severity(pct) == severity


class TestAnswerTypes:

    def test_control_from_dict_keeps_explicit_questions(self):
        control = custom_control()

        assert [q.id for q in control.questions] == ["enc-implementation", "enc-scope", "enc-owner"]
        assert control.questions[0].answer_type == AnswerType.YES_NO_NA
        assert control.questions[1].answer_type == AnswerType.TEXT
        assert [q.id for q in control.required_questions] == ["enc-implementation", "enc-scope"]

    def test_not_applicable_is_non_compliant(self):
        control = custom_control()
        answers = {
            "enc-implementation": Answer("enc-implementation", "enc", "na"),
            "enc-scope": Answer("enc-scope", "enc", "n/a"),
        }

        assert control_status(control, answers) == "non-compliant"

    def test_optional_question_may_stay_unanswered(self):
        control = custom_control()
        answers = {
            "enc-implementation": Answer("enc-implementation", "enc", "yes"),
            "enc-scope": Answer("enc-scope", "enc", "Servers"),
            "enc-owner": Answer("enc-owner", "enc", None),
        }

        assert control_status(control, answers) == "compliant"

    def test_control_without_implementation_question(self):
        control = Control.from_dict(
            {
                "id": "log",
                "title": "Logging",
                "category": "Technical",
                "questions": [{"id": "log-retention", "text": "Are logs retained?"}],
            }
        )
        answers = {"log-retention": Answer("log-retention", "log", "yes")}

        assert control_status(control, answers) == "non-compliant"

    def test_blank_choice_value_still_counts_as_answered(self):
        q = custom_control().questions[0]

        assert q.is_answered_by(Answer("enc-implementation", "enc", ""))
        assert not q.is_answered_by(Answer("enc-implementation", "enc", None))
        assert not q.is_answered_by(None)

    def test_choice_questions_reject_foreign_values(self):
        fw = make_framework(1)
        impl, doc, _ = fw.controls[0].questions

        assert impl.accepts("partial")
        assert not doc.accepts("partial")
        assert not impl.accepts("na")
        assert impl.accepts(None)

    def test_answer_round_trip(self):
        a = Answer(question_id="q", control_id="c", value="yes", notes="see policy")
        assert Answer.from_dict(a.to_dict()) == a
