import pytest

from opticalc.models.api import (
    LensDetails,
    ProblemSolverInput,
    RxDetails,
    RxToleranceInput,
)
from opticalc.services import analysis
from opticalc.services.errors import ServiceError, ValidationError

from conftest import CANNED_OUTPUTS, FakeCompletionService

PNG_URI = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def service():
    return FakeCompletionService(outputs=CANNED_OUTPUTS)


class TestRxTolerance:

    def test_prompt_lists_components(self, service):
        result = analysis.analyze_rx_tolerance(RxToleranceInput(sphere=-2.5, cylinder=-1.0, axis=180), service)
        assert result.is_in_tolerance is True
        prompt = service.prompts[0]
        assert "Sphere: -2.50 D" in prompt
        assert "Cylinder: -1.00 D" in prompt
        assert "Axis: 180 degrees" in prompt
        assert "ANSI Z80.1" in prompt
        assert "Add:" not in prompt
        assert "Prism:" not in prompt

    def test_optional_add_and_prism(self, service):
        rx = RxToleranceInput(sphere=1.0, cylinder=-0.5, axis=90, add=2.25, prism=1.0, base="BU")
        analysis.analyze_rx_tolerance(rx, service)
        prompt = service.prompts[0]
        assert "Add: +2.25 D" in prompt
        assert "Prism: 1 prism dioptres" in prompt
        assert "Base: BU" in prompt

    def test_service_failure_propagates(self):
        failing = FakeCompletionService(fail=True)
        with pytest.raises(ServiceError):
            analysis.analyze_rx_tolerance(RxToleranceInput(sphere=0, cylinder=0, axis=90), failing)


class TestProblemSolver:

    def test_live_prompt(self, service, monkeypatch):
        monkeypatch.setattr(analysis.settings, "problem_solver_live", True)
        problem = ProblemSolverInput(
            problem="Floor appears tilted",
            current_rx=RxDetails(sphere=-2.0, cylinder=-1.0, axis=20),
            previous_rx=RxDetails(sphere=-2.0, cylinder=-1.0, axis=180),
            lens=LensDetails(type="Single Vision", material="1.6"),
        )
        result = analysis.solve_problem(problem, service)
        assert result.analysis == "Axis change of 20 degrees."
        prompt = service.prompts[0]
        assert "Complaint: Floor appears tilted" in prompt
        assert "Current Rx: sphere=-2.00, cylinder=-1.00, axis=20.0" in prompt
        assert "Previous Rx: sphere=-2.00, cylinder=-1.00, axis=180.0" in prompt
        assert "type=Single Vision, material=1.6" in prompt
        assert "difficult" not in prompt

    def test_missing_rx_is_reported(self, service, monkeypatch):
        monkeypatch.setattr(analysis.settings, "problem_solver_live", True)
        analysis.solve_problem(ProblemSolverInput(problem="Headaches", is_difficult_patient=True), service)
        prompt = service.prompts[0]
        assert "Current Rx: not provided" in prompt
        assert "difficult" in prompt

    def test_placeholder_when_not_live(self, service, monkeypatch):
        monkeypatch.setattr(analysis.settings, "problem_solver_live", False)
        problem = ProblemSolverInput(problem="Blurry reading", current_rx=RxDetails(sphere=2.5))
        result = analysis.solve_problem(problem, service)
        assert service.prompts == []
        assert "hyperopia" in result.analysis
        assert "Blurry reading" in result.analysis
        assert result.solution.startswith("*")

    def test_placeholder_defaults_to_myopia(self):
        result = analysis.placeholder_solution(ProblemSolverInput(problem="Distance blur"))
        assert "myopia" in result.analysis


class TestImageAnalysis:

    def test_text_and_annotation(self, service):
        result = analysis.analyze_image(PNG_URI, service, annotate=True)
        assert result.optic_disc.startswith("Pink")
        assert result.annotated_image_data_uri == service.annotated
        assert service.images == [PNG_URI]
        assert service.annotations == 1

    def test_annotation_disabled(self, service):
        result = analysis.analyze_image(PNG_URI, service, annotate=False)
        assert result.annotated_image_data_uri is None
        assert service.annotations == 0

    def test_annotation_follows_settings(self, service, monkeypatch):
        monkeypatch.setattr(analysis.settings, "annotate_images", False)
        assert analysis.analyze_image(PNG_URI, service).annotated_image_data_uri is None

    def test_rejects_non_image(self, service):
        with pytest.raises(ValidationError):
            analysis.analyze_image("data:text/plain;base64,aGVsbG8=", service)
        assert service.prompts == []

    def test_rejects_malformed_uri(self, service):
        with pytest.raises(ValidationError):
            analysis.analyze_image("not-a-data-uri", service)
