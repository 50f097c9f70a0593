"""Shared fixtures: a scripted completion service and an API client."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from opticalc.main import app
from opticalc.services.completion import TextCompletionService, get_completion_service
from opticalc.services.errors import ServiceError


def _event_loop_running():
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


class FakeCompletionService(TextCompletionService):
    """Returns canned outputs and records every prompt it receives."""
    provider = "fake"

    def __init__(self, outputs=None, annotated="data:image/png;base64,QU5OT1RBVEVE", fail=False):
        self.outputs = outputs or {}
        self.annotated = annotated
        self.fail = fail
        self.prompts = []
        self.images = []
        self.annotations = 0
        self.called_on_event_loop = []

    def complete(self, prompt, output_schema, image_data_uri=None):
        self.called_on_event_loop.append(_event_loop_running())
        self.prompts.append(prompt)
        self.images.append(image_data_uri)
        if self.fail:
            raise ServiceError("upstream unavailable", provider=self.provider)
        return output_schema.model_validate(self.outputs[output_schema.__name__])

    def annotate_image(self, image_data_uri, instruction):
        self.called_on_event_loop.append(_event_loop_running())
        self.annotations += 1
        return self.annotated


CANNED_OUTPUTS = {
    "RxToleranceOutput": {
        "is_in_tolerance": True,
        "advice": "No refabrication needed.",
        "detailed_analysis": "All components are within ANSI Z80.1 limits.",
    },
    "ProblemSolverOutput": {
        "analysis": "Axis change of 20 degrees.",
        "solution": "*   Re-check axis",
        "considerations": "Frame fit.",
    },
    "ImageTextAnalysis": {
        "description": "Colour fundus photograph of a right eye.",
        "optic_disc": "Pink, well defined margins, C/D 0.3.",
        "macula": "Foveal reflex present.",
        "vessels": "A/V ratio 2:3, no nipping.",
        "anomalies": "None noted.",
    },
}


@pytest.fixture
def fake_service():
    return FakeCompletionService(outputs=CANNED_OUTPUTS)


@pytest.fixture
def client(fake_service):
    app.dependency_overrides[get_completion_service] = lambda: fake_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
