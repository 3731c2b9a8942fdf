"""Test configuration and fixtures."""
import pytest

from app import create_app
from millpath.models import (
    Circle,
    CutParams,
    EntryMethod,
    GenerationRequest,
    Operation,
)


class TestConfig:
    """Test configuration."""
    TESTING = True
    LOG_LEVEL = 'WARNING'
    LETTER_FONT_PATH = None
    DEFAULT_SAFE_HEIGHT_MM = 10.0
    DEFAULT_LEAD_IN_ABOVE_MM = 2.0
    RAPID_FEEDRATE_MM_MIN = 10000.0
    FIT_ARCS = False


@pytest.fixture
def app():
    """Create and configure a test application instance."""
    app = create_app(TestConfig)

    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    """Create a test client."""
    return app.test_client()


@pytest.fixture
def cut_params():
    """6 mm tool, 5 mm deep in two 2.5 mm layers."""
    return CutParams(
        tool_diameter=6.0,
        total_depth=5.0,
        stepdown=2.5,
        stepover=3.0,
        feedrate=800.0,
        safe_height=10.0,
        lead_in_above=2.0,
        entry_method=EntryMethod.PLUNGE,
    )


@pytest.fixture
def make_request(cut_params):
    """Build a GenerationRequest with the default cut parameters."""
    def _make(shape=None, **kwargs):
        cut = kwargs.pop('cut', cut_params)
        return GenerationRequest(
            shape=shape if shape is not None else Circle(50.0),
            cut=cut,
            operation=kwargs.pop('operation', Operation.POCKET),
            **kwargs
        )
    return _make


@pytest.fixture
def pocket_payload():
    """JSON payload for a 50 mm circle pocket."""
    return {
        'unit': 'mm',
        'operation': 'pocket',
        'shape': {'type': 'circle', 'diameter': 50},
        'cut': {
            'tool_diameter': 6,
            'total_depth': 5,
            'stepdown': 2.5,
            'stepover': 3,
            'feedrate': 800,
            'entry_method': 'plunge',
        },
        'origin': {'xy': 'center', 'z': 'stock_top'},
    }
