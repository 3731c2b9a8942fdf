"""Tests for ToolpathService."""
import pytest

from millpath.errors import InvalidInputError, ToolTooLargeError
from millpath.models import Circle, MoveKind, ToolpathMove
from web.services.toolpath_service import ToolpathService, serialize_move


@pytest.fixture
def letters_payload(pocket_payload):
    pocket_payload['shape'] = {'type': 'letters', 'text': 'HI', 'font_size': 10}
    pocket_payload['cut'] = {'total_depth': 1, 'stepdown': 0.5, 'feedrate': 300}
    return pocket_payload


class TestBuildRequest:
    """Tests for build_request."""

    def test_build_request(self, app, pocket_payload):
        request = ToolpathService.build_request(pocket_payload)
        assert request.shape == Circle(50.0)
        assert request.cut.safe_height == 10.0

    def test_config_defaults(self, app, pocket_payload):
        """Test configured heights apply when the payload has none."""
        app.config['DEFAULT_SAFE_HEIGHT_MM'] = 15.0
        app.config['DEFAULT_LEAD_IN_ABOVE_MM'] = 3.0
        request = ToolpathService.build_request(pocket_payload)
        assert request.cut.safe_height == 15.0
        assert request.cut.lead_in_above == 3.0

    def test_invalid_request(self, app, pocket_payload):
        pocket_payload['cut']['stepdown'] = 6
        with pytest.raises(InvalidInputError) as exc:
            ToolpathService.build_request(pocket_payload)
        assert exc.value.errors == ["Stepdown must not be larger than the total depth"]


class TestValidate:
    """Tests for validate."""

    def test_valid(self, app, pocket_payload):
        assert ToolpathService.validate(pocket_payload) == []

    def test_parse_errors_reported(self, app, pocket_payload):
        pocket_payload['shape'] = {'type': 'circle'}
        assert ToolpathService.validate(pocket_payload) == ["Diameter is required"]


class TestGenerate:
    """Tests for generate."""

    def test_generate_pocket(self, app, pocket_payload):
        result = ToolpathService.generate(pocket_payload)
        assert result['layer_count'] == 2
        assert result['warnings'] == []
        assert result['gcode'].startswith('G21 G90\nG00 Z10.000\nM03\n')
        assert result['gcode'].endswith('M05\nM30\n')
        assert result['moves'][0]['kind'] == 'rapid'
        assert result['moves'][0]['z'] == pytest.approx(10.0)
        estimate = result['estimate']
        assert estimate['total_minutes'] > 0
        assert estimate['cut_distance_mm'] > estimate['rapid_distance_mm']
        assert estimate['display'].endswith('min')

    def test_inch_output(self, app, pocket_payload):
        """Test inch requests are generated in mm and emitted in inches."""
        pocket_payload['unit'] = 'inch'
        pocket_payload['shape'] = {'type': 'circle', 'diameter': 2}
        pocket_payload['cut'] = {'tool_diameter': 0.25, 'total_depth': 0.2, 'stepdown': 0.1,
                                 'stepover': 0.1, 'feedrate': 20}
        result = ToolpathService.generate(pocket_payload)
        lines = result['gcode'].splitlines()
        assert lines[0] == 'G20 G90'
        assert lines[1] == 'G00 Z0.3937'
        assert min(m['z'] for m in result['moves']) == pytest.approx(-5.08)

    def test_fit_arcs_from_config(self, app, pocket_payload):
        app.config['FIT_ARCS'] = True
        result = ToolpathService.generate(pocket_payload)
        arcs = [m for m in result['moves'] if m['kind'] == 'arc']
        assert arcs
        assert {'i', 'j', 'clockwise'} <= set(arcs[0])
        assert 'G03' in result['gcode']

    def test_letters(self, app, letters_payload):
        result = ToolpathService.generate(letters_payload)
        assert result['layer_count'] == 2
        assert min(m['z'] for m in result['moves']) == pytest.approx(-1.0)

    def test_letters_tool_too_large(self, app, letters_payload):
        letters_payload['shape']['mode'] = 'pocket'
        letters_payload['cut']['tool_diameter'] = 30
        with pytest.raises(ToolTooLargeError):
            ToolpathService.generate(letters_payload)

    def test_glyphs_only_for_text(self, app, pocket_payload):
        request = ToolpathService.build_request(pocket_payload)
        assert ToolpathService.glyph_outlines(request) is None


class TestExports:
    """Tests for G-code download and preview."""

    def test_generate_gcode(self, app, pocket_payload):
        gcode, filename = ToolpathService.generate_gcode(pocket_payload)
        assert filename == 'circle_pocket.nc'
        assert 'M03' in gcode

    def test_output_unit(self, app):
        assert ToolpathService.output_unit({'unit': 'INCH'}) == 'inch'
        assert ToolpathService.output_unit({}) == 'mm'

    def test_preview_png(self, app, pocket_payload):
        assert ToolpathService.preview_png(pocket_payload).startswith(b'\x89PNG')


class TestSerializeMove:
    def test_linear_move(self):
        assert serialize_move(ToolpathMove(1.0, 2.0, -3.0)) == {'x': 1.0, 'y': 2.0, 'z': -3.0, 'kind': 'cut'}

    def test_arc_move(self):
        move = ToolpathMove(0.0, 10.0, -1.0, MoveKind.ARC, i=-10.0, j=0.0, clockwise=False)
        data = serialize_move(move)
        assert data['kind'] == 'arc'
        assert (data['i'], data['j'], data['clockwise']) == (-10.0, 0.0, False)
