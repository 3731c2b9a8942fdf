import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Flask application configuration."""

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Text shapes: optional TrueType file, matplotlib's DejaVu Sans otherwise
    LETTER_FONT_PATH = os.environ.get('LETTER_FONT_PATH')

    # Defaults for requests that leave these out (mm, mm/min)
    DEFAULT_SAFE_HEIGHT_MM = float(os.environ.get('DEFAULT_SAFE_HEIGHT_MM', 10))
    DEFAULT_LEAD_IN_ABOVE_MM = float(os.environ.get('DEFAULT_LEAD_IN_ABOVE_MM', 2))
    RAPID_FEEDRATE_MM_MIN = float(os.environ.get('RAPID_FEEDRATE_MM_MIN', 10000))
    FIT_ARCS = os.environ.get('FIT_ARCS', 'false').lower() in ('1', 'true', 'yes')
