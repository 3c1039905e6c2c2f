"""
QuantumCalc Configuration Settings
"""
import os

# Application Settings
APP_NAME = "QuantumCalc Scientific Calculator"
VERSION = "1.0.0"

# Engine Settings
DEFAULT_PRECISION = 15           # fractional digits kept on results
MAX_PRECISION = 20
MAX_INPUT_LENGTH = 15            # characters in the input buffer
ZERO_THRESHOLD = 1e-14           # magnitudes below this collapse to 0
REPRESENTATION_DIGITS = 14       # first rounding stage (binary noise)
THOUSANDS_SEPARATOR = True

# Display thresholds for exponential notation
EXPONENT_UPPER = 1e12
EXPONENT_LOWER = 1e-6
EXPONENT_DIGITS = 6

# History Settings
MAX_HISTORY_ITEMS = 50

# Modes
ANGLE_MODES = ["DEG", "RAD"]
DEFAULT_ANGLE_MODE = "DEG"
THEMES = ["light", "dark"]
DEFAULT_THEME = "light"

# Error messages shown to the user
ERROR_DIVIDE_BY_ZERO = "Cannot divide by zero"
ERROR_NEGATIVE_SQRT = "Square root of negative number"
ERROR_DOMAIN = "Math domain error"

# Database Settings
DB_PATH = os.path.join(os.path.dirname(__file__), "quantumcalc.db")

# Web API settings
WEB_HOST = '0.0.0.0'
WEB_PORT = 8888

# Logging
LOG_LEVEL = os.getenv("QUANTUMCALC_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("QUANTUMCALC_LOG_JSON", "false").lower() in ("1", "true", "yes")
