import os
from dotenv import load_dotenv

load_dotenv()

# =========================================================
# Logging
# =========================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# =========================================================
# Chart time
# =========================================================
# Solar term tables and birth times are read as wall-clock time in this zone
TIMEZONE = os.getenv("FOURPILLARS_TIMEZONE", "Asia/Shanghai")

# =========================================================
# Datasets
# =========================================================
# JSON solar term table; the Swiss Ephemeris adapter is used when unset
SOLAR_TERMS_PATH = os.getenv("FOURPILLARS_SOLAR_TERMS")
LUNAR_MAP_PATH = os.getenv("FOURPILLARS_LUNAR_MAP")
SOLAR_MAP_PATH = os.getenv("FOURPILLARS_SOLAR_MAP")
EPHE_PATH = os.getenv("FOURPILLARS_EPHE_PATH")

# =========================================================
# Luck cycles and output
# =========================================================
LUCK_CYCLE_COUNT = int(os.getenv("FOURPILLARS_LUCK_CYCLES", "8"))
CHART_DIR = os.getenv("FOURPILLARS_CHART_DIR", os.path.join(os.getcwd(), "chart_data"))
