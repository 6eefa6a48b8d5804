"""Configuration constants.

Values that are fixed by Ceedling itself or by the report/command formats,
and therefore are not user-configurable. For configurable values, see
models.py.
"""

import sys

# =============================================================================
# Defaults for configurable values
# =============================================================================

DEFAULT_TOOL = "ceedling"
"""External build tool executable."""

DEFAULT_DEBUG_LAUNCH_CONFIG = "ceedling"
"""Host debug configuration name used for the synthesized default project."""

DEFAULT_TEST_COMMAND_ARGS = ("test:${TEST_ID}",)
"""Arguments used to run one test file; ${TEST_ID} is the file name."""

TEST_ID_PLACEHOLDER = "${TEST_ID}"

DEFAULT_TEST_CASE_MACROS = ("TEST_CASE",)
DEFAULT_TEST_RANGE_MACROS = ("TEST_RANGE",)

# =============================================================================
# Project configuration (project.yml) defaults
# =============================================================================

DEFAULT_PROJECT_KEY = "default"
DEFAULT_PROJECT_FILE = "project.yml"

DEFAULT_BUILD_ROOT = "build"
DEFAULT_TEST_PREFIX = "test|spec|should"
DEFAULT_TEST_FILE_PREFIX = "test_"
DEFAULT_EXECUTABLE_EXTENSION = ".exe" if sys.platform == "win32" else ".out"

LEGACY_REPORT_FILENAME = "report.xml"
"""xml_tests_report plugin artifact (Ceedling < 0.31.2)."""

MODERN_REPORT_FILENAME = "cppunit_tests_report.xml"
"""report_tests_log_factory cppunit artifact (Ceedling >= 0.31.2)."""

REPORT_FACTORY_PLUGIN = "report_tests_log_factory"
REPORT_FACTORY_FORMAT = "cppunit"

REPORT_ARTIFACT_SUBDIRS = ("test", "gcov")
"""Artifact subdirectories written by test:* and gcov:* respectively."""

# =============================================================================
# Tool protocol
# =============================================================================

MODERN_VERSION = "0.31.2"
"""First Ceedling release using the modern command line and report plugin."""

FILE_TYPES_LEGACY = ("test",)
FILE_TYPES_MODERN = ("assembly", "header", "source", "test")

FILE_LIST_ITEM_PREFIX = " - "
"""Prefix of each entry printed by `ceedling files:<type>`."""

COMPILE_FAILED_MARKER = "ERROR: Ceedling Failed"

ROOT_SUITE_ID = "root"
ROOT_SUITE_LABEL = "Ceedling"
