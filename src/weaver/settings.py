from __future__ import annotations
import os

RUNBOOK_FILE = os.environ.get("WEAVER_RUNBOOK", "runbook.json")
OUTPUT_FILE = os.environ.get("WEAVER_OUTPUT", "README.md")
SCRIPT_PREFIX = os.environ.get("WEAVER_SCRIPT_PREFIX", ".weaver-commands")
