"""
codeatlas.config.defaults - Default configuration values
"""

from codeatlas.graph.code_structure import (
    BUILD_PATTERNS,
    ROOT_SEGMENTS,
    SOURCE_EXTENSIONS,
    TEST_PATTERNS,
)
from codeatlas.graph.models import MODULE_ORDER, REFERENCED_ORDER

DEFAULT_CONFIG = {
    "directories": {
        "docs": ".ai-docs/docs",
        "files": ".ai-docs/files",
        "output": ".ai-docs/docs/ai-tree.json",
    },
    "scan": {
        "analyze_code": True,
        "suggest_only": False,
        "auto_link": True,
        "exclude": [],
    },
    "code": {
        "root_segments": list(ROOT_SEGMENTS),
        "source_extensions": list(SOURCE_EXTENSIONS),
        "test_patterns": list(TEST_PATTERNS),
        "build_patterns": list(BUILD_PATTERNS),
    },
    "tree": {
        "referenced_order": REFERENCED_ORDER,
        "module_order": MODULE_ORDER,
    },
}
