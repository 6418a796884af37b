"""Common literal values used across spec_pages.

These constants keep artifact filenames, CSS hooks, and default-file
preferences centralized so the build pipeline, the client library, and tests
import the same values without drifting. Intended for internal use within the
spec_pages package.

Examples
--------
>>> from spec_pages import _constants
>>> _constants.SEARCH_INDEX_FILE
'search_index.json'
>>> _constants.PREFERRED_DEFAULT_FILES[0]
'_index.html'
"""

SEARCH_INDEX_FILE = "search_index.json"
SEARCH_MAP_FILE = "search_map.json"
VERSIONS_FILE = "versions.json"

PREFERRED_DEFAULT_FILES = ("_index.html", "index.html", "spec.html", "readme.html")

HEADER_ANCHOR_CLASS = "header-anchor"
INTERACTIVE_SEPARATOR = "---JMESPATH---"

PLAYGROUND_CLASSES = {
    "container": "jmespath-playground",
    "toggle_button": "playground-toggle-button",
    "content": "playground-content",
    "inputs": "playground-inputs",
    "label": "playground-label",
    "json_input": "json-input",
    "invalid_json": "invalid-json",
    "error_inline": "playground-error-inline",
    "query_input": "query-input",
    "output_area": "output-area",
    "error_area": "error-area",
    "toggle_icon": "toggle-icon",
}

SEARCH_DEBOUNCE_SECONDS = 0.25
SEARCH_RESULT_LIMIT = 20
SNIPPET_LENGTH = 100
