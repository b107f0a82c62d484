"""
Flag defaults and fixed name lists. Extension lists are dot-prefixed and lowercase.
"""

# region ---[ Known Binary Extensions ]---

DEFAULT_BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Compiled and executables
        ".pyc",
        ".pyo",
        ".pyd",
        ".exe",
        ".dll",
        ".so",
        ".dylib",
        ".o",
        ".a",
        ".class",
        ".app",
        ".deb",
        ".rpm",
        ".wasm",
        # Archives
        ".zip",
        ".tar",
        ".gz",
        ".tgz",
        ".bz2",
        ".xz",
        ".7z",
        ".rar",
        ".jar",
        ".war",
        ".ear",
        # Images
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".ico",
        ".webp",
        ".tif",
        ".tiff",
        # Audio and video
        ".mp3",
        ".mp4",
        ".avi",
        ".mov",
        ".wav",
        ".flac",
        ".mkv",
        # Documents and fonts
        ".pdf",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        # Database and data files
        ".db",
        ".sqlite",
        ".sqlite3",
        ".dat",
        ".bin",
    }
)

# Bytes read from the start of a file when probing for text.
DEFAULT_SNIFF_SIZE = 8192

# endregion ---[ Known Binary Extensions ]---
# region ---[ Cache Purge ]---

DEFAULT_PURGE_DIR_NAMES: tuple[str, ...] = ("__pycache__",)
DEFAULT_PURGE_FILE_GLOBS: tuple[str, ...] = ("*.pyc",)

# endregion ---[ Cache Purge ]---
# region ---[ Output ]---

DEFAULT_OUTPUT_PREFIX = "_concat-"
DEFAULT_OUTPUT_STEM = "output"
DEFAULT_OUTPUT_DIR = "."
DEFAULT_TITLE = "Concatenated Files"
NO_FILES_MESSAGE = "No files to concatenate: no files matched the criteria."
TREE_UNAVAILABLE_MESSAGE = "Tree unavailable."
RULE_WIDTH = 80

# endregion ---[ Output ]---
# region ---[ Default CLI Options ]---

DEFAULT_RUN_PATH = "."
DEFAULT_RECURSIVE = True
DEFAULT_INCLUDE_HIDDEN = False
DEFAULT_INCLUDE_BINARY = False
DEFAULT_CASE_SENSITIVE = False
DEFAULT_FORMAT = "xml"
DEFAULT_SHOW_TREE = False
DEFAULT_SHOW_DIR_LIST = True
DEFAULT_SHOW_TITLE = True
DEFAULT_SHOW_PARAMS = True
DEFAULT_SHOW_PATHS = True
DEFAULT_PURGE_PYCACHE = True
DEFAULT_EXTENSIONS_FILTER = []
DEFAULT_EXCLUDE_EXTENSIONS_FILTER = []
DEFAULT_INCLUDE_FILTER = []
DEFAULT_EXCLUDE_FILTER = []

# endregion ---[ Default CLI Options ]---
