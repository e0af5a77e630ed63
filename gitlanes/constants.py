"""
Centralized constants for gitlanes.

Layout geometry lives in gitlanes.graph.types; this module holds the
application-level strings and defaults.
"""

# Settings file, relative to ~/.config
SETTINGS_FILE = "gitlanes/settings.json"

# History loading
DEFAULT_MAX_COMMITS = 1000

# Ref decorations, as printed by `git log --decorate`
HEAD_REF = "HEAD"
HEAD_POINTER_PREFIX = "HEAD -> "
TAG_DECORATION_PREFIX = "tag: "
