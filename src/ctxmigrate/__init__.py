"""ctxmigrate - discover, classify and migrate AI assistant context files."""

__version__ = "0.1.0"
