"""
huntcore - analysis core of a JavaScript security scanner.

Two detection strategies share one finding model:

- huntcore.ir lowers a syntax tree (huntcore.javascript builds one with
  tree-sitter) into an IR that call-site analyzers (huntcore.call) inspect.
- huntcore.text matches regular expressions against raw file content.
"""

__version__ = "0.1.0"
