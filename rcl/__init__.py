"""
RCL - Rule Condition Language codec.

Packages:
- codec: grammar, references, placeholders, compiler, decompiler, effects
- policy: policy documents, whole-policy validation, rule compilation
- config: environment-driven settings
- utils: logging
- cli: command-line handlers (see rcl_cli.py)
"""

__version__ = "0.1.0"
