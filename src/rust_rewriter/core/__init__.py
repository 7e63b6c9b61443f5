"""
Core Package.

Contains the rewriting backend:
- Rewrite model, renderer and applier (`core.rewrite`)
- Orchestration engine
- Trace logging and failure details
"""
