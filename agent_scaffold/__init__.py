"""agent-scaffold: materialise AI-assistant project templates.

Resolves template variables, selects the files whose conditions hold, and
renders them with Jinja2.
"""

__version__ = "0.1.0"
