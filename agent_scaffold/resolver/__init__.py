"""Scaffold resolver -- variable resolution, file selection, and rendering.

Pure and synchronous: given definitions, rules, and answers it returns data
and never touches the file system (except :func:`load_manifest`, which reads
the template directory once).

Quick usage::

    from agent_scaffold.resolver import load_manifest, resolve, select_files, render

    manifest = load_manifest("templates/default")
    resolved = resolve(manifest, {"project_type": "Python"}, seed=7)
    for descriptor in select_files(manifest, resolved):
        text = render(descriptor, resolved)
"""

from agent_scaffold.resolver.loader import build_manifest, load_manifest
from agent_scaffold.resolver.models import (
    BoolVariable,
    ChoiceVariable,
    FileDescriptor,
    ResolvedConfig,
    StringVariable,
    TemplateFile,
    TemplateManifest,
)
from agent_scaffold.resolver.render import render, select_files
from agent_scaffold.resolver.resolve import new_seed, resolve

__all__ = [
    "BoolVariable",
    "ChoiceVariable",
    "FileDescriptor",
    "ResolvedConfig",
    "StringVariable",
    "TemplateFile",
    "TemplateManifest",
    "build_manifest",
    "load_manifest",
    "new_seed",
    "render",
    "resolve",
    "select_files",
]
