"""Stylus import resolver - Compile Stylus style-sheets with host-aware import resolution."""

from .analyzer import ImportAnalyzer
from .context import BuildContext, BuildError
from .finder import ImportFinder
from .graph import DependencyGraphBuilder
from .host import HostResolveError, HostResolver, HostResolverConfig
from .injector import ImportInjector
from .manager import CompileManager, CompileResult, compile_file
from .options import LoaderOptions, load_options
from .types import (
    DependencyIndex,
    DependencyRecord,
    Failed,
    ImportSite,
    ResolutionContext,
    Resolved,
    ResolvedMany,
)

__all__ = (
    "BuildContext",
    "BuildError",
    "CompileManager",
    "CompileResult",
    "DependencyGraphBuilder",
    "DependencyIndex",
    "DependencyRecord",
    "Failed",
    "HostResolver",
    "HostResolverConfig",
    "HostResolveError",
    "ImportAnalyzer",
    "ImportFinder",
    "ImportInjector",
    "ImportSite",
    "LoaderOptions",
    "ResolutionContext",
    "Resolved",
    "ResolvedMany",
    "compile_file",
    "load_options",
)
