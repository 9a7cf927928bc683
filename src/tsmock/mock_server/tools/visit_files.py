"""
Analysis entry points: select files and classes, collect their endpoints.
"""

import logging
import re
from pathlib import Path
from typing import Any

from ..models.mock_models import AnalysisError, Endpoint, ScanResult
from .call_site_scanner import CallSiteScanner, get_class_name
from .config_resolver import TsConfigResolver
from .endpoint_extractor import EndpointExtractor
from .type_checker import CLASS_NODES, Program
from .type_resolver import TypeResolver
from .typescript_parser import TypeScriptParser

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDE_DIRS = {
    "node_modules",
    ".git",
    "dist",
    "build",
}

Patterns = str | re.Pattern | list[str | re.Pattern] | None


def is_matched(target: str, patterns: Patterns) -> bool:
    """
    Check whether `target` matches any of the given regular expressions.

    A single pattern or a list is accepted; an empty list or None matches
    nothing.
    """
    if patterns is None:
        return False
    if not isinstance(patterns, list):
        patterns = [patterns]
    return any(re.search(pattern, target) for pattern in patterns)


def _should_exclude_path(path: Path, exclude_dirs: set[str]) -> bool:
    return any(part in exclude_dirs for part in path.parts[:-1])


def get_files_from_path_by_rule(rule: str, path: str | Path) -> list[str]:
    """Absolute paths of files under `path` matching the glob `rule`."""
    base = Path(path).resolve()
    files = []
    for match in base.glob(rule):
        if match.is_file() and not _should_exclude_path(match.relative_to(base), DEFAULT_EXCLUDE_DIRS):
            files.append(str(match))

    return sorted(set(files))


def get_classes(node: Any) -> list[Any]:
    """Class declarations anywhere in a tree, in source order."""
    classes = []

    def traverse(current):
        if current.type in CLASS_NODES and current.child_by_field_name("name") is not None:
            classes.append(current)
        for child in current.named_children:
            traverse(child)

    traverse(node)
    return classes


def visit_files(
    config_path: str | None,
    files: list[str],
    includes: Patterns,
    excludes: Patterns = None,
    parser: TypeScriptParser | None = None,
) -> ScanResult:
    """
    Scan `files` for request call sites in classes selected by name.

    A class is scanned when its name matches `includes` and does not match
    `excludes`. Declaration files contribute symbols only. Endpoints
    accumulate across every class of every file; a URL found twice keeps its
    first position and takes the last call site's shape.
    """
    config_resolver = TsConfigResolver(config_path)
    program = Program(files, config_resolver.get_compiler_options(), parser=parser)
    checker = program.get_type_checker()
    scanner = CallSiteScanner(checker, TypeResolver(checker))

    endpoints: dict[str, Endpoint] = {}
    result = ScanResult(endpoints=[], errors=list(program.errors))
    if config_resolver.error:
        result.errors.insert(0, _config_error(config_resolver))

    for source_file in program.get_source_files():
        # ignore *.d.ts
        if source_file.is_declaration_file:
            continue
        result.files_analyzed += 1

        extractor = EndpointExtractor(scanner, source_file.path)
        for class_node in get_classes(source_file.root_node):
            class_name = get_class_name(class_node)
            if not is_matched(class_name, includes) or is_matched(class_name, excludes):
                continue

            for expression in scanner.find_request_expressions(class_node):
                endpoint = extractor.serialize_expression(expression)
                if endpoint is None:
                    continue
                if endpoint.url in endpoints:
                    logger.debug("Duplicate request url %s in %s", endpoint.url, class_name)
                endpoints[endpoint.url] = endpoint

        result.errors.extend(extractor.errors)

    result.endpoints = list(endpoints.values())
    logger.info("Found %d endpoints in %d files", len(result.endpoints), result.files_analyzed)
    return result


def _config_error(config_resolver: TsConfigResolver) -> AnalysisError:
    return AnalysisError(code="CONFIG_ERROR", message=config_resolver.error, file=config_resolver.path)


def get_structure_from_files(
    base_path: str,
    config_path: str | None,
    includes: Patterns,
    excludes: Patterns = None,
    parser: TypeScriptParser | None = None,
) -> ScanResult:
    """
    Scan every TypeScript file under `base_path`.

    Raises:
        FileNotFoundError: If `base_path` is not an existing directory
    """
    if not Path(base_path).is_dir():
        raise FileNotFoundError(f"Base path does not exist: {base_path}")

    files = get_files_from_path_by_rule("**/*.ts", base_path)
    if TsConfigResolver(config_path).jsx_enabled:
        files = sorted(set(files) | set(get_files_from_path_by_rule("**/*.tsx", base_path)))

    return visit_files(config_path, files, includes, excludes, parser=parser)
