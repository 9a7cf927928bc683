"""Shared fixtures for mock server tests."""

import os
from pathlib import Path

import pytest

from tsmock.mock_server.config import reset_config
from tsmock.mock_server.tools.call_site_scanner import CallSiteScanner
from tsmock.mock_server.tools.type_checker import Program
from tsmock.mock_server.tools.type_resolver import TypeResolver

# Transport layer shared by most fixtures: `Request.get` forwards to `fetch`,
# whose second type parameter declares the response body.
HTTP_SOURCE = """
export interface Resp<T = any> {
  code: number;
  message: string;
  data: T;
}

function fetch<T = any, R = Resp<T>>(url: string, body?: any): Promise<R> {
  return null as any;
}

class HttpClient {
  get<T = any>(url: string) {
    return fetch<T>(url);
  }

  post<T = any>(url: string, body?: any) {
    return fetch<T>(url, body);
  }
}

export const Request = new HttpClient();
"""

MODELS_SOURCE = """
export interface User {
  id: number;
  name: string;
}

export enum Api {
  USER = '/user/1',
  USERS = '/users',
}
"""


@pytest.fixture
def http_source():
    return HTTP_SOURCE


@pytest.fixture
def models_source():
    return MODELS_SOURCE


@pytest.fixture
def write_project(tmp_path):
    """Write a {relative path: content} mapping under tmp_path/src and return the src path."""

    def _write(files: dict[str, str], root: Path | None = None) -> Path:
        base = root or tmp_path / "src"
        for relative, content in files.items():
            path = base / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return base

    return _write


@pytest.fixture
def build_scanner():
    """Build a Program over files and return (program, scanner)."""

    def _build(paths: list[Path]) -> tuple[Program, CallSiteScanner]:
        program = Program([str(path) for path in paths])
        checker = program.get_type_checker()
        return program, CallSiteScanner(checker, TypeResolver(checker))

    return _build


@pytest.fixture
def project_root(tmp_path):
    """Point MCP_FILE_ROOT at tmp_path and reset the global configuration."""
    old_root = os.environ.get("MCP_FILE_ROOT")
    os.environ["MCP_FILE_ROOT"] = str(tmp_path)
    reset_config()

    try:
        yield tmp_path
    finally:
        if old_root:
            os.environ["MCP_FILE_ROOT"] = old_root
        else:
            os.environ.pop("MCP_FILE_ROOT", None)
        reset_config()
