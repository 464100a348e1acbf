"""Pytest configuration and fixtures for SafeChange CLI tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Dict, Generator

import pytest

from safechange_cli.config_manager import ScanConfig
from safechange_cli.orchestrator import DependencyAnalyzer
from safechange_cli.storage import PlanStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_home(temp_dir: Path, monkeypatch) -> Path:
    """Point config and plan storage at a throwaway directory."""
    home = temp_dir / "home"
    monkeypatch.setattr("safechange_cli.config.BASE_DIR", home)
    monkeypatch.setattr("safechange_cli.config.PLANS_DIR", home / "plans")
    monkeypatch.setattr("safechange_cli.config.CONFIG_FILE", home / "config.toml")
    return home


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample JS/TS project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def project_dir(temp_dir: Path, sample_project_path: Path, monkeypatch) -> Path:
    """Copy the sample project into a temp dir and chdir into it.

    Analysis then runs with the default relative root ``src`` so path keys
    look like ``src/lib/utils/format.ts`` regardless of where the
    repository is checked out.
    """
    workdir = temp_dir / "project"
    shutil.copytree(sample_project_path, workdir)
    monkeypatch.chdir(workdir)
    return workdir


@pytest.fixture
def analyzer() -> DependencyAnalyzer:
    return DependencyAnalyzer(ScanConfig(max_workers=4))


@pytest.fixture
def sample_records(project_dir: Path, analyzer: DependencyAnalyzer):
    return analyzer.analyze_project(Path("src"))


@pytest.fixture
def chain_sources() -> Dict[str, str]:
    """Three files a <- b <- c."""
    return {
        "a": "export const foo = 1\n",
        "b": "import { foo } from './a'\nexport function useFoo() { return foo }\n",
        "c": "import { useFoo } from './b'\n",
    }


@pytest.fixture
def plan_store() -> PlanStore:
    return PlanStore()


@pytest.fixture
def sample_ts_code() -> str:
    """Sample TypeScript code for extractor tests."""
    return """import { a, b as c } from './helpers'
import React from 'react'
import * as path from 'path'
const fs = require('fs')

export const LIMIT = 10
export let counter = 0
export var legacy = true
export function compute(x: number) { return x * LIMIT }
export async function load() { return await fetch('/x') }
export class Service {}
export interface Options { verbose: boolean }
export type Mode = 'a' | 'b'
export default Service
"""
