"""
Shared test fixtures and configuration.
"""

import tarfile
from pathlib import Path

import pytest

from omnetsetup.core.engine.context import BuildContext
from omnetsetup.core.models.setup import SetupConfig
from tests.fakes import FakeRunner, make_archive


@pytest.fixture
def archive_bytes() -> bytes:
    return make_archive()


@pytest.fixture
def fake_runner(archive_bytes: bytes) -> FakeRunner:
    return FakeRunner(archive_bytes=archive_bytes)


@pytest.fixture
def config() -> SetupConfig:
    return SetupConfig()


@pytest.fixture
def build_ctx(tmp_path: Path, config: SetupConfig, fake_runner: FakeRunner) -> BuildContext:
    return BuildContext(config=config, work_dir=tmp_path, runner=fake_runner, jobs=4)


@pytest.fixture
def unpacked(build_ctx: BuildContext, archive_bytes: bytes) -> Path:
    """Archive present and extracted in the working directory."""
    build_ctx.archive_path.write_bytes(archive_bytes)
    with tarfile.open(build_ctx.archive_path) as tar:
        tar.extractall(build_ctx.work_dir, filter="data")
    return build_ctx.source_dir
