"""Shared test fixtures for the landing exporter."""

import os
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from unittest.mock import patch

import pytest

from landing_exporter.config.loader import clear_config_cache
from landing_exporter.config.models import ScannerConfig


def set_age(path: Path, minutes: float) -> None:
    """Set a path's access and modification time to ``minutes`` ago."""
    stamp = time.time() - minutes * 60
    os.utime(path, (stamp, stamp))


@pytest.fixture
def age_path() -> Callable[[Path, float], None]:
    """Return a helper that back-dates a path by a number of minutes."""
    return set_age


@pytest.fixture
def make_folder() -> Callable[..., Path]:
    """Return a helper that creates a directory holding the given files.

    ``files`` maps file names to content (or is an iterable of names, in
    which case each file holds its own name). With ``age_minutes`` the files
    and then the directory itself are back-dated.
    """

    def _make(
        path: Path,
        files: dict[str, str] | Iterable[str] = (),
        *,
        age_minutes: float | None = None,
    ) -> Path:
        path.mkdir(parents=True, exist_ok=True)
        items = files.items() if isinstance(files, dict) else ((n, n) for n in files)
        for name, content in items:
            file_path = path / name
            file_path.write_text(content, encoding="utf-8")
            if age_minutes is not None:
                set_age(file_path, age_minutes)
        if age_minutes is not None:
            set_age(path, age_minutes)
        return path

    return _make


@pytest.fixture
def landing_root(tmp_path: Path) -> Path:
    """Create an empty landing root."""
    root = tmp_path / "landing"
    root.mkdir()
    return root


@pytest.fixture
def scanner_config(landing_root: Path) -> ScannerConfig:
    """Scanner configuration rooted at the temporary landing root."""
    return ScannerConfig(root_path=landing_root, env="prod")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path):
    """Keep tests away from the user's config file and environment.

    Points LANDING_EXPORTER_CONFIG_PATH at a missing file, drops any other
    LANDING_EXPORTER_* variables and clears the config file cache.
    """
    env = {k: v for k, v in os.environ.items() if not k.startswith("LANDING_EXPORTER_")}
    env["LANDING_EXPORTER_CONFIG_PATH"] = str(tmp_path / "no-such-config.toml")
    clear_config_cache()
    with patch.dict(os.environ, env, clear=True):
        yield
    clear_config_cache()


@pytest.fixture
def landing_tree(landing_root: Path, make_folder) -> Path:
    """Build a landing root with one prod tenant ("acme") in every category.

    Layout::

        acme-landing-dir-prod/
            upload-1/observed.txt       observed zombie (90 min old)
            upload-2/data.csv           non-observed zombie (90 min old)
            upload-3/data.csv           fresh, not a zombie
        Failed/acme-landing-dir-prod/
            job-1/fail.txt              failure, outside the recent window
            job-2/fail.txt + scan.png   recent failure
        acme-transcoded/
            t-1/out.mp4                 transcoded folder with files
            t-2/                        empty, not counted
        beta-landing-dir-dev/           other env, never scanned
        scratch/                        not a landing directory
    """
    tenant_dir = landing_root / "acme-landing-dir-prod"
    make_folder(tenant_dir / "upload-1", ["observed.txt"], age_minutes=90)
    make_folder(tenant_dir / "upload-2", ["data.csv"], age_minutes=90)
    make_folder(tenant_dir / "upload-3", ["data.csv"])

    failed_dir = landing_root / "Failed" / "acme-landing-dir-prod"
    make_folder(failed_dir / "job-1", {"fail.txt": "checksum mismatch"}, age_minutes=30 * 60)
    make_folder(failed_dir / "job-2", {"fail.txt": "timeout", "scan.png": ""})

    transcoded_dir = landing_root / "acme-transcoded"
    make_folder(transcoded_dir / "t-1", ["out.mp4"])
    make_folder(transcoded_dir / "t-2")

    make_folder(landing_root / "beta-landing-dir-dev" / "upload-1", ["data.csv"])
    make_folder(landing_root / "scratch")
    return landing_root
