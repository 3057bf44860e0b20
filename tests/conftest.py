"""
Shared pytest fixtures and utilities for the curimport test suite.
"""

import zipfile
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Dict, Union

import pytest
import yaml
from PIL import Image

FileContent = Union[str, bytes]

SAMPLE_META_TXT = """\
Title: Alien Hominid
Series: Hominid
Developer: The Behemoth
Publisher: Newgrounds
Platform: Flash
Play Mode: Single Player
Status: Playable
Extreme: No
Genre: Action
Source: https://www.newgrounds.com/portal/view/59593
Launch Command: http://uploads.ungrounded.net/59000/59593_alien_booya202c.swf
Original Description:
    Alien Hominid is a run and gun game.
    Play as a small yellow alien.
Additional Applications:
    Extras: manuals
    Message: Use the arrow keys to move.
"""


def make_png(size=(4, 4), color=(255, 0, 0)) -> bytes:
    """Encode a tiny PNG image."""
    buffer = BytesIO()
    Image.new('RGB', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


def _as_bytes(content: FileContent) -> bytes:
    return content.encode('utf-8') if isinstance(content, str) else content


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Shallow+deep merge helper for fixture config dictionaries.
    """
    result: Dict[str, Any] = dict(base)
    for key, value in override.items():
        if (
            key in result
            and isinstance(result[key], dict)
            and isinstance(value, dict)
        ):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value
    return result


@pytest.fixture
def png_bytes() -> bytes:
    """A valid PNG image."""
    return make_png()


@pytest.fixture
def sample_files(png_bytes) -> Dict[str, FileContent]:
    """Files of a complete curation (meta, content, thumbnail, screenshot)."""
    return {
        'meta.txt': SAMPLE_META_TXT,
        'content/uploads.ungrounded.net/59000/59593_alien_booya202c.swf': b'FWS\x0a',
        'content/uploads.ungrounded.net/59000/readme.txt': 'readme',
        'logo.png': png_bytes,
        'ss.png': make_png(color=(0, 0, 255)),
    }


@pytest.fixture
def make_curation_zip(tmp_path: Path) -> Callable[..., Path]:
    """
    Build a curation zip archive in the temp workspace.

    Usage:
        path = make_curation_zip({"meta.txt": "Title: X", "content/a.swf": b"..."})
    """
    counter = {'n': 0}

    def _builder(files: Dict[str, FileContent], name: str = None) -> Path:
        counter['n'] += 1
        archive_path = tmp_path / 'archives' / (name or f"curation{counter['n']}.zip")
        archive_path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, 'w') as zf:
            for entry, content in files.items():
                zf.writestr(entry, _as_bytes(content))
        return archive_path

    return _builder


@pytest.fixture
def make_curation_folder(tmp_path: Path) -> Callable[..., Path]:
    """
    Build a curation folder in the temp workspace.

    Usage:
        path = make_curation_folder({"meta.yaml": "Title: X", "content/a.swf": b"..."})
    """
    counter = {'n': 0}

    def _builder(files: Dict[str, FileContent], name: str = None) -> Path:
        counter['n'] += 1
        folder = tmp_path / 'folders' / (name or f"curation{counter['n']}")
        folder.mkdir(parents=True, exist_ok=True)
        for entry, content in files.items():
            path = folder / entry
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(_as_bytes(content))
        return folder

    return _builder


@pytest.fixture
def library_root(tmp_path: Path) -> Path:
    """Empty library root folder."""
    root = tmp_path / 'library'
    root.mkdir()
    return root


@pytest.fixture
def make_config(tmp_path: Path, library_root: Path) -> Callable[[Dict[str, Any]], Path]:
    """
    Create a minimal config.yaml in a temp directory.

    Usage:
        path = make_config({"runtime": {"dry_run": True}})
    """

    def _builder(overrides: Dict[str, Any] | None = None) -> Path:
        base = {
            "paths": {
                "library": str(library_root),
            },
            "logging": {"level": "WARNING", "console": False},
        }
        if overrides:
            base = merge_dicts(base, overrides)

        cfg_path = tmp_path / "config.yaml"
        cfg_path.write_text(yaml.safe_dump(base))
        return cfg_path

    return _builder


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    """Factory for PNG images of a given size and color."""
    return make_png
