"""
Curation meta file parser.

Reads the ``Key: Value`` text format of ``meta.txt`` and its YAML
counterpart ``meta.yaml`` into a CurationMeta. Both parsers are permissive:
unknown keys are ignored, missing fields stay unset and bad input produces
diagnostics instead of exceptions.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .models import CurationMeta, GameMeta
from .result import Parsed

logger = logging.getLogger(__name__)

# Normalized meta file key -> metadata field name
META_KEYS: Dict[str, str] = {
    'title': 'title',
    'alternate titles': 'alternateTitles',
    'alternate title': 'alternateTitles',
    'series': 'series',
    'developer': 'developer',
    'developers': 'developer',
    'publisher': 'publisher',
    'publishers': 'publisher',
    'platform': 'platform',
    'application path': 'applicationPath',
    'launch command': 'launchCommand',
    'language': 'language',
    'languages': 'language',
    'play mode': 'playMode',
    'status': 'status',
    'extreme': 'extreme',
    'genre': 'genre',
    'genres': 'genre',
    'tags': 'tags',
    'source': 'source',
    'version': 'version',
    'release date': 'releaseDate',
    'library': 'library',
    'notes': 'notes',
    'original description': 'originalDescription',
    'author notes': 'authorNotes',
    'curation notes': 'authorNotes',
}

ADD_APPS_KEY = 'additional applications'

# Add app headings with a special application path
SPECIAL_ADD_APPS: Dict[str, str] = {
    'extras': ':extras:',
    'message': ':message:',
}

ADD_APP_KEYS: Dict[str, str] = {
    'application path': 'applicationPath',
    'launch command': 'launchCommand',
}

_LINE_PATTERN = re.compile(r'^(?P<key>[^:]+?)[ \t]*:[ \t]*(?P<value>.*?)[ \t]*$')

# (line number, indent, key or free text, value or None for free text)
Token = Tuple[int, int, str, Optional[str]]


def normalize_key(key: str) -> str:
    """Lower-case a meta key and collapse inner whitespace."""
    return ' '.join(key.split()).lower()


def parse_curation_meta(text: str) -> Parsed[CurationMeta]:
    """
    Parse the text of a ``meta.txt`` file.

    Args:
        text: Raw file content

    Returns:
        Parsed CurationMeta with diagnostics for lines that were skipped.
        Text without a single ``Key: Value`` line yields an empty record and
        one diagnostic.
    """
    errors: List[str] = []
    tokens = _tokenize(text, errors)

    if not tokens:
        if text.strip():
            errors.append("No 'Key: Value' lines found in meta file")
        return Parsed(CurationMeta(), errors)

    meta = CurationMeta()
    i = 0
    while i < len(tokens):
        line_no, indent, key, value = tokens[i]

        # Lines indented deeper than this key belong to it
        block_end = i + 1
        while block_end < len(tokens) and tokens[block_end][1] > indent:
            block_end += 1
        block = tokens[i + 1:block_end]
        i = block_end

        norm = normalize_key(key)
        if norm == ADD_APPS_KEY:
            meta.add_apps.extend(_parse_add_apps_block(block, errors))
        elif norm in META_KEYS:
            if value in ('', '|'):
                if block:
                    meta.game[META_KEYS[norm]] = _join_block(block)
            else:
                meta.game[META_KEYS[norm]] = value
                if block:
                    errors.append(f"Line {block[0][0]}: unexpected indented line under '{key}'")
        else:
            logger.debug(f"Ignoring unknown meta key on line {line_no}: {key}")

    return Parsed(meta, errors)


def _tokenize(text: str, errors: List[str]) -> List[Token]:
    """
    Split meta text into tokens.

    Lines indented below a multi-line value opener are kept verbatim as free
    text. Any other line must be ``Key: Value`` shaped; lines that are not
    are reported and dropped.
    """
    tokens: List[Token] = []
    text_block_indent: Optional[int] = None
    add_apps_indent: Optional[int] = None

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.expandtabs(4).rstrip()
        if not line.strip():
            continue

        indent = len(line) - len(line.lstrip())

        if text_block_indent is not None:
            if indent > text_block_indent:
                tokens.append((line_no, indent, line.strip(), None))
                continue
            text_block_indent = None

        if line.lstrip().startswith('#'):
            continue

        if add_apps_indent is not None and indent <= add_apps_indent:
            add_apps_indent = None

        match = _LINE_PATTERN.match(line.strip())
        if not match:
            errors.append(f"Line {line_no}: expected 'Key: Value', got '{line.strip()}'")
            continue

        key = match.group('key')
        value = match.group('value')
        tokens.append((line_no, indent, key, value))

        norm = normalize_key(key)
        if norm == ADD_APPS_KEY:
            add_apps_indent = indent
        elif add_apps_indent is None and norm in META_KEYS and value in ('', '|'):
            text_block_indent = indent

    return tokens


def _join_block(block: List[Token]) -> str:
    """Join the lines of a multi-line value, keeping relative indentation."""
    base = min(indent for _, indent, _, _ in block)
    return '\n'.join(' ' * (indent - base) + text for _, indent, text, _ in block)


def _parse_add_apps_block(block: List[Token], errors: List[str]) -> List[GameMeta]:
    """Parse the lines below ``Additional Applications:``."""
    add_apps: List[GameMeta] = []
    if not block:
        return add_apps

    top = min(indent for _, indent, _, _ in block)
    current: Optional[GameMeta] = None

    for line_no, indent, key, value in block:
        if indent == top:
            current = None
            special = SPECIAL_ADD_APPS.get(normalize_key(key))
            if special:
                add_apps.append({
                    'heading': key,
                    'applicationPath': special,
                    'launchCommand': value or '',
                })
            else:
                current = {'heading': key, 'applicationPath': '', 'launchCommand': ''}
                add_apps.append(current)
            continue

        field_name = ADD_APP_KEYS.get(normalize_key(key))
        if current is None:
            errors.append(f"Line {line_no}: '{key}' is not inside an application heading")
        elif field_name:
            current[field_name] = value or ''
        else:
            logger.debug(f"Ignoring unknown add app key on line {line_no}: {key}")

    return add_apps


def parse_curation_meta_yaml(text: str) -> Parsed[CurationMeta]:
    """
    Parse the text of a ``meta.yaml`` file.

    Keys go through the same table as the text format. ``Additional
    Applications`` is a mapping from heading to either a string (Extras and
    Message) or a mapping with ``Application Path`` and ``Launch Command``.

    Args:
        text: Raw file content

    Returns:
        Parsed CurationMeta; invalid YAML yields an empty record and a diagnostic
    """
    errors: List[str] = []

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return Parsed(CurationMeta(), [f"Invalid YAML in meta file: {e}"])

    if document is None:
        return Parsed(CurationMeta(), [])
    if not isinstance(document, dict):
        return Parsed(CurationMeta(), ["Meta file must contain a YAML mapping"])

    meta = CurationMeta()
    for key, value in document.items():
        norm = normalize_key(str(key))
        if norm == ADD_APPS_KEY:
            meta.add_apps.extend(_parse_add_apps_mapping(value, errors))
        elif norm in META_KEYS:
            text_value = _yaml_scalar(value)
            if text_value:
                meta.game[META_KEYS[norm]] = text_value
        else:
            logger.debug(f"Ignoring unknown meta key: {key}")

    return Parsed(meta, errors)


def _parse_add_apps_mapping(value: Any, errors: List[str]) -> List[GameMeta]:
    """Convert the YAML ``Additional Applications`` mapping."""
    if value is None:
        return []
    if not isinstance(value, dict):
        errors.append("Additional Applications must be a mapping")
        return []

    add_apps: List[GameMeta] = []
    for heading, entry in value.items():
        heading = str(heading)
        special = SPECIAL_ADD_APPS.get(normalize_key(heading))
        if special:
            add_apps.append({
                'heading': heading,
                'applicationPath': special,
                'launchCommand': _yaml_scalar(entry),
            })
        elif isinstance(entry, dict):
            app = {'heading': heading, 'applicationPath': '', 'launchCommand': ''}
            for key, field_value in entry.items():
                field_name = ADD_APP_KEYS.get(normalize_key(str(key)))
                if field_name:
                    app[field_name] = _yaml_scalar(field_value)
            add_apps.append(app)
        else:
            errors.append(f"Additional application '{heading}' must be a mapping")

    return add_apps


def _yaml_scalar(value: Any) -> str:
    """Render a YAML value as a metadata string."""
    if value is None:
        return ''
    if isinstance(value, bool):
        return 'Yes' if value else 'No'
    if isinstance(value, list):
        return '; '.join(_yaml_scalar(v) for v in value)
    return str(value).strip()
